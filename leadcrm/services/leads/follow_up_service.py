"""Follow-up ledger: keeps follow-up records consistent with lead state.

A lead has a current follow-up record exactly when its status is tracked and
its remarks are non-empty. Every status-setting action that yields a
follow-up also appends a history row; the history feeds the consecutive
outcome streak used for escalation.
"""

from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional, Sequence

from fastapi import Depends
from sqlalchemy.orm import Session

from leadcrm.logger_config import get_logger
from leadcrm.repositories.crm.crud.follow_up_crud import CRUDFollowUp
from leadcrm.repositories.crm.models.follow_up_model import FollowUp
from leadcrm.repositories.crm.models.lead_model import Lead
from leadcrm.repositories.crm.schemas.follow_up_schema import (
    FollowUpAgenda,
    FollowUpDetail,
    FollowUpHistoryResponse,
    FollowUpResponse,
    ReconcileReport,
)
from leadcrm.services.exceptions import FollowUpNotFoundError
from leadcrm.services.leads.normalization import clean_text
from leadcrm.services.leads.statuses import LeadStatus, STREAK_WINDOW, is_tracked, status_of

logger = get_logger(__name__)

SNAPSHOT_FIELDS = ("name", "mobile", "source", "job_role", "budget", "project")


def lead_key(lead: Lead) -> str:
    """Follow-up id of a lead: its logical id, or the storage id for legacy rows."""
    return lead.lead_id or str(lead.id)


def should_track(lead: Lead) -> bool:
    return is_tracked(status_of(lead.status)) and clean_text(lead.remarks) is not None


class FollowUpLedger:
    """Service layer for handling follow-up related operations."""

    def __init__(self, repository: CRUDFollowUp) -> None:
        self.repository = repository

    def _snapshot(self, lead: Lead, now: datetime) -> Dict[str, Any]:
        values = {field: getattr(lead, field) for field in SNAPSHOT_FIELDS}
        values.update(
            status=lead.status,
            remarks=clean_text(lead.remarks),
            date=lead.dob or now,
        )
        return values

    def _history_entry(
        self, snapshot: Dict[str, Any], now: datetime, recorded_by: Optional[str]
    ) -> Dict[str, Any]:
        return {
            "date": snapshot["date"],
            "status": snapshot["status"],
            "remarks": snapshot["remarks"],
            "recorded_at": now,
            "recorded_by": recorded_by,
        }

    def open(
        self, db: Session, lead: Lead, now: datetime, recorded_by: Optional[str]
    ) -> Optional[FollowUp]:
        """Create the first follow-up of a freshly inserted lead, if warranted."""
        if not should_track(lead):
            return None
        snapshot = self._snapshot(lead, now)
        record, _ = self.repository.upsert(
            db,
            lead_key(lead),
            snapshot,
            now,
            history=self._history_entry(snapshot, now, recorded_by),
        )
        return record

    def open_many(
        self,
        db: Session,
        leads: Sequence[Lead],
        now: datetime,
        recorded_by: Optional[str],
    ) -> int:
        """Bulk counterpart of ``open`` for freshly inserted leads."""
        records = []
        histories = []
        for lead in leads:
            if not should_track(lead):
                continue
            key = lead_key(lead)
            snapshot = self._snapshot(lead, now)
            records.append(
                {"followup_id": key, "created_at": now, "updated_at": now, **snapshot}
            )
            histories.append(
                {"followup_id": key, **self._history_entry(snapshot, now, recorded_by)}
            )
        if not records:
            return 0
        return self.repository.bulk_create(db, records, histories)

    def sync(
        self,
        db: Session,
        lead: Lead,
        now: datetime,
        recorded_by: Optional[str],
        status_set: bool,
    ) -> Optional[FollowUp]:
        """
        Bring the ledger in line with the lead after an edit.

        Idempotent: running it twice on the same lead state leaves the current
        record unchanged (a history row is only added when ``status_set``).

        Args:
            db (Session): The database session.
            lead (Lead): The lead after the update was persisted.
            now (datetime): Operation time.
            recorded_by (Optional[str]): Acting user, stored on history rows.
            status_set (bool): Whether the edit carried a status.

        Returns:
            Optional[FollowUp]: The current record, or None when it was removed.
        """
        key = lead_key(lead)
        if not should_track(lead):
            if self.repository.delete(db, key):
                logger.info("Follow-up %s removed (status %s)", key, lead.status)
            return None

        snapshot = self._snapshot(lead, now)
        history = self._history_entry(snapshot, now, recorded_by) if status_set else None
        record, _ = self.repository.upsert(db, key, snapshot, now, history=history)
        return record

    def prior_matches(self, db: Session, lead: Lead, status: LeadStatus) -> int:
        """How many of the last recorded outcomes of the lead carry ``status``."""
        recent = self.repository.recent_history(db, lead_key(lead), STREAK_WINDOW)
        return sum(1 for entry in recent if entry.status == status.value)

    def forget(self, db: Session, lead: Lead) -> None:
        self.repository.delete_all(db, lead_key(lead))

    def list(self, db: Session, owner: Optional[str] = None) -> List[FollowUp]:
        return self.repository.list(db, owner=owner)

    def detail(self, db: Session, followup_id: str) -> FollowUpDetail:
        current = self.repository.get(db, followup_id)
        history = self.repository.history(db, followup_id)
        if current is None and not history:
            raise FollowUpNotFoundError("Follow-up not found")
        return FollowUpDetail(
            current=FollowUpResponse.model_validate(current) if current else None,
            history=[FollowUpHistoryResponse.model_validate(row) for row in history],
        )

    def agenda(
        self, db: Session, now: datetime, owner: Optional[str] = None
    ) -> FollowUpAgenda:
        """Bucket current follow-ups into overdue, today and tomorrow."""
        start_of_today = datetime.combine(now.date(), time.min)
        start_of_tomorrow = start_of_today + timedelta(days=1)
        start_of_day_after = start_of_today + timedelta(days=2)

        agenda = FollowUpAgenda()
        for record in self.repository.list(db, owner=owner):
            if record.date is None:
                continue
            item = FollowUpResponse.model_validate(record)
            if record.date < start_of_today:
                agenda.overdue.append(item)
            elif record.date < start_of_tomorrow:
                agenda.today.append(item)
            elif record.date < start_of_day_after:
                agenda.tomorrow.append(item)
        return agenda

    def reconcile(
        self, db: Session, leads: Sequence[Lead], now: datetime
    ) -> ReconcileReport:
        """
        Recompute every current record purely from lead state.

        Records of tracked leads are created or refreshed, the others and the
        ones whose lead no longer exists are removed. History is left alone.
        """
        report = ReconcileReport()
        known = set()
        for lead in leads:
            key = lead_key(lead)
            known.add(key)
            if should_track(lead):
                _, created = self.repository.upsert(db, key, self._snapshot(lead, now), now)
                if created:
                    report.created += 1
                else:
                    report.updated += 1
            elif self.repository.delete(db, key):
                report.removed += 1

        for followup_id in self.repository.list_ids(db):
            if followup_id not in known and self.repository.delete(db, followup_id):
                report.removed += 1

        logger.info(
            "Follow-up ledger reconciled: %d created, %d updated, %d removed",
            report.created,
            report.updated,
            report.removed,
        )
        return report


def get_follow_up_ledger(repository: CRUDFollowUp = Depends()) -> FollowUpLedger:
    """Retrieve an instance of FollowUpLedger with the provided repository."""
    return FollowUpLedger(repository)
