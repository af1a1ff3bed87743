"""Lead lifecycle engine.

Creates and edits leads, resolving ownership (explicit owner, the acting
agent, or round-robin), defaulting next-action dates from the status,
transferring leads after repeated non-contact outcomes and keeping the
follow-up ledger in line with every write.
"""

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from fastapi import Depends
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from leadcrm.logger_config import get_logger
from leadcrm.models.auth_models import Principal
from leadcrm.models.lead_models import BulkCreateResult, InvalidRow, LeadEditResult
from leadcrm.repositories.crm.crud.lead_crud import CRUDLead
from leadcrm.repositories.crm.models.lead_model import Lead
from leadcrm.repositories.crm.schemas.follow_up_schema import FollowUpAgenda, ReconcileReport
from leadcrm.repositories.crm.schemas.lead_schema import LeadCreate, LeadUpdate
from leadcrm.services.exceptions import (
    DuplicateLeadError,
    LeadNotFoundError,
    LeadValidationError,
)
from leadcrm.services.leads.follow_up_service import (
    FollowUpLedger,
    get_follow_up_ledger,
    lead_key,
)
from leadcrm.services.leads.normalization import (
    clean_text,
    local_now,
    next_follow_up_slot,
    normalize_agent,
    normalize_mobile,
    parse_dob,
)
from leadcrm.services.leads.round_robin import (
    RoundRobinAllocator,
    get_round_robin_allocator,
)
from leadcrm.services.leads.statuses import (
    ESCALATION_THRESHOLD,
    LeadStatus,
    counts_toward_escalation,
    needs_next_day_default,
    parse_status,
    status_of,
)
from leadcrm.services.users.user_service import UserDirectory, get_user_directory

logger = get_logger(__name__)

TEXT_FIELDS = ("name", "source", "job_role", "budget", "project", "remarks")

DUPLICATE_MESSAGE = "Lead with this mobile number already exists"
VISIT_DATE_MESSAGE = "Visit Scheduled requires a valid date (dob)"


def new_lead_id() -> str:
    return uuid.uuid4().hex


def parse_row(raw: Any) -> LeadCreate:
    """Validate one uploaded row; an empty entry counts as a row with no mobile."""
    if isinstance(raw, LeadCreate):
        return raw
    return LeadCreate.model_validate(raw if raw is not None else {})


def raw_mobile(raw: Any) -> Optional[str]:
    if not isinstance(raw, dict) or raw.get("mobile") is None:
        return None
    return str(raw["mobile"])


def row_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


class LeadService:
    """Orchestrates lead writes across the lead store and the follow-up ledger."""

    def __init__(
        self,
        leads: CRUDLead,
        ledger: FollowUpLedger,
        allocator: RoundRobinAllocator,
        directory: UserDirectory,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.leads = leads
        self.ledger = ledger
        self.allocator = allocator
        self.directory = directory
        self.clock = clock

    @staticmethod
    def resolve_dob(
        status: Optional[LeadStatus], dob: Optional[datetime], now: datetime
    ) -> Optional[datetime]:
        """
        Apply the date rules of a status to the effective next-action date.

        Raises:
            LeadValidationError: a visit is scheduled without a date.
        """
        if dob is not None:
            return dob
        if status == LeadStatus.VISIT_SCHEDULED:
            raise LeadValidationError(VISIT_DATE_MESSAGE)
        if needs_next_day_default(status):
            return next_follow_up_slot(now)
        return None

    def _intake_values(
        self,
        lead_in: LeadCreate,
        mobile: str,
        status: Optional[LeadStatus],
        dob: Optional[datetime],
        actor: Principal,
        now: datetime,
    ) -> Dict[str, Any]:
        values: Dict[str, Any] = {
            field: clean_text(getattr(lead_in, field)) for field in TEXT_FIELDS
        }
        owner = normalize_agent(lead_in.assigned_to)
        if owner is None and actor.is_agent:
            owner = normalize_agent(actor.user_name)
        values.update(
            lead_id=new_lead_id(),
            mobile=mobile,
            status=status.value if status else None,
            dob=dob,
            assigned_to=owner,
            assigned_at=now if owner else None,
            verification_call=False,
            original_assigned=None,
            transfer_date=None,
            created_at=now,
            updated_at=now,
            created_by=actor.user_name,
            updated_by=actor.user_name,
        )
        return values

    def create(self, db: Session, lead_in: LeadCreate, actor: Principal) -> Lead:
        """
        Validate, assign and store a single lead, then open its follow-up.

        Raises:
            LeadValidationError: bad mobile, unknown status or missing visit date.
            DuplicateLeadError: the normalized mobile is already stored.
        """
        now = self.clock()
        mobile = normalize_mobile(lead_in.mobile)
        status = parse_status(lead_in.status)
        dob = self.resolve_dob(status, parse_dob(lead_in.dob), now)

        existing = self.leads.get_by_mobile(db, mobile)
        if existing is not None:
            raise DuplicateLeadError(DUPLICATE_MESSAGE, lead_key(existing))

        values = self._intake_values(lead_in, mobile, status, dob, actor, now)
        if values["assigned_to"] is None and actor.is_admin:
            owner = self.allocator.pick_next(db)
            values.update(assigned_to=owner, assigned_at=now if owner else None)

        try:
            lead = self.leads.create(db, values)
        except IntegrityError as exc:
            existing = self.leads.get_by_mobile(db, mobile)
            raise DuplicateLeadError(
                DUPLICATE_MESSAGE, lead_key(existing) if existing else None, cause=exc
            )

        logger.info(
            "Lead %s created by %s and assigned to %s",
            lead.lead_id,
            actor.user_name,
            lead.assigned_to,
        )
        self.ledger.open(db, lead, now, actor.user_name)
        return lead

    def bulk_create(
        self, db: Session, rows: Sequence[Any], actor: Principal
    ) -> BulkCreateResult:
        """
        Import many leads; a bad row is reported and never aborts the batch.

        Rows are validated independently, deduplicated within the upload and
        then against the store. Leads submitted by an admin without an owner
        are round-robin assigned in one pass after that filtering.
        """
        if not rows:
            raise LeadValidationError("No leads provided. Send { leads: [...] }")

        now = self.clock()
        seen = set()
        valid: List[Dict[str, Any]] = []
        invalid: List[InvalidRow] = []

        for number, raw in enumerate(rows, start=1):
            try:
                row = parse_row(raw)
            except ValidationError as exc:
                invalid.append(
                    InvalidRow(row=number, mobile=raw_mobile(raw), reason=row_error(exc))
                )
                continue
            try:
                mobile = normalize_mobile(row.mobile)
            except LeadValidationError as exc:
                invalid.append(InvalidRow(row=number, mobile=row.mobile, reason=exc.message))
                continue
            if mobile in seen:
                invalid.append(
                    InvalidRow(
                        row=number, mobile=mobile, reason="Duplicate mobile in uploaded file"
                    )
                )
                continue
            try:
                status = parse_status(row.status)
                dob = self.resolve_dob(status, parse_dob(row.dob), now)
            except LeadValidationError as exc:
                invalid.append(InvalidRow(row=number, mobile=mobile, reason=exc.message))
                continue
            seen.add(mobile)
            valid.append(self._intake_values(row, mobile, status, dob, actor, now))

        result = BulkCreateResult(
            message="Bulk upload completed",
            received=len(rows),
            valid=len(valid),
            invalid_count=len(invalid),
            invalid=invalid,
        )
        if not valid:
            result.message = "No valid leads to insert"
            return result

        existing = self.leads.existing_mobiles(db, (values["mobile"] for values in valid))
        to_insert = [values for values in valid if values["mobile"] not in existing]
        result.skipped_existing = len(valid) - len(to_insert)
        if not to_insert:
            result.message = "All uploaded leads already exist"
            return result

        if actor.is_admin:
            owners = self.allocator.assign_batch(
                db, [values["assigned_to"] for values in to_insert]
            )
            for values, owner in zip(to_insert, owners):
                values.update(assigned_to=owner, assigned_at=now if owner else None)

        inserted, failed = self.leads.bulk_create(db, to_insert)
        result.inserted = len(inserted)
        result.skipped_existing += len(failed)
        self.ledger.open_many(db, inserted, now, actor.user_name)

        logger.info(
            "Bulk upload by %s: %d received, %d inserted, %d existing, %d invalid",
            actor.user_name,
            result.received,
            result.inserted,
            result.skipped_existing,
            result.invalid_count,
        )
        return result

    def _patch_values(self, patch: LeadUpdate) -> Dict[str, Any]:
        changes = patch.model_dump(exclude_unset=True)
        values: Dict[str, Any] = {}
        for field in TEXT_FIELDS:
            if field in changes:
                values[field] = clean_text(changes[field])
        if "status" in changes:
            status = parse_status(changes["status"])
            values["status"] = status.value if status else None
        if "dob" in changes:
            values["dob"] = parse_dob(changes["dob"])
        if "assigned_to" in changes:
            values["assigned_to"] = normalize_agent(changes["assigned_to"])
        return values

    def update(
        self, db: Session, identifier: str, patch: LeadUpdate, actor: Principal
    ) -> LeadEditResult:
        """
        Apply a partial update and run the verification-call transitions.

        - A lead on a verification call that gets any status other than Busy
          goes back to its original agent.
        - A normal lead getting its third Busy, NR/SF or RNR outcome in a row
          moves to the least-loaded other agent as a verification call.

        Raises:
            LeadNotFoundError: no lead matches ``identifier``.
            LeadValidationError: checked before anything is written.
        """
        lead = self.leads.get(db, identifier)
        if lead is None:
            raise LeadNotFoundError("Lead not found")

        now = self.clock()
        values = self._patch_values(patch)
        status_set = "status" in values
        new_status = status_of(values.get("status")) if status_set else None

        if status_set or "dob" in values:
            effective_status = new_status if status_set else status_of(lead.status)
            effective_dob = values["dob"] if "dob" in values else lead.dob
            resolved = self.resolve_dob(effective_status, effective_dob, now)
            if resolved != effective_dob:
                values["dob"] = resolved

        result = LeadEditResult()
        if lead.verification_call and new_status is not None and new_status != LeadStatus.BUSY:
            self._return_from_verification(lead, values, now, result)
        elif not lead.verification_call and counts_toward_escalation(new_status):
            self._escalate_if_stuck(db, lead, new_status, values, actor, now, result)

        values.update(updated_at=now, updated_by=actor.user_name)
        lead = self.leads.update(db, lead, values)
        self.ledger.sync(db, lead, now, actor.user_name, status_set)
        return result

    def _return_from_verification(
        self,
        lead: Lead,
        values: Dict[str, Any],
        now: datetime,
        result: LeadEditResult,
    ) -> None:
        original = normalize_agent(lead.original_assigned)
        values.update(verification_call=False, transfer_date=None, original_assigned=None)
        if original is None:
            logger.info(
                "Lead %s left verification call with no agent to return to", lead_key(lead)
            )
            return
        values.update(assigned_to=original, assigned_at=now)
        result.returned_to = original
        result.message = f"Lead updated and returned to {original}"
        logger.info("Lead %s returned to %s", lead_key(lead), original)

    def _escalate_if_stuck(
        self,
        db: Session,
        lead: Lead,
        status: LeadStatus,
        values: Dict[str, Any],
        actor: Principal,
        now: datetime,
        result: LeadEditResult,
    ) -> None:
        if self.ledger.prior_matches(db, lead, status) + 1 < ESCALATION_THRESHOLD:
            return

        if "assigned_to" in values:
            owner = values["assigned_to"]
        else:
            owner = normalize_agent(lead.assigned_to)
        if owner is None and actor.is_agent:
            owner = normalize_agent(actor.user_name)
        target = self.directory.least_loaded_agent(db, exclude=owner)
        if target is None:
            logger.info(
                "Lead %s reached %d x %s but no other agent is available",
                lead_key(lead),
                ESCALATION_THRESHOLD,
                status.value,
            )
            return

        values.update(
            assigned_to=target,
            assigned_at=now,
            verification_call=True,
            original_assigned=owner,
            transfer_date=now,
        )
        result.transferred_to = target
        result.message = f"Lead updated and transferred to {target} (Verification Call)"
        logger.info(
            "Lead %s transferred from %s to %s after repeated %s",
            lead_key(lead),
            owner,
            target,
            status.value,
        )

    def list_for(self, db: Session, actor: Principal) -> List[Lead]:
        """
        Leads visible to the caller.

        Admins first get every ownerless lead round-robin assigned (oldest
        first, one batch write) and then see all leads; agents see their own.
        """
        if not actor.is_admin:
            return self.leads.list(db, assigned_to=normalize_agent(actor.user_name))

        unassigned = self.leads.list_unassigned(db)
        if unassigned:
            owners = self.allocator.assign_batch(db, [None] * len(unassigned))
            assignments = [
                (lead, owner) for lead, owner in zip(unassigned, owners) if owner is not None
            ]
            if assignments:
                self.leads.assign_many(db, assignments, self.clock())
                logger.info("Backfilled owners of %d unassigned leads", len(assignments))
        return self.leads.list(db)

    def get_for(self, db: Session, identifier: str, actor: Principal) -> Lead:
        lead = self.leads.get(db, identifier)
        if lead is None:
            raise LeadNotFoundError("Lead not found")
        owner = normalize_agent(lead.assigned_to)
        if actor.is_agent and owner != normalize_agent(actor.user_name):
            raise LeadNotFoundError("Lead not found")
        return lead

    def delete(self, db: Session, identifier: str, actor: Principal) -> None:
        lead = self.leads.get(db, identifier)
        if lead is None:
            raise LeadNotFoundError("Lead not found")
        key = lead_key(lead)
        self.ledger.forget(db, lead)
        self.leads.delete(db, lead)
        logger.info("Lead %s deleted by %s", key, actor.user_name)

    def reconcile_follow_ups(self, db: Session) -> ReconcileReport:
        """Rebuild current follow-up records from the state of every lead."""
        return self.ledger.reconcile(db, self.leads.list(db), self.clock())

    def agenda_for(self, db: Session, actor: Principal) -> FollowUpAgenda:
        owner = None if actor.is_admin else normalize_agent(actor.user_name)
        return self.ledger.agenda(db, self.clock(), owner=owner)


def get_lead_service(
    leads: CRUDLead = Depends(),
    ledger: FollowUpLedger = Depends(get_follow_up_ledger),
    allocator: RoundRobinAllocator = Depends(get_round_robin_allocator),
    directory: UserDirectory = Depends(get_user_directory),
) -> LeadService:
    """Dependency for FastAPI."""
    return LeadService(leads, ledger, allocator, directory)
