"""
CRUD operations for the follow-up ledger.

This module provides a `CRUDFollowUp` class with methods to:
- Retrieve, list and delete current follow-up records.
- Upsert the current record of a lead, optionally appending a history row.
- Read a lead's history, most recent entries first or in chronological order.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import String, cast, func
from sqlalchemy.orm import Session

from leadcrm.repositories.crm.models.follow_up_model import FollowUp, FollowUpHistory
from leadcrm.repositories.crm.models.lead_model import Lead


class CRUDFollowUp:
    """Repository class for handling database operations related to follow-ups."""

    def __init__(self) -> None:
        """Init class."""
        pass

    def get(self, db: Session, followup_id: str) -> Optional[FollowUp]:
        return db.query(FollowUp).filter(FollowUp.followup_id == followup_id).first()

    def list(self, db: Session, owner: Optional[str] = None) -> List[FollowUp]:
        """
        List current follow-ups ordered by date.

        Args:
            db (Session): The database session.
            owner (Optional[str]): Only records of leads assigned to this agent,
                a normalized user name.
        """
        query = db.query(FollowUp)
        if owner is not None:
            lead_key = func.coalesce(func.nullif(Lead.lead_id, ""), cast(Lead.id, String))
            query = query.join(Lead, lead_key == FollowUp.followup_id).filter(
                func.lower(func.trim(Lead.assigned_to)) == owner
            )
        return query.order_by(FollowUp.date, FollowUp.id).all()

    def upsert(
        self,
        db: Session,
        followup_id: str,
        values: Dict[str, Any],
        now: datetime,
        history: Optional[Dict[str, Any]] = None,
    ) -> Tuple[FollowUp, bool]:
        """Insert the current follow-up of a lead, or overwrite its snapshot fields.

        ``created_at`` is only written on insert.

        Args:
            db (Session): The database session.
            followup_id (str): Id of the owning lead.
            values (Dict[str, Any]): Snapshot fields (status, date, remarks...).
            now (datetime): Timestamp for created_at/updated_at.
            history (Optional[Dict[str, Any]]): When given, a history row is
                appended in the same commit.

        Returns:
            Tuple[FollowUp, bool]: The record and whether it was created.
        """
        record = self.get(db, followup_id)
        created = record is None
        if created:
            record = FollowUp(followup_id=followup_id, created_at=now)
            db.add(record)
        for field, value in values.items():
            setattr(record, field, value)
        record.updated_at = now

        if history is not None:
            db.add(FollowUpHistory(followup_id=followup_id, **history))

        db.commit()
        db.refresh(record)
        return record, created

    def bulk_create(
        self,
        db: Session,
        records: Sequence[Dict[str, Any]],
        histories: Sequence[Dict[str, Any]],
    ) -> int:
        """Insert current records and their first history rows in one commit."""
        db.add_all(FollowUp(**record) for record in records)
        db.add_all(FollowUpHistory(**history) for history in histories)
        db.commit()
        return len(records)

    def delete(self, db: Session, followup_id: str) -> bool:
        """Delete the current record of a lead; absence is not an error."""
        deleted = (
            db.query(FollowUp)
            .filter(FollowUp.followup_id == followup_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return bool(deleted)

    def delete_all(self, db: Session, followup_id: str) -> None:
        """Delete the current record and the whole history of a lead."""
        db.query(FollowUp).filter(FollowUp.followup_id == followup_id).delete(
            synchronize_session=False
        )
        db.query(FollowUpHistory).filter(
            FollowUpHistory.followup_id == followup_id
        ).delete(synchronize_session=False)
        db.commit()

    def recent_history(
        self, db: Session, followup_id: str, limit: int
    ) -> List[FollowUpHistory]:
        """Latest history rows of a lead, by date then insertion, newest first."""
        return (
            db.query(FollowUpHistory)
            .filter(FollowUpHistory.followup_id == followup_id)
            .order_by(FollowUpHistory.date.desc().nulls_last(), FollowUpHistory.id.desc())
            .limit(limit)
            .all()
        )

    def history(self, db: Session, followup_id: str) -> List[FollowUpHistory]:
        """Full history of a lead in the order it was recorded."""
        return (
            db.query(FollowUpHistory)
            .filter(FollowUpHistory.followup_id == followup_id)
            .order_by(FollowUpHistory.id)
            .all()
        )

    def list_ids(self, db: Session) -> List[str]:
        return [row.followup_id for row in db.query(FollowUp.followup_id).all()]
