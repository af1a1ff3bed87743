"""
CRUD operations for leads.

This module provides a `CRUDLead` class with methods to:
- Look a lead up by logical id (falling back to the storage id) or by mobile.
- Insert one lead or a batch of leads without letting one bad row block the rest.
- Apply partial updates and batch ownership assignments.
- Count the live queue of each agent for least-loaded transfers.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from leadcrm.repositories.crm.models.lead_model import Lead


class CRUDLead:
    """Repository class for handling database operations related to leads."""

    def __init__(self) -> None:
        """Init class."""
        pass

    def get(self, db: Session, identifier: str) -> Optional[Lead]:
        """
        Retrieve a lead by its ``lead_id``, or by raw storage id when numeric.

        Args:
            db (Session): The database session.
            identifier (str): Logical or storage id of the lead.

        Returns:
            Optional[Lead]: The lead if found, otherwise None.
        """
        filters = [Lead.lead_id == identifier]
        if identifier.isdigit():
            filters.append(Lead.id == int(identifier))
        return db.query(Lead).filter(or_(*filters)).first()

    def get_by_mobile(self, db: Session, mobile: str) -> Optional[Lead]:
        return db.query(Lead).filter(Lead.mobile == mobile).first()

    def existing_mobiles(self, db: Session, mobiles: Iterable[str]) -> Set[str]:
        """Return which of the given mobiles are already stored, in one query."""
        mobiles = list(mobiles)
        if not mobiles:
            return set()
        rows = db.query(Lead.mobile).filter(Lead.mobile.in_(mobiles)).all()
        return {row.mobile for row in rows}

    def list(self, db: Session, assigned_to: Optional[str] = None) -> List[Lead]:
        """List leads oldest first, optionally only those owned by one agent."""
        query = db.query(Lead)
        if assigned_to is not None:
            query = query.filter(func.lower(func.trim(Lead.assigned_to)) == assigned_to)
        return query.order_by(Lead.created_at, Lead.id).all()

    def list_unassigned(self, db: Session) -> List[Lead]:
        """Leads with a null or blank owner, oldest created first."""
        return (
            db.query(Lead)
            .filter(or_(Lead.assigned_to.is_(None), func.trim(Lead.assigned_to) == ""))
            .order_by(Lead.created_at, Lead.id)
            .all()
        )

    def create(self, db: Session, values: Dict[str, Any]) -> Lead:
        """
        Insert a new lead.

        Raises:
            IntegrityError: when the unique mobile constraint is violated; the
                session is rolled back before re-raising.
        """
        lead = Lead(**values)
        db.add(lead)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise
        db.refresh(lead)
        return lead

    def bulk_create(
        self, db: Session, rows: Sequence[Dict[str, Any]]
    ) -> Tuple[List[Lead], List[Dict[str, Any]]]:
        """
        Insert many leads; rows rejected by the database do not block the others.

        The whole batch is tried in one flush first. If any row violates a
        constraint or does not fit its column, every row is retried inside its
        own savepoint.

        Returns:
            Tuple[List[Lead], List[Dict[str, Any]]]: inserted leads and the rows
            that failed.
        """
        leads = [Lead(**row) for row in rows]
        db.add_all(leads)
        try:
            db.commit()
        except (IntegrityError, DataError):
            db.rollback()
        else:
            return leads, []

        inserted: List[Lead] = []
        failed: List[Dict[str, Any]] = []
        for row in rows:
            lead = Lead(**row)
            try:
                with db.begin_nested():
                    db.add(lead)
            except (IntegrityError, DataError):
                failed.append(row)
            else:
                inserted.append(lead)
        db.commit()
        return inserted, failed

    def update(self, db: Session, lead: Lead, values: Dict[str, Any]) -> Lead:
        """Apply only the given fields to the lead."""
        for field, value in values.items():
            setattr(lead, field, value)
        db.add(lead)
        db.commit()
        db.refresh(lead)
        return lead

    def assign_many(
        self,
        db: Session,
        assignments: Sequence[Tuple[Lead, str]],
        assigned_at: datetime,
    ) -> int:
        """Persist several ownership changes in a single commit."""
        for lead, owner in assignments:
            lead.assigned_to = owner
            lead.assigned_at = assigned_at
            db.add(lead)
        db.commit()
        return len(assignments)

    def delete(self, db: Session, lead: Lead) -> None:
        db.delete(lead)
        db.commit()

    def count_open_by_agent(self, db: Session, agents: Iterable[str]) -> Dict[str, int]:
        """
        Count, per agent, the leads they own that are not verification calls.

        Args:
            db (Session): The database session.
            agents (Iterable[str]): Normalized user names.

        Returns:
            Dict[str, int]: agent -> live lead count (agents without leads map to 0).
        """
        agents = list(agents)
        counts = {agent: 0 for agent in agents}
        if not agents:
            return counts
        rows = (
            db.query(Lead.assigned_to, func.count(Lead.id))
            .filter(Lead.assigned_to.in_(agents), Lead.verification_call.is_not(True))
            .group_by(Lead.assigned_to)
            .all()
        )
        for agent, count in rows:
            counts[agent] = count
        return counts
