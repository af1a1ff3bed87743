"""Models for the follow-up ledger: the current record and its history."""

from sqlalchemy import Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.sql import func

from leadcrm.repositories.crm.database import Base


class FollowUp(Base):  # type: ignore[misc]
    """
    Current follow-up of a lead, a snapshot of the lead's tracked state.

    ``followup_id`` equals the owning lead's ``lead_id``; there is at most one
    row per lead. ``created_at`` is written on insert and never overwritten.
    """

    __tablename__ = "follow_ups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    followup_id = Column(String(32), unique=True, nullable=False, index=True)
    date = Column(TIMESTAMP(timezone=False), nullable=True)
    status = Column(String(32), nullable=True)
    remarks = Column(Text, nullable=True)
    name = Column(Text, nullable=True)
    mobile = Column(String(10), nullable=True)
    source = Column(Text, nullable=True)
    job_role = Column(Text, nullable=True)
    budget = Column(Text, nullable=True)
    project = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP(timezone=False), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=False), nullable=True)


class FollowUpHistory(Base):  # type: ignore[misc]
    """One status-setting action on a lead, appended and never updated."""

    __tablename__ = "follow_up_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    followup_id = Column(String(32), nullable=False, index=True)
    date = Column(TIMESTAMP(timezone=False), nullable=True)
    status = Column(String(32), nullable=True)
    remarks = Column(Text, nullable=True)
    recorded_at = Column(TIMESTAMP(timezone=False), server_default=func.now())
    recorded_by = Column(String(80), nullable=True)
