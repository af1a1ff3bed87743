"""SQLAlchemy model for the leads worked by the sales team."""

from sqlalchemy import Boolean, Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.sql import func

from leadcrm.repositories.crm.database import Base


class Lead(Base):  # type: ignore[misc]
    """
    Represents a lead moving through the call-and-visit pipeline.

    Attributes:
        id (int): Raw storage id, used as a fallback when ``lead_id`` is missing.
        lead_id (str): Opaque logical id generated at creation.
        mobile (str): Canonical 10-digit mobile number, unique across leads.
        dob (timestamp): Next action date (follow-up call or site visit).
        assigned_to (str): Lowercased user name of the owning agent.
        verification_call (bool): True while the lead is transferred for a
            verification call after repeated non-contact outcomes.
        original_assigned (str): Agent the lead returns to once the
            verification call is resolved.
    """

    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(String(32), unique=True, nullable=True, index=True)
    name = Column(Text, nullable=True)
    mobile = Column(String(10), unique=True, nullable=False)
    source = Column(Text, nullable=True)
    status = Column(String(32), nullable=True)
    job_role = Column(Text, nullable=True)
    budget = Column(Text, nullable=True)
    project = Column(Text, nullable=True)
    remarks = Column(Text, nullable=True)
    dob = Column(TIMESTAMP(timezone=False), nullable=True)

    assigned_to = Column(Text, nullable=True, index=True)
    assigned_at = Column(TIMESTAMP(timezone=False), nullable=True)

    verification_call = Column(Boolean, nullable=False, default=False)
    original_assigned = Column(Text, nullable=True)
    transfer_date = Column(TIMESTAMP(timezone=False), nullable=True)

    created_at = Column(TIMESTAMP(timezone=False), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=False), nullable=True)
    created_by = Column(String(80), nullable=True)
    updated_by = Column(String(80), nullable=True)

    __mapper_args__ = {"eager_defaults": True}
