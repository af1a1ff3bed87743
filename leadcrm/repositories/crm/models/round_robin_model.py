"""Persistent cursor of the round-robin lead allocator."""

from sqlalchemy import Column, Integer

from leadcrm.repositories.crm.database import Base

CURSOR_ID = 1


class RoundRobinCursor(Base):  # type: ignore[misc]
    """Single-row counter; ``last_index`` is the next position in the agent pool."""

    __tablename__ = "round_robin_cursor"

    id = Column(Integer, primary_key=True, default=CURSOR_ID)
    last_index = Column(Integer, nullable=False, default=0)
