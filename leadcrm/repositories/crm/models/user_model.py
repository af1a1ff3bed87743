"""SQLAlchemy model for CRM users (administrators and sales agents)."""

from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.sql import func

from leadcrm.repositories.crm.database import Base


class User(Base):  # type: ignore[misc]
    """A login account; rows with ``role == "user"`` form the assignment pool."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=True)
    user_name = Column(String(80), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    email = Column(String(160), nullable=True)
    mobile = Column(String(20), nullable=True)
    role = Column(String(16), nullable=False, default="user")
    created_at = Column(TIMESTAMP(timezone=False), server_default=func.now())
