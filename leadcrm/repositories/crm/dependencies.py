"""
Database session dependency.

Provides a SQLAlchemy database session for use in request handling.
Ensures proper cleanup after use.
"""

from typing import Generator

from sqlalchemy.orm import Session

from leadcrm.repositories.crm.database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Yield a database session and ensure it is closed after use.

    Used as a FastAPI dependency so every request works on its own session;
    tests override it with a session bound to an in-memory engine.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
