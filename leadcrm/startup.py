"""Database bootstrap and seed helper for local development."""

from sqlalchemy.orm import Session

from leadcrm.configs import settings
from leadcrm.logger_config import get_logger
from leadcrm.repositories.crm import models  # noqa: F401
from leadcrm.repositories.crm.database import Base, SessionLocal, engine
from leadcrm.repositories.crm.models.user_model import User
from leadcrm.services.leads.statuses import Role
from leadcrm.services.users.auth_service import hash_password

logger = get_logger(__name__)

SEED_USERS = [
    {"user_id": "ADM001", "user_name": "admin", "role": Role.ADMIN},
    {"user_id": "USR001", "user_name": "asha", "role": Role.USER},
    {"user_id": "USR002", "user_name": "ravi", "role": Role.USER},
]
SEED_PASSWORD = "changeme"


def init_db() -> None:
    """Create missing tables and seed demo users when enabled."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    if settings.SEED_MOCK_DATA:
        create_mock_data()


def create_mock_data() -> None:
    """Populate the database with an admin and two agents when it has no users."""
    db: Session = SessionLocal()
    try:
        existing = db.query(User).count()
        if existing:
            logger.info("Users already present (%d records). Skipping.", existing)
            return

        logger.info("Creating demo admin and agents.")
        for seed in SEED_USERS:
            db.add(
                User(
                    user_id=seed["user_id"],
                    user_name=seed["user_name"],
                    role=seed["role"].value,
                    hashed_password=hash_password(SEED_PASSWORD),
                )
            )
        db.commit()
        logger.info("Demo users inserted with success.")
    except Exception:
        logger.exception("Failed to seed users")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":  # pragma: no cover
    Base.metadata.create_all(bind=engine)
    create_mock_data()
