"""CRUD helpers for users."""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from leadcrm.repositories.crm.models.user_model import User


class CRUDUser:
    """Database access for users."""

    def get_by_name(self, db: Session, user_name: str) -> Optional[User]:
        return db.query(User).filter(User.user_name == user_name).first()

    def list(self, db: Session) -> List[User]:
        return db.query(User).order_by(User.id).all()

    def list_by_role(self, db: Session, role: str) -> List[User]:
        """Users of one role in insertion order."""
        return db.query(User).filter(User.role == role).order_by(User.id).all()

    def create(self, db: Session, values: Dict[str, Any]) -> User:
        user = User(**values)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
