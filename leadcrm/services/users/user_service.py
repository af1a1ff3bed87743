"""Service layer for the user directory: agent pool, load lookup and accounts."""

from typing import List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from leadcrm.logger_config import get_logger
from leadcrm.models.auth_models import Principal
from leadcrm.repositories.crm.crud.lead_crud import CRUDLead
from leadcrm.repositories.crm.crud.user_crud import CRUDUser
from leadcrm.repositories.crm.models.user_model import User
from leadcrm.repositories.crm.schemas.user_schema import UserCreate
from leadcrm.services.exceptions import AuthenticationError, DuplicateUserError
from leadcrm.services.leads.normalization import normalize_agent
from leadcrm.services.leads.statuses import Role
from leadcrm.services.users.auth_service import hash_password, verify_password

logger = get_logger(__name__)


class UserDirectory:
    """Provide higher-level operations over CRM users."""

    def __init__(self, users: CRUDUser, leads: CRUDLead) -> None:
        self.users = users
        self.leads = leads

    def agent_pool(self, db: Session) -> List[str]:
        """Distinct agent user names (``role == "user"``) sorted ascending."""
        names = {
            normalize_agent(user.user_name)
            for user in self.users.list_by_role(db, Role.USER.value)
        }
        return sorted(name for name in names if name)

    def least_loaded_agent(self, db: Session, exclude: Optional[str]) -> Optional[str]:
        """
        Pick the agent with the fewest open leads, skipping ``exclude``.

        Open leads are the ones assigned to the agent that are not verification
        calls. Ties go to the agent created first.
        """
        excluded = normalize_agent(exclude)
        candidates: List[str] = []
        for user in self.users.list_by_role(db, Role.USER.value):
            name = normalize_agent(user.user_name)
            if name and name != excluded and name not in candidates:
                candidates.append(name)
        if not candidates:
            return None

        counts = self.leads.count_open_by_agent(db, candidates)
        return min(candidates, key=lambda name: counts.get(name, 0))

    def create(self, db: Session, user_in: UserCreate) -> User:
        user_name = normalize_agent(user_in.user_name)
        if self.users.get_by_name(db, user_name) is not None:
            raise DuplicateUserError("User already exists")

        user = self.users.create(
            db,
            {
                "user_id": user_in.user_id,
                "user_name": user_name,
                "hashed_password": hash_password(user_in.password),
                "email": user_in.email,
                "mobile": user_in.mobile,
                "role": user_in.role.value,
            },
        )
        logger.info("User %s added with role %s", user_name, user.role)
        return user

    def list(self, db: Session) -> List[User]:
        return self.users.list(db)

    def authenticate(self, db: Session, user_name: str, password: str) -> Principal:
        """Check credentials and return the principal to put in a token."""
        normalized = normalize_agent(user_name)
        user = self.users.get_by_name(db, normalized) if normalized else None
        if user is None or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid credentials")
        return Principal(user_name=normalized, role=Role(user.role))


def get_user_directory(
    users: CRUDUser = Depends(), leads: CRUDLead = Depends()
) -> UserDirectory:
    return UserDirectory(users, leads)
