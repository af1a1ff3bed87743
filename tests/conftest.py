"""Shared fixtures: an in-memory database, a frozen clock and wired services."""

import os
from datetime import datetime, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from leadcrm.models.auth_models import Principal
from leadcrm.repositories.crm import models  # noqa: F401
from leadcrm.repositories.crm.crud.follow_up_crud import CRUDFollowUp
from leadcrm.repositories.crm.crud.lead_crud import CRUDLead
from leadcrm.repositories.crm.crud.round_robin_crud import CRUDRoundRobin
from leadcrm.repositories.crm.crud.user_crud import CRUDUser
from leadcrm.repositories.crm.database import Base
from leadcrm.repositories.crm.models.user_model import User
from leadcrm.services.leads.follow_up_service import FollowUpLedger
from leadcrm.services.leads.lead_service import LeadService
from leadcrm.services.leads.round_robin import RoundRobinAllocator
from leadcrm.services.leads.statuses import Role
from leadcrm.services.users.user_service import UserDirectory

NOW = datetime(2026, 3, 10, 15, 30, 0)
TOMORROW_9AM = datetime(2026, 3, 11, 9, 0, 0)

ADMIN = Principal(user_name="admin", role=Role.ADMIN)


def agent(user_name: str) -> Principal:
    return Principal(user_name=user_name, role=Role.USER)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def add_user(db: Session, user_name: str, role: Role = Role.USER) -> User:
    user = User(user_name=user_name, role=role.value, hashed_password="not-a-hash")
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture()
def directory() -> UserDirectory:
    return UserDirectory(CRUDUser(), CRUDLead())


@pytest.fixture()
def allocator(directory: UserDirectory) -> RoundRobinAllocator:
    return RoundRobinAllocator(directory, CRUDRoundRobin())


@pytest.fixture()
def ledger() -> FollowUpLedger:
    return FollowUpLedger(CRUDFollowUp())


@pytest.fixture()
def lead_service(
    ledger: FollowUpLedger,
    allocator: RoundRobinAllocator,
    directory: UserDirectory,
    clock: FrozenClock,
) -> LeadService:
    return LeadService(CRUDLead(), ledger, allocator, directory, clock=clock)
