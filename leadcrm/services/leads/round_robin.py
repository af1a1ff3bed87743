"""Round-robin distribution of unassigned leads across the agent pool."""

from typing import List, Optional, Sequence

from fastapi import Depends
from sqlalchemy.orm import Session

from leadcrm.logger_config import get_logger
from leadcrm.repositories.crm.crud.round_robin_crud import CRUDRoundRobin
from leadcrm.services.leads.normalization import normalize_agent
from leadcrm.services.users.user_service import UserDirectory, get_user_directory

logger = get_logger(__name__)


class RoundRobinAllocator:
    """
    Rotate through agents in user-name order, surviving restarts.

    The position lives in the database cursor row. This is pure rotation over
    identity order; load is not considered (see ``UserDirectory.least_loaded_agent``
    for the transfer heuristic).
    """

    def __init__(self, directory: UserDirectory, cursor: CRUDRoundRobin) -> None:
        self.directory = directory
        self.cursor = cursor

    def pick_next(self, db: Session) -> Optional[str]:
        """Return the next agent, or None when there are no agents."""
        pool = self.directory.agent_pool(db)
        if not pool:
            return None
        start = self.cursor.advance(db, 1, len(pool))
        return pool[start]

    def assign_batch(
        self, db: Session, owners: Sequence[Optional[str]]
    ) -> List[Optional[str]]:
        """
        Resolve the owners of a batch of leads.

        Existing owners are normalized and kept; every missing owner gets the
        next agent in rotation. The cursor is advanced once, by the number of
        leads actually assigned.

        Args:
            db (Session): The database session.
            owners (Sequence[Optional[str]]): Current owner of each lead.

        Returns:
            List[Optional[str]]: Owner of each lead, in the same order. Missing
            owners stay None when there are no agents.
        """
        resolved = [normalize_agent(owner) for owner in owners]
        missing = [index for index, owner in enumerate(resolved) if owner is None]
        if not missing:
            return resolved

        pool = self.directory.agent_pool(db)
        if not pool:
            logger.info("No agents available, %d leads left unassigned", len(missing))
            return resolved

        start = self.cursor.advance(db, len(missing), len(pool))
        for step, index in enumerate(missing):
            resolved[index] = pool[(start + step) % len(pool)]
        logger.info(
            "Round-robin assigned %d leads over %d agents starting at %s",
            len(missing),
            len(pool),
            pool[start],
        )
        return resolved


def get_round_robin_allocator(
    directory: UserDirectory = Depends(get_user_directory),
    cursor: CRUDRoundRobin = Depends(),
) -> RoundRobinAllocator:
    return RoundRobinAllocator(directory, cursor)
