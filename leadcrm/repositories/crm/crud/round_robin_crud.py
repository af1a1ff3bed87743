"""Atomic access to the round-robin cursor row."""

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from leadcrm.repositories.crm.models.round_robin_model import CURSOR_ID, RoundRobinCursor


class CRUDRoundRobin:
    """Reads and advances the persisted round-robin position."""

    def current(self, db: Session) -> int:
        cursor = db.get(RoundRobinCursor, CURSOR_ID)
        return cursor.last_index if cursor else 0

    def advance(self, db: Session, steps: int, pool_size: int) -> int:
        """
        Move the cursor ``steps`` positions forward and return where it started.

        The read-increment-write happens in one ``UPDATE ... RETURNING``
        statement, so two concurrent callers never receive the same start.

        Args:
            db (Session): The database session.
            steps (int): Number of positions to consume.
            pool_size (int): Size of the agent pool; the stored index stays below it.

        Returns:
            int: Start position in ``[0, pool_size)``.
        """
        stmt = (
            update(RoundRobinCursor)
            .where(RoundRobinCursor.id == CURSOR_ID)
            .values(last_index=(RoundRobinCursor.last_index + steps) % pool_size)
            .returning(RoundRobinCursor.last_index)
            .execution_options(synchronize_session=False)
        )
        new_index = db.execute(stmt).scalar_one_or_none()
        if new_index is not None:
            db.commit()
            return (new_index - steps) % pool_size

        # first allocation ever: create the row starting at position 0
        try:
            db.add(RoundRobinCursor(id=CURSOR_ID, last_index=steps % pool_size))
            db.commit()
        except IntegrityError:
            db.rollback()
            return self.advance(db, steps, pool_size)
        return 0
