"""
Station lock repository.

Every transition is a single conditional UPDATE keyed on the current owner,
so two operators racing for the same station cannot both win.
"""

from datetime import datetime

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from trayflow.infrastructure.database.models import Operation, StationLock

from .base import BaseRepository, DatabaseError


class StationLockRepository(BaseRepository[StationLock]):
    @property
    def entity_class(self):
        return StationLock

    def try_acquire(self, operation_id: int, owner_id: str, now: datetime) -> bool:
        """
        Take the station if it is free or already held by ``owner_id``.

        Args:
            operation_id: Station operation
            owner_id: Operator entering the station
            now: Acquisition time recorded on first entry

        Returns:
            True if ``owner_id`` holds the station afterwards
        """
        statement = (
            update(StationLock)
            .where(StationLock.operation_id == operation_id)
            .where(
                or_(StationLock.owner_id.is_(None), StationLock.owner_id == owner_id)
            )
            .values(owner_id=owner_id, acquired_at=now)
            .execution_options(synchronize_session=False)
        )
        acquired = self._execute(statement, "try_acquire").rowcount == 1
        self.session.expire_all()
        return acquired

    def release(self, operation_id: int, owner_id: str) -> bool:
        """Free the station only if ``owner_id`` holds it."""
        statement = (
            update(StationLock)
            .where(StationLock.operation_id == operation_id)
            .where(StationLock.owner_id == owner_id)
            .values(owner_id=None, acquired_at=None)
            .execution_options(synchronize_session=False)
        )
        released = self._execute(statement, "release").rowcount == 1
        self.session.expire_all()
        return released

    def force_release(self, operation_id: int) -> bool:
        statement = (
            update(StationLock)
            .where(StationLock.operation_id == operation_id)
            .values(owner_id=None, acquired_at=None)
            .execution_options(synchronize_session=False)
        )
        found = self._execute(statement, "force_release").rowcount == 1
        self.session.expire_all()
        return found

    def list_with_operations(self) -> list[tuple[Operation, StationLock | None]]:
        try:
            statement = (
                select(Operation, StationLock)
                .join(
                    StationLock,
                    StationLock.operation_id == Operation.id,
                    isouter=True,
                )
                .order_by(Operation.order_index, Operation.id)
            )
            return [(operation, lock) for operation, lock in self.session.exec(statement).all()]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error reading station locks: {str(e)}") from e
