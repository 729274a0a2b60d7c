"""
Station lock application service.

A station is held by at most one operator at a time. Entering is
idempotent for the holder; leaving is a no-op for anyone else.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from trayflow.domain.routing.enums import StationState
from trayflow.domain.shared.exceptions import ConflictError
from trayflow.infrastructure.database.models import Operation, StationLock
from trayflow.infrastructure.database.repositories import EntityAlreadyExistsError
from trayflow.utils import start_of_day, utc_now

from ..dtos.station_dtos import (
    ExitStationResponse,
    StationActivityEntry,
    StationLockResponse,
)
from .base_service import ApplicationServiceBase

logger = logging.getLogger(__name__)


def lock_response(operation: Operation, lock: StationLock | None) -> StationLockResponse:
    owner = lock.owner_id if lock is not None else None
    return StationLockResponse(
        operation_id=operation.id,
        operation_name=operation.name,
        state=StationState.HELD if owner else StationState.FREE,
        active_operator_id=owner,
        acquired_at=lock.acquired_at if owner else None,
    )


class StationService(ApplicationServiceBase):
    """Application service for station locks and station activity."""

    def enter(self, operation_id: int, operator_id: str) -> StationLockResponse:
        """
        Take a station for an operator.

        Args:
            operation_id: Station operation
            operator_id: Operator entering the station

        Returns:
            The station, held by ``operator_id``

        Raises:
            NotFoundError: If the operation does not exist
            ConflictError: If another operator holds the station
        """
        operator_id = self.validate_non_empty_string(operator_id, "operator_id")

        try:
            return self._enter(operation_id, operator_id)
        except EntityAlreadyExistsError:
            # lock row created concurrently; the conditional update now applies
            logger.debug(f"Lock row for station {operation_id} created concurrently, retrying")
            return self._enter(operation_id, operator_id)

    def _enter(self, operation_id: int, operator_id: str) -> StationLockResponse:
        with self._transaction() as uow:
            now = utc_now()
            if not uow.station_locks.try_acquire(operation_id, operator_id, now):
                operation = uow.operations.get_by_id_required(operation_id)
                lock = uow.station_locks.get_by_id(operation_id)
                if lock is not None:
                    raise ConflictError(
                        f"Station {operation.name} is in use by {lock.owner_id}",
                        {"operation_id": operation_id, "active_operator_id": lock.owner_id},
                    )
                uow.station_locks.add(
                    StationLock(operation_id=operation_id, owner_id=operator_id, acquired_at=now)
                )

            operation = uow.operations.get_by_id_required(operation_id)
            lock = uow.station_locks.get_by_id_required(operation_id)
            logger.info(f"Operator {operator_id} entered station {operation.name}")
            return lock_response(operation, lock)

    def exit(self, operation_id: int, operator_id: str) -> ExitStationResponse:
        """Release a station; only its holder can."""
        operator_id = self.validate_non_empty_string(operator_id, "operator_id")
        with self._transaction() as uow:
            released = uow.station_locks.release(operation_id, operator_id)
        if released:
            logger.info(f"Operator {operator_id} left station {operation_id}")
        else:
            logger.debug(f"Operator {operator_id} does not hold station {operation_id}")
        return ExitStationResponse(operation_id=operation_id, released=released)

    def force_unlock(self, operation_id: int) -> StationLockResponse:
        """Supervisor release of a station regardless of its holder."""
        with self._transaction() as uow:
            operation = uow.operations.get_by_id_required(operation_id)
            previous = uow.station_locks.get_by_id(operation_id)
            holder = previous.owner_id if previous is not None else None
            uow.station_locks.force_release(operation_id)
            if holder:
                logger.warning(f"Station {operation.name} force-released from {holder}")
            return lock_response(operation, uow.station_locks.get_by_id(operation_id))

    def station_status(self) -> list[StationLockResponse]:
        with self._transaction() as uow:
            return [
                lock_response(operation, lock)
                for operation, lock in uow.station_locks.list_with_operations()
            ]

    def today_activity(self, operation_id: int) -> list[StationActivityEntry]:
        """Units processed at a station since midnight UTC, newest first."""
        with self._transaction() as uow:
            uow.operations.get_by_id_required(operation_id)
            return [
                StationActivityEntry(
                    serial_number=entry.serial_number,
                    operator_id=entry.operator_id,
                    timestamp=entry.timestamp,
                )
                for entry in uow.serials.history_since(operation_id, start_of_day(utc_now()))
            ]

    @contextmanager
    def station_session(self, operation_id: int, operator_id: str) -> Iterator[StationLockResponse]:
        """Hold a station for the duration of a block."""
        lock = self.enter(operation_id, operator_id)
        try:
            yield lock
        finally:
            self.exit(operation_id, operator_id)
