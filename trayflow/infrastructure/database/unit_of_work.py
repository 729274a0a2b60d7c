"""
Transactional boundary for the application services.

Every state transition runs inside one unit of work: the repositories share
its session, it commits when the block exits normally and rolls back
everything when any exception escapes.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from trayflow.infrastructure.database.repositories import (
    DatabaseError,
    EntityAlreadyExistsError,
    OperationRepository,
    PartNumberRepository,
    PrintLogRepository,
    RouteRepository,
    SerialRepository,
    StationLockRepository,
    TestLogRepository,
    TrayClaimRepository,
    WorkOrderRepository,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

# attribute name -> repository bound to the unit's session
REPOSITORIES = {
    "operations": OperationRepository,
    "routes": RouteRepository,
    "parts": PartNumberRepository,
    "orders": WorkOrderRepository,
    "serials": SerialRepository,
    "station_locks": StationLockRepository,
    "trays": TrayClaimRepository,
    "print_logs": PrintLogRepository,
    "test_logs": TestLogRepository,
}


class SqlModelUnitOfWork:
    """
    One database session plus the repositories that share it.

    Attributes mirror ``REPOSITORIES``; they only exist while the unit is
    entered.
    """

    operations: OperationRepository
    routes: RouteRepository
    parts: PartNumberRepository
    orders: WorkOrderRepository
    serials: SerialRepository
    station_locks: StationLockRepository
    trays: TrayClaimRepository
    print_logs: PrintLogRepository
    test_logs: TestLogRepository

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> "SqlModelUnitOfWork":
        self._session = self._session_factory()
        for name, repository_class in REPOSITORIES.items():
            setattr(self, name, repository_class(self._session))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self.session.close()
            self._session = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise DatabaseError("Unit of work is not active")
        return self._session

    def commit(self) -> None:
        """
        Commit the transaction.

        Raises:
            EntityAlreadyExistsError: If a concurrent writer created the same key
            DatabaseError: If the database rejects the commit
        """
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise EntityAlreadyExistsError(
                f"Transaction conflicted with a concurrent write: {e.orig}"
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DatabaseError(f"Commit failed: {e}") from e

    def rollback(self) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Rollback failed: {e}") from e


class UnitOfWorkManager:
    """
    Opens one unit of work per use case.

    Services hold a manager rather than a session, so every call commits
    or rolls back on its own.
    """

    def __init__(self, session_factory: SessionFactory | None = None):
        if session_factory is None:
            from trayflow.core.db import get_session_factory

            session_factory = get_session_factory()
        self._session_factory = session_factory

    @contextmanager
    def transaction(self) -> Iterator[SqlModelUnitOfWork]:
        """
        Run a block inside a single transaction.

        Usage:
            with uow_manager.transaction() as uow:
                order = uow.orders.find_by_order_number_required(number)
                uow.orders.close(order.order_number)
        """
        with SqlModelUnitOfWork(self._session_factory) as uow:
            yield uow


_uow_manager: UnitOfWorkManager | None = None


def get_unit_of_work_manager() -> UnitOfWorkManager:
    """Process-wide manager, bound to the configured engine on first use."""
    global _uow_manager
    if _uow_manager is None:
        _uow_manager = UnitOfWorkManager()
    return _uow_manager


def configure_unit_of_work(session_factory: SessionFactory | None = None) -> UnitOfWorkManager:
    """Replace the process-wide manager, e.g. at startup or in tests."""
    global _uow_manager
    _uow_manager = UnitOfWorkManager(session_factory)
    logger.debug("Unit of work manager configured")
    return _uow_manager
