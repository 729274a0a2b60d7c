"""
Repository implementations for database operations.

Concrete repositories built on SQLModel, one per aggregate, sharing the
session of the enclosing unit of work.
"""

from .base import BaseRepository, DatabaseError, EntityAlreadyExistsError
from .catalog_repository import (
    OperationRepository,
    PartNumberRepository,
    RouteRepository,
)
from .order_repository import WorkOrderRepository
from .print_log_repository import PrintLogRepository
from .serial_repository import SerialRepository
from .station_lock_repository import StationLockRepository
from .test_log_repository import TestLogRepository
from .tray_repository import TrayClaimRepository

__all__ = [
    "BaseRepository",
    "DatabaseError",
    "EntityAlreadyExistsError",
    "OperationRepository",
    "PartNumberRepository",
    "PrintLogRepository",
    "RouteRepository",
    "SerialRepository",
    "StationLockRepository",
    "TestLogRepository",
    "TrayClaimRepository",
    "WorkOrderRepository",
]
