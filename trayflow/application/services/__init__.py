"""
Application services for the line's use cases.

Each service opens one unit of work per use case, validates its input and
translates it into repository calls; printing runs after the commit.
"""

from .catalog_service import CatalogService
from .context_service import ContextService
from .order_service import OrderService
from .print_service import PrintService
from .serial_service import SerialService
from .station_service import StationService
from .tray_service import TrayService

__all__ = [
    "CatalogService",
    "ContextService",
    "OrderService",
    "PrintService",
    "SerialService",
    "StationService",
    "TrayService",
]
