"""Domain enums for routing, orders and printing."""

from enum import Enum


class Readiness(str, Enum):
    """Where a unit stands relative to the station classifying it."""

    AHEAD = "ahead"  # Complete, or already processed here
    READY = "ready"  # May be processed at this station
    PENDING = "pending"  # Skipped a required prior step

    @property
    def is_blocking(self) -> bool:
        return self is Readiness.PENDING


class SerialGenType(str, Enum):
    """How serial numbers for a part come into existence."""

    PCB_SERIAL = "PCB_SERIAL"  # Scanned from the board
    LOT_BASED = "LOT_BASED"  # Generated in tray batches from the lot number
    ACCESSORIES = "ACCESSORIES"  # Generated and completed in one step

    @property
    def is_scanned(self) -> bool:
        """Serials are read from the unit rather than generated."""
        return self is SerialGenType.PCB_SERIAL

    @property
    def auto_completes(self) -> bool:
        """Generated units are complete on creation and close their order."""
        return self is SerialGenType.ACCESSORIES


class OrderStatus(str, Enum):
    """Work order status enumeration."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"

    @property
    def is_terminal(self) -> bool:
        return self is OrderStatus.CLOSED

    def can_transition_to(self, target_status: "OrderStatus") -> bool:
        """Orders only ever move from OPEN to CLOSED."""
        valid_transitions = {
            OrderStatus.OPEN: {OrderStatus.CLOSED},
            OrderStatus.CLOSED: set(),  # Terminal state
        }
        return target_status in valid_transitions.get(self, set())


class StationState(str, Enum):
    FREE = "FREE"
    HELD = "HELD"


class PrintStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class LabelType(str, Enum):
    """Label formats a print target may carry."""

    NAMEPLATE = "NAMEPLATE"
    CARTON1 = "CARTON1"
    CARTON2 = "CARTON2"
    BOX_LABEL = "BOX_LABEL"


class ScanStatus(str, Enum):
    PROCESSED = "processed"
    ALREADY_PROCESSED = "already_processed"


class ResolutionStrategy(str, Enum):
    SAP_ORDER = "sap_order"
    TRAY = "tray"
