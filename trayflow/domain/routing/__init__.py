from .classifier import classify, classify_all, ensure_none_pending
from .enums import OrderStatus, Readiness, SerialGenType
from .serial_mask import matches_mask, select_by_mask

__all__ = [
    "OrderStatus",
    "Readiness",
    "SerialGenType",
    "classify",
    "classify_all",
    "ensure_none_pending",
    "matches_mask",
    "select_by_mask",
]
