"""Order completion policy shared by single-unit and tray flows."""

import logging

from trayflow.domain.routing.enums import OrderStatus
from trayflow.infrastructure.database.models import Operation, WorkOrder

logger = logging.getLogger(__name__)


def close_if_complete(uow, order: WorkOrder, operation: Operation) -> bool:
    """
    Close ``order`` once enough units have finished at the final operation.

    Completion is counted from history, never stored: units whose last
    history entry is at ``operation``.

    Returns:
        True if this call closed the order
    """
    if not operation.is_final or order.status != OrderStatus.OPEN:
        return False

    completed = uow.serials.completed_at_station(order.order_number, operation.id)
    if completed < order.quantity:
        return False

    closed = uow.orders.close(order.order_number)
    if closed:
        logger.info(
            f"Order {order.order_number} closed: {completed}/{order.quantity} "
            f"units finished at {operation.name}"
        )
    return closed
