"""
Order application service.

Creates work orders with generated lot numbers and supervises their
lifecycle: progress, quantity changes, closing, deletion and order-level
labels. Orders move from OPEN to CLOSED only.
"""

import logging

from trayflow.domain.printing.label_policy import PrintJobKind
from trayflow.domain.routing.enums import OrderStatus
from trayflow.domain.routing.lot_numbers import lot_prefix, next_lot_number
from trayflow.domain.routing.route_affinity import check_route_affinity
from trayflow.domain.shared.exceptions import ConflictError, NotFoundError, ValidationError
from trayflow.infrastructure.database.models import WorkOrder
from trayflow.infrastructure.database.repositories import EntityAlreadyExistsError
from trayflow.infrastructure.printing.dispatcher import PrintJob
from trayflow.utils import utc_now

from ..dtos.order_dtos import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderProgressResponse,
    OrderResponse,
    PrintOutcome,
)
from .base_service import ApplicationServiceBase
from .completion import close_if_complete
from .print_service import PrintService

logger = logging.getLogger(__name__)


class OrderService(ApplicationServiceBase):
    """
    Application service for work order operations.

    Coordinates order creation, supervision and order-level printing while
    keeping each change inside a single transaction.
    """

    def __init__(self, print_service: PrintService, **kwargs):
        """
        Args:
            print_service: Sends order-level labels after commits
        """
        super().__init__(**kwargs)
        self._printer = print_service

    def create_order(self, request: CreateOrderRequest) -> CreateOrderResponse:
        """
        Create a new work order with the next lot number.

        Args:
            request: Order creation request DTO

        Returns:
            The created order and any print warning

        Raises:
            ValidationError: If the quantity is invalid or fields are empty
            ConflictError: If an open order already uses the SAP number
            NotFoundError: If no part has the product code
            RouteMismatchError: If the part is not produced on the active route
        """
        sap_order_number = self.validate_non_empty_string(
            request.sap_order_number, "sap_order_number"
        )
        product_code = self.validate_non_empty_string(request.product_code, "product_code")
        quantity = self.validate_quantity(request.quantity)

        attempts = max(1, self._settings.LOT_NUMBER_RETRIES)
        for attempt in range(1, attempts + 1):
            try:
                response, label_job = self._insert_order(
                    sap_order_number, product_code, quantity, request.active_route_id
                )
                break
            except EntityAlreadyExistsError:
                # the open-lot index also fires when a concurrent creator won the SAP number
                with self._transaction() as uow:
                    self._ensure_no_open_lot(uow, sap_order_number)
                if attempt == attempts:
                    raise
                logger.warning(
                    f"Lot number collision creating order for SAP {sap_order_number}, "
                    f"retrying ({attempt}/{attempts})"
                )

        warning = None
        if label_job is not None:
            warning = self._printer.send(PrintJobKind.ORDER_LABELS, [label_job]).warning
        return CreateOrderResponse(order=response, print_warning=warning)

    @staticmethod
    def _ensure_no_open_lot(uow, sap_order_number: str) -> None:
        open_lots = uow.orders.find_open_by_sap(sap_order_number)
        if open_lots:
            raise ConflictError(
                f"SAP order {sap_order_number} already has an open lot",
                {
                    "sap_order_number": sap_order_number,
                    "order_number": open_lots[0].order_number,
                },
            )

    def _insert_order(
        self, sap_order_number: str, product_code: str, quantity: int, active_route_id: int
    ) -> tuple[OrderResponse, PrintJob | None]:
        with self._transaction() as uow:
            self._ensure_no_open_lot(uow, sap_order_number)

            part = uow.parts.find_by_product_code(product_code)
            if part is None:
                raise NotFoundError("PartNumber", product_code)
            check_route_affinity(part.product_code, part.process_route_id, active_route_id)

            prefix = lot_prefix(
                utc_now(), self._settings.LOT_BASE_YEAR, self._settings.LOT_BASE_LETTER
            )
            lot_number = next_lot_number(
                prefix,
                uow.orders.lot_numbers_with_prefix(prefix),
                self._settings.LOT_SEQUENCE_WIDTH,
            )
            order = uow.orders.add(
                WorkOrder(
                    order_number=lot_number,
                    sap_order_number=sap_order_number,
                    part_number_id=part.id,
                    quantity=quantity,
                    status=OrderStatus.OPEN,
                    created_at=utc_now(),
                )
            )
            logger.info(
                f"Created order {lot_number} for SAP {sap_order_number}: "
                f"{quantity} x {part.product_code}"
            )

            label_job = None
            if part.serial_gen_type.auto_completes:
                label_job = PrintService.order_job(
                    PrintJobKind.ORDER_LABELS, part, lot_number, quantity
                )
            return OrderResponse.model_validate(order), label_job

    def get_order(self, order_number: str) -> OrderResponse:
        with self._transaction() as uow:
            return OrderResponse.model_validate(
                uow.orders.find_by_order_number_required(order_number)
            )

    def list_orders(self, status: OrderStatus | None = None) -> list[OrderResponse]:
        with self._transaction() as uow:
            return [OrderResponse.model_validate(o) for o in uow.orders.find_by_status(status)]

    def order_progress(self, order_number: str, operation_id: int) -> OrderProgressResponse:
        """
        Assigned and completed counts of an order at one station.

        Raises:
            NotFoundError: If the order or operation does not exist
        """
        with self._transaction() as uow:
            order = uow.orders.find_by_order_number_required(order_number)
            uow.operations.get_by_id_required(operation_id)
            assigned = uow.serials.count_for_order(order_number)
            completed = uow.serials.completed_at_station(order_number, operation_id)
            return OrderProgressResponse(
                order_number=order.order_number,
                sap_order_number=order.sap_order_number,
                status=order.status,
                quantity=order.quantity,
                assigned=assigned,
                operation_id=operation_id,
                completed_at_station=completed,
                remaining=max(order.quantity - assigned, 0),
            )

    def set_quantity(self, order_number: str, quantity: int) -> OrderResponse:
        """
        Change the quantity of an open order.

        The new quantity may not drop below the units already assigned. If it
        drops to the units finished at the route's final operation, the order
        closes.

        Raises:
            ValidationError: If the quantity is invalid or below assigned units
            ConflictError: If the order is closed
        """
        quantity = self.validate_quantity(quantity)
        with self._transaction() as uow:
            order = uow.orders.find_by_order_number_required(order_number)
            if order.status.is_terminal:
                raise ConflictError(
                    f"Order {order_number} is closed", {"order_number": order_number}
                )
            assigned = uow.serials.count_for_order(order_number)
            if quantity < assigned:
                raise ValidationError(
                    "quantity",
                    quantity,
                    f"order already has {assigned} units assigned",
                    "BELOW_ASSIGNED",
                )
            if not uow.orders.set_quantity(order_number, quantity):
                raise ConflictError(
                    f"Order {order_number} is closed", {"order_number": order_number}
                )
            logger.info(f"Order {order_number} quantity set to {quantity}")

            part = uow.parts.get_by_id_required(order.part_number_id)
            if part.process_route_id is not None:
                steps = uow.routes.steps_for(part.process_route_id)
                finals = [
                    op
                    for op in uow.operations.find_by_ids([s.operation_id for s in steps])
                    if op.is_final
                ]
                for operation in finals:
                    close_if_complete(uow, order, operation)

            return OrderResponse.model_validate(
                uow.orders.find_by_order_number_required(order_number)
            )

    def close_order(self, order_number: str) -> OrderResponse:
        with self._transaction() as uow:
            uow.orders.find_by_order_number_required(order_number)
            if uow.orders.close(order_number):
                logger.info(f"Order {order_number} closed by supervisor")
            return OrderResponse.model_validate(
                uow.orders.find_by_order_number_required(order_number)
            )

    def delete_order(self, order_number: str) -> None:
        """
        Delete an order that has no serials.

        Raises:
            ConflictError: If serial units reference the order
        """
        with self._transaction() as uow:
            order = uow.orders.find_by_order_number_required(order_number)
            assigned = uow.serials.count_for_order(order_number)
            if assigned:
                raise ConflictError(
                    f"Order {order_number} has {assigned} serial units and cannot be deleted",
                    {"order_number": order_number, "assigned": assigned},
                )
            uow.orders.delete(order)
            logger.info(f"Order {order_number} deleted")

    def reprint_order_labels(self, order_number: str, copies: int = 1) -> PrintOutcome:
        return self._print_order(PrintJobKind.ORDER_LABELS, order_number, copies)

    def print_box_label(self, order_number: str, copies: int = 1) -> PrintOutcome:
        return self._print_order(PrintJobKind.BOX_LABEL, order_number, copies)

    def _print_order(self, kind: PrintJobKind, order_number: str, copies: int) -> PrintOutcome:
        copies = self.validate_quantity(copies, "copies")
        with self._transaction() as uow:
            order = uow.orders.find_by_order_number_required(order_number)
            part = uow.parts.get_by_id_required(order.part_number_id)
            job = PrintService.order_job(kind, part, order.order_number, copies)
        return self._printer.send(kind, [job])
