"""
Serial application service.

Single-unit lifecycle: registering a unit at the initial station, moving it
through standard stations and completing it at the final one. Each
transition writes the unit row and its history entry in one transaction;
labels are printed after the commit.
"""

import logging

from trayflow.domain.printing.label_policy import PrintJobKind
from trayflow.domain.routing.classifier import classify, station_index
from trayflow.domain.routing.enums import OrderStatus, Readiness, ScanStatus
from trayflow.domain.routing.serial_mask import matches_mask, select_by_mask
from trayflow.domain.shared.exceptions import (
    ConflictError,
    NotFoundError,
    OrderCompleteError,
    PendingStepError,
    RouteMismatchError,
    ValidationError,
)
from trayflow.infrastructure.database.models import (
    Operation,
    PartNumber,
    ProcessRouteStep,
    SerialUnit,
    TestLog,
    WorkOrder,
)
from trayflow.infrastructure.printing.dispatcher import PrintJob
from trayflow.utils import utc_now

from ..dtos.serial_dtos import (
    FunctionalTestCreate,
    ProcessSerialRequest,
    ReadinessResponse,
    ScanRequest,
    ScanResult,
    SerialHistoryEntry,
    SerialResponse,
)
from .base_service import ApplicationServiceBase
from .completion import close_if_complete
from .context_service import ContextService
from .print_service import PrintService

logger = logging.getLogger(__name__)

PendingPrint = tuple[PrintJobKind, PrintJob]


def route_steps(uow, part: PartNumber) -> list[ProcessRouteStep]:
    """Steps of the part's route.

    Raises:
        RouteMismatchError: If the part has no route
    """
    if part.process_route_id is None:
        raise RouteMismatchError(
            f"Model {part.product_code} has no process route",
            {"product_code": part.product_code},
        )
    return uow.routes.steps_for(part.process_route_id)


class SerialService(ApplicationServiceBase):
    """
    Application service for single-unit scans.

    Dispatches a scanned serial to the initial, standard or final handling
    of the station's operation.
    """

    def __init__(
        self,
        print_service: PrintService,
        context_service: ContextService | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._printer = print_service
        self._context = context_service or ContextService(
            unit_of_work_manager=self._uow_manager, settings=self._settings
        )

    def scan(self, request: ScanRequest) -> ScanResult:
        """
        Process a serial scanned within a resolved context.

        The part is chosen by matching the serial against the masks of the
        context's parts; the order is the unit's own, or for a new unit the
        first open lot of that part with quantity left.

        Args:
            request: Scan request DTO

        Returns:
            Scan result, ALREADY_PROCESSED when the unit was handled here before

        Raises:
            ValidationError: If the serial matches no part mask
            ConflictError: If the serial belongs to an order outside the context
            NotFoundError: If a non-initial station scans an unknown serial
            PendingStepError: If the unit skipped the previous step
        """
        serial_number = self.validate_non_empty_string(request.serial_number, "serial_number")
        operator_id = self.validate_non_empty_string(request.operator_id, "operator_id")
        context = self._context.resolve(request.context_token, request.active_route_id)

        candidates = select_by_mask(serial_number, context.parts, lambda p: p.serial_mask)
        if not candidates:
            raise ValidationError(
                "serial_number",
                serial_number,
                "does not match the serial mask of any part in this order",
                "MASK_MISMATCH",
            )
        part = candidates[0]
        order_numbers = [o.order_number for o in context.orders if o.part_number_id == part.id]

        with self._transaction() as uow:
            operation = uow.operations.get_by_id_required(request.operation_id)
            unit = uow.serials.get_by_id(serial_number)
            if unit is not None:
                if unit.order_number not in order_numbers:
                    raise ConflictError(
                        f"Serial {serial_number} belongs to order {unit.order_number}",
                        {"serial_number": serial_number, "order_number": unit.order_number},
                    )
                order = uow.orders.find_by_order_number_required(unit.order_number)
            elif operation.is_initial:
                order = self._order_with_capacity(uow, order_numbers)
            else:
                raise NotFoundError("SerialUnit", serial_number)

            result, job = self._dispatch(uow, serial_number, order, operation, operator_id)
        return self._print_after(result, job)

    def process_initial(self, request: ProcessSerialRequest) -> ScanResult:
        return self._process(request, expect_initial=True)

    def process_standard(self, request: ProcessSerialRequest) -> ScanResult:
        return self._process(request)

    def process_final(self, request: ProcessSerialRequest) -> ScanResult:
        return self._process(request, expect_final=True)

    def _process(
        self,
        request: ProcessSerialRequest,
        expect_initial: bool = False,
        expect_final: bool = False,
    ) -> ScanResult:
        serial_number = self.validate_non_empty_string(request.serial_number, "serial_number")
        operator_id = self.validate_non_empty_string(request.operator_id, "operator_id")

        with self._transaction() as uow:
            operation = uow.operations.get_by_id_required(request.operation_id)
            if expect_initial and not operation.is_initial:
                raise ValidationError(
                    "operation_id", operation.id, "is not an initial operation", "NOT_INITIAL"
                )
            if expect_final and not operation.is_final:
                raise ValidationError(
                    "operation_id", operation.id, "is not a final operation", "NOT_FINAL"
                )
            if not (expect_initial or expect_final) and (
                operation.is_initial or operation.is_final
            ):
                raise ValidationError(
                    "operation_id", operation.id, "is not a standard operation", "NOT_STANDARD"
                )
            order = uow.orders.find_by_order_number_required(request.order_number)
            result, job = self._dispatch(uow, serial_number, order, operation, operator_id)
        return self._print_after(result, job)

    def _dispatch(
        self,
        uow,
        serial_number: str,
        order: WorkOrder,
        operation: Operation,
        operator_id: str,
    ) -> tuple[ScanResult, PendingPrint | None]:
        if operation.is_initial:
            return self._register(uow, serial_number, order, operation, operator_id)
        return self._advance(uow, serial_number, order, operation, operator_id)

    def _register(
        self,
        uow,
        serial_number: str,
        order: WorkOrder,
        operation: Operation,
        operator_id: str,
    ) -> tuple[ScanResult, PendingPrint | None]:
        part = uow.parts.get_by_id_required(order.part_number_id)
        station_index(route_steps(uow, part), operation.id)

        existing = uow.serials.get_by_id(serial_number)
        if existing is not None:
            if existing.order_number != order.order_number:
                raise ConflictError(
                    f"Serial {serial_number} belongs to order {existing.order_number}",
                    {"serial_number": serial_number, "order_number": existing.order_number},
                )
            if uow.serials.has_history_at(serial_number, operation.id):
                return self._already(existing, operation), None
            raise ConflictError(
                f"Serial {serial_number} is already registered",
                {"serial_number": serial_number},
            )

        if order.status != OrderStatus.OPEN:
            raise ConflictError(
                f"Order {order.order_number} is closed", {"order_number": order.order_number}
            )
        if not matches_mask(serial_number, part.serial_mask):
            raise ValidationError(
                "serial_number",
                serial_number,
                f"does not match mask {part.serial_mask}",
                "MASK_MISMATCH",
            )
        if not uow.orders.reserve(order.order_number):
            raise ConflictError(
                f"Order {order.order_number} is closed", {"order_number": order.order_number}
            )
        if uow.serials.count_for_order(order.order_number) >= order.quantity:
            raise OrderCompleteError(order.order_number, order.quantity)

        test = self._test_evidence(uow, serial_number, part, operation)
        now = utc_now()
        unit = uow.serials.add(
            SerialUnit(
                serial_number=serial_number,
                order_number=order.order_number,
                part_number_id=part.id,
                current_operation_id=operation.id,
                is_complete=operation.is_final,
                test_registered_at=test.registered_at if test else None,
                test_firmware=test.firmware if test else None,
                created_at=now,
            )
        )
        uow.serials.insert_history(
            [
                {
                    "serial_number": serial_number,
                    "operation_id": operation.id,
                    "operator_id": operator_id,
                    "timestamp": now,
                }
            ]
        )
        order_closed = close_if_complete(uow, order, operation)
        logger.info(f"Registered {serial_number} for order {order.order_number} at {operation.name}")

        job = None
        if part.serial_gen_type.is_scanned:
            job = (
                PrintJobKind.INITIAL_UNIT,
                PrintService.unit_job(PrintJobKind.INITIAL_UNIT, part, serial_number),
            )
        return (
            ScanResult(
                serial_number=serial_number,
                order_number=order.order_number,
                operation_id=operation.id,
                status=ScanStatus.PROCESSED,
                is_complete=unit.is_complete,
                order_closed=order_closed,
            ),
            job,
        )

    def _advance(
        self,
        uow,
        serial_number: str,
        order: WorkOrder,
        operation: Operation,
        operator_id: str,
    ) -> tuple[ScanResult, PendingPrint | None]:
        unit = uow.serials.get_required(serial_number)
        if unit.order_number != order.order_number:
            raise ConflictError(
                f"Serial {serial_number} belongs to order {unit.order_number}",
                {"serial_number": serial_number, "order_number": unit.order_number},
            )
        part = uow.parts.get_by_id_required(order.part_number_id)
        readiness = classify(unit, route_steps(uow, part), operation.id)

        if readiness == Readiness.AHEAD or uow.serials.has_history_at(
            serial_number, operation.id
        ):
            return self._already(unit, operation), None
        if readiness == Readiness.PENDING:
            raise PendingStepError([serial_number], operation.name)

        test = self._test_evidence(uow, serial_number, part, operation)
        if test is not None:
            uow.serials.record_test_result(serial_number, test.registered_at, test.firmware)

        uow.serials.insert_history(
            [
                {
                    "serial_number": serial_number,
                    "operation_id": operation.id,
                    "operator_id": operator_id,
                    "timestamp": utc_now(),
                }
            ]
        )
        uow.serials.move_units([serial_number], operation.id, complete=operation.is_final)
        order_closed = close_if_complete(uow, order, operation)
        logger.info(f"Moved {serial_number} to {operation.name}")

        job = None
        if operation.is_final:
            job = (
                PrintJobKind.FINAL_UNIT,
                PrintService.unit_job(PrintJobKind.FINAL_UNIT, part, serial_number),
            )
        return (
            ScanResult(
                serial_number=serial_number,
                order_number=order.order_number,
                operation_id=operation.id,
                status=ScanStatus.PROCESSED,
                is_complete=operation.is_final,
                order_closed=order_closed,
            ),
            job,
        )

    def _already(self, unit: SerialUnit, operation: Operation) -> ScanResult:
        logger.debug(f"{unit.serial_number} already processed at {operation.name}")
        return ScanResult(
            serial_number=unit.serial_number,
            order_number=unit.order_number,
            operation_id=operation.id,
            status=ScanStatus.ALREADY_PROCESSED,
            is_complete=unit.is_complete,
        )

    def _test_evidence(
        self, uow, serial_number: str, part: PartNumber, operation: Operation
    ) -> TestLog | None:
        """Functional test record a station requires for scanned boards.

        Raises:
            ValidationError: If the station requires one and none exists
        """
        if not (operation.require_test_log and part.serial_gen_type.is_scanned):
            return None
        test = uow.test_logs.find_latest(serial_number)
        if test is None:
            raise ValidationError(
                "serial_number",
                serial_number,
                f"no functional test record, required at {operation.name}",
                "TEST_LOG_MISSING",
            )
        return test

    def _order_with_capacity(self, uow, order_numbers: list[str]) -> WorkOrder:
        orders = uow.orders.find_by_order_numbers(order_numbers)
        open_orders = [o for o in orders if o.status == OrderStatus.OPEN]
        for order in open_orders:
            if uow.serials.count_for_order(order.order_number) < order.quantity:
                return order
        if open_orders:
            raise OrderCompleteError(open_orders[-1].order_number, open_orders[-1].quantity)
        raise NotFoundError("WorkOrder", ", ".join(order_numbers) or "(none)")

    def _print_after(self, result: ScanResult, pending: PendingPrint | None) -> ScanResult:
        if pending is None:
            return result
        kind, job = pending
        outcome = self._printer.send(kind, [job])
        return result.model_copy(update={"print_warning": outcome.warning})

    def readiness(self, serial_number: str, operation_id: int) -> ReadinessResponse:
        with self._transaction() as uow:
            unit = uow.serials.get_required(serial_number)
            part = uow.parts.get_by_id_required(unit.part_number_id)
            readiness = classify(unit, route_steps(uow, part), operation_id)
            return ReadinessResponse(
                serial_number=serial_number, operation_id=operation_id, readiness=readiness
            )

    def get_serial(self, serial_number: str) -> SerialResponse:
        with self._transaction() as uow:
            unit = uow.serials.get_required(serial_number)
            response = SerialResponse.model_validate(unit)
            response.history = [
                SerialHistoryEntry.model_validate(entry)
                for entry in uow.serials.history_for(serial_number)
            ]
            return response

    def delete_serial(self, serial_number: str) -> None:
        """Remove a unit together with its history and print log."""
        with self._transaction() as uow:
            uow.serials.get_required(serial_number)
            uow.print_logs.delete_for(serial_number)
            uow.serials.delete_with_history(serial_number)
            logger.info(f"Serial {serial_number} deleted with its history")

    def record_test_log(self, serial_number: str, request: FunctionalTestCreate) -> None:
        serial_number = self.validate_non_empty_string(serial_number, "serial_number")
        with self._transaction() as uow:
            uow.test_logs.add(
                TestLog(
                    serial_number=serial_number,
                    registered_at=request.registered_at or utc_now(),
                    firmware=request.firmware,
                    status=request.status,
                )
            )
