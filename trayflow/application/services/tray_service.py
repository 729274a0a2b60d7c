"""
Tray batch application service.

A tray carries up to TRAY_CAPACITY units of one lot through the line.
Batches are generated at the initial station, moved station by station in
one statement per write, and finalized at the final station. Any unit that
skipped a step blocks the whole tray.
"""

import csv
import io
import logging

from trayflow.domain.printing.label_policy import PrintJobKind
from trayflow.domain.routing.classifier import (
    classify_all,
    ensure_none_pending,
    station_index,
)
from trayflow.domain.routing.enums import Readiness
from trayflow.domain.routing.lot_numbers import batch_serials
from trayflow.domain.routing.serial_mask import matches_mask
from trayflow.domain.shared.exceptions import (
    ConflictError,
    NotFoundError,
    OrderCompleteError,
    ValidationError,
)
from trayflow.infrastructure.database.models import Operation, PartNumber, SerialUnit
from trayflow.utils import utc_now

from ..dtos.order_dtos import PrintOutcome
from ..dtos.serial_dtos import MarkUnitResponse
from ..dtos.tray_dtos import (
    GenerateTrayRequest,
    ReprintUnitRequest,
    TrayActionRequest,
    TrayBatchResponse,
    TrayExport,
    TrayUnitView,
    TrayView,
)
from .base_service import ApplicationServiceBase
from .completion import close_if_complete
from .print_service import PrintService
from .serial_service import route_steps

logger = logging.getLogger(__name__)

EXPORT_HEADER = ("PN", "SKU", "SERIAL")
EXPORT_TRAY_TAG = "CHAROLA"


def render_export(
    sap_order_number: str,
    order_number: str,
    tray_id: str | None,
    part: PartNumber,
    serial_numbers: list[str],
) -> TrayExport:
    """CSV listing of a batch for the packing line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for serial_number in serial_numbers:
        writer.writerow((part.part_number, part.product_code, serial_number))

    if tray_id:
        file_name = f"{sap_order_number}_{EXPORT_TRAY_TAG}_{tray_id}_{order_number}.csv"
    else:
        file_name = f"{sap_order_number}_{order_number}.csv"
    return TrayExport(file_name=file_name, content=buffer.getvalue())


def tray_view(
    tray_id: str,
    order_number: str | None,
    operation_id: int,
    classified: list[tuple[SerialUnit, Readiness]],
    **extra,
) -> TrayView:
    return TrayView(
        tray_id=tray_id,
        order_number=order_number,
        operation_id=operation_id,
        units=[
            TrayUnitView(
                serial_number=unit.serial_number,
                current_operation_id=unit.current_operation_id,
                is_complete=unit.is_complete,
                readiness=readiness,
            )
            for unit, readiness in classified
        ],
        finished=all(readiness == Readiness.AHEAD for _, readiness in classified),
        **extra,
    )


class TrayService(ApplicationServiceBase):
    """Application service for tray batches."""

    def __init__(self, print_service: PrintService, **kwargs):
        super().__init__(**kwargs)
        self._printer = print_service

    def generate(self, request: GenerateTrayRequest) -> TrayBatchResponse:
        """
        Generate the next batch of serials for an order.

        The tray row is claimed first, so the exclusivity check and the
        inserts run under the same lock and roll back together.

        Args:
            request: Batch generation request DTO

        Returns:
            Generated serials with the batch export

        Raises:
            ValidationError: If the quantity is invalid, the part's serials are
                scanned, or a tray is required and missing
            ConflictError: If the tray holds open units of another order or the
                order is closed
            OrderCompleteError: If the order has no quantity left
            RouteMismatchError: If the operation is not on the part's route
        """
        order_number = self.validate_non_empty_string(request.order_number, "order_number")
        operator_id = self.validate_non_empty_string(request.operator_id, "operator_id")
        requested = self.validate_quantity(request.quantity)
        tray_id = request.tray_id.strip() if request.tray_id and request.tray_id.strip() else None

        with self._transaction() as uow:
            order = uow.orders.find_by_order_number_required(order_number)
            if order.status.is_terminal:
                raise ConflictError(
                    f"Order {order_number} is closed", {"order_number": order_number}
                )
            part = uow.parts.get_by_id_required(order.part_number_id)
            gen_type = part.serial_gen_type
            if gen_type.is_scanned:
                raise ValidationError(
                    "order_number",
                    order_number,
                    f"{part.product_code} serials are scanned, not generated",
                    "SCANNED_PART",
                )
            if tray_id is None and not gen_type.auto_completes:
                raise ValidationError("tray_id", None, "is required", "TRAY_REQUIRED")

            operation = uow.operations.get_by_id_required(request.operation_id)
            station_index(route_steps(uow, part), operation.id)

            now = utc_now()
            if tray_id is not None:
                uow.trays.claim(tray_id, order_number, now)
                blocking = uow.serials.blocking_order_for_tray(tray_id, order_number)
                if blocking:
                    raise ConflictError(
                        f"Tray {tray_id} still holds open units of order {blocking}",
                        {"tray_id": tray_id, "blocking_order": blocking},
                    )

            if not uow.orders.reserve(order_number):
                raise ConflictError(
                    f"Order {order_number} is closed", {"order_number": order_number}
                )
            assigned = uow.serials.count_for_order(order_number)
            remaining = order.quantity - assigned
            # trayless accessory batches are not carried on a tray, so only the order caps them
            capacity = remaining if tray_id is None else self._settings.TRAY_CAPACITY
            quantity = min(capacity, requested, remaining)
            if quantity <= 0:
                raise OrderCompleteError(order_number, order.quantity)

            serial_numbers = batch_serials(
                order_number,
                assigned + 1,
                quantity,
                self._settings.SERIAL_SEQUENCE_WIDTH,
                self._settings.LOT_SERIAL_SUFFIX,
            )
            if not matches_mask(serial_numbers[-1], part.serial_mask):
                raise ValidationError(
                    "serial_mask",
                    part.serial_mask,
                    f"generated serial {serial_numbers[-1]} does not match the part mask",
                    "MASK_MISMATCH",
                )

            complete = gen_type.auto_completes
            uow.serials.insert_units(
                [
                    {
                        "serial_number": serial_number,
                        "order_number": order_number,
                        "part_number_id": part.id,
                        "current_operation_id": operation.id,
                        "tray_id": tray_id,
                        "is_complete": complete,
                        "test_registered_at": None,
                        "test_firmware": None,
                        "created_at": now,
                    }
                    for serial_number in serial_numbers
                ]
            )
            uow.serials.insert_history(
                [
                    {
                        "serial_number": serial_number,
                        "operation_id": operation.id,
                        "operator_id": operator_id,
                        "timestamp": now,
                    }
                    for serial_number in serial_numbers
                ]
            )

            order_closed = False
            if complete:
                order_closed = uow.orders.close(order_number)
                if tray_id is not None:
                    uow.trays.release(tray_id, order_number)

            logger.info(
                f"Generated {quantity} serials for order {order_number}"
                + (f" on tray {tray_id}" if tray_id else "")
                + (" (auto-completed)" if complete else "")
            )
            return TrayBatchResponse(
                order_number=order_number,
                tray_id=tray_id,
                serial_numbers=serial_numbers,
                auto_completed=complete,
                order_closed=order_closed,
                export=render_export(
                    order.sap_order_number, order_number, tray_id, part, serial_numbers
                ),
            )

    def load(self, tray_id: str, order_number: str, operation_id: int) -> TrayView:
        """
        Classify every unit of an order's tray at a station.

        Returns:
            The tray, flagged finished when every unit is already ahead

        Raises:
            NotFoundError: If the tray holds no units of the order
            PendingStepError: If any unit skipped the previous step
        """
        with self._transaction() as uow:
            operation, classified = self._classify_tray(uow, tray_id, order_number, operation_id)
            ensure_none_pending(classified, operation.name)
            return tray_view(tray_id, order_number, operation_id, classified)

    def mark_unit(self, serial_number: str, operation_id: int, operator_id: str) -> MarkUnitResponse:
        """
        Record one unit at a non-final station.

        A no-op when the unit is complete or already passed the operation.

        Raises:
            PendingStepError: If the unit skipped the previous step
            ValidationError: If the operation is final
        """
        operator_id = self.validate_non_empty_string(operator_id, "operator_id")
        with self._transaction() as uow:
            operation = self._markable_operation(uow, operation_id)
            unit = uow.serials.get_required(serial_number)
            part = uow.parts.get_by_id_required(unit.part_number_id)
            classified = classify_all([unit], route_steps(uow, part), operation.id)
            ensure_none_pending(classified, operation.name)

            marked = self._mark(uow, [unit.serial_number], operation, operator_id)
            return MarkUnitResponse(
                serial_number=serial_number, operation_id=operation.id, marked=marked > 0
            )

    def mark_all(self, tray_id: str, request: TrayActionRequest) -> TrayView:
        """
        Record every eligible unit of a tray at a non-final station at once.

        Args:
            tray_id: Tray being processed
            request: Station, operator and optionally the order on the tray

        Returns:
            The tray after marking, with the number of units marked

        Raises:
            PendingStepError: If any unit skipped the previous step; nothing
                is marked
            ValidationError: If the operation is final
        """
        operator_id = self.validate_non_empty_string(request.operator_id, "operator_id")
        with self._transaction() as uow:
            order_number = self._tray_order(uow, tray_id, request.order_number)
            self._markable_operation(uow, request.operation_id)
            operation, classified = self._classify_tray(
                uow, tray_id, order_number, request.operation_id
            )
            ensure_none_pending(classified, operation.name)

            eligible = [unit.serial_number for unit, r in classified if r == Readiness.READY]
            marked = self._mark(uow, eligible, operation, operator_id)
            if marked:
                logger.info(f"Marked {marked} units of tray {tray_id} at {operation.name}")

            _, classified = self._classify_tray(uow, tray_id, order_number, operation.id)
            return tray_view(tray_id, order_number, operation.id, classified, marked=marked)

    def finalize_tray(self, tray_id: str, request: TrayActionRequest) -> TrayView:
        """
        Complete every unit of a tray at the final station and print its labels.

        Irreversible: a finalized tray only accepts unit reprints.

        Raises:
            ValidationError: If the operation is not final
            PendingStepError: If any unit skipped the previous step
            ConflictError: If the tray was already finalized
        """
        operator_id = self.validate_non_empty_string(request.operator_id, "operator_id")
        with self._transaction() as uow:
            order_number = self._tray_order(uow, tray_id, request.order_number)
            operation = uow.operations.get_by_id_required(request.operation_id)
            if not operation.is_final:
                raise ValidationError(
                    "operation_id", operation.id, "is not a final operation", "NOT_FINAL"
                )
            operation, classified = self._classify_tray(
                uow, tray_id, order_number, operation.id
            )
            ensure_none_pending(classified, operation.name)

            open_units = [unit.serial_number for unit, _ in classified if not unit.is_complete]
            if not open_units:
                raise ConflictError(
                    f"Tray {tray_id} is already finalized; only reprints are allowed",
                    {"tray_id": tray_id, "order_number": order_number},
                )

            recorded = uow.serials.serials_with_history_at(open_units, operation.id)
            now = utc_now()
            uow.serials.insert_history(
                [
                    {
                        "serial_number": serial_number,
                        "operation_id": operation.id,
                        "operator_id": operator_id,
                        "timestamp": now,
                    }
                    for serial_number in open_units
                    if serial_number not in recorded
                ]
            )
            uow.serials.move_units(open_units, operation.id, complete=True)

            order = uow.orders.find_by_order_number_required(order_number)
            order_closed = close_if_complete(uow, order, operation)
            uow.trays.release(tray_id, order_number)

            part = uow.parts.get_by_id_required(order.part_number_id)
            jobs = [
                PrintService.unit_job(PrintJobKind.TRAY_FINALIZE, part, serial_number)
                for serial_number in open_units
            ]
            _, classified = self._classify_tray(uow, tray_id, order_number, operation.id)
            view = tray_view(
                tray_id,
                order_number,
                operation.id,
                classified,
                marked=len(open_units),
                order_closed=order_closed,
            )
            logger.info(f"Finalized tray {tray_id}: {len(open_units)} units of {order_number}")

        outcome = self._printer.send(PrintJobKind.TRAY_FINALIZE, jobs)
        return view.model_copy(update={"print_warning": outcome.warning})

    def reprint_unit(self, tray_id: str, request: ReprintUnitRequest) -> PrintOutcome:
        """
        Reprint one unit of a tray picked by the last three digits of its serial.

        Raises:
            ValidationError: If the suffix is not exactly three digits
            NotFoundError: If no unit of the order on the tray ends with it
        """
        suffix = (request.suffix or "").strip()
        if len(suffix) != 3 or not suffix.isdigit():
            raise ValidationError("suffix", suffix, "must be exactly 3 digits", "INVALID_SUFFIX")

        ending = f"-{suffix}{self._settings.LOT_SERIAL_SUFFIX}"
        with self._transaction() as uow:
            order = uow.orders.find_by_order_number_required(request.order_number)
            units = uow.serials.find_by_tray(tray_id, order.order_number)
            unit = next((u for u in units if u.serial_number.endswith(ending)), None)
            if unit is None:
                raise NotFoundError("SerialUnit", f"{tray_id}/*{ending}")
            part = uow.parts.get_by_id_required(order.part_number_id)
            job = PrintService.unit_job(PrintJobKind.UNIT_REPRINT, part, unit.serial_number)
        return self._printer.send(PrintJobKind.UNIT_REPRINT, [job])

    def export_tray(self, tray_id: str, order_number: str) -> TrayExport:
        with self._transaction() as uow:
            order = uow.orders.find_by_order_number_required(order_number)
            units = uow.serials.find_by_tray(tray_id, order_number)
            if not units:
                raise NotFoundError("Tray", f"{tray_id}/{order_number}")
            part = uow.parts.get_by_id_required(order.part_number_id)
            return render_export(
                order.sap_order_number,
                order_number,
                tray_id,
                part,
                [unit.serial_number for unit in units],
            )

    def _classify_tray(
        self, uow, tray_id: str, order_number: str, operation_id: int
    ) -> tuple[Operation, list[tuple[SerialUnit, Readiness]]]:
        order = uow.orders.find_by_order_number_required(order_number)
        units = uow.serials.find_by_tray(tray_id, order_number)
        if not units:
            raise NotFoundError("Tray", f"{tray_id}/{order_number}")
        operation = uow.operations.get_by_id_required(operation_id)
        part = uow.parts.get_by_id_required(order.part_number_id)
        return operation, classify_all(units, route_steps(uow, part), operation.id)

    def _tray_order(self, uow, tray_id: str, order_number: str | None) -> str:
        """The order whose units are open on the tray, when not given."""
        if order_number:
            return order_number
        units = uow.serials.find_by_tray(tray_id)
        if not units:
            raise NotFoundError("Tray", tray_id)
        open_orders = sorted({u.order_number for u in units if not u.is_complete})
        if len(open_orders) == 1:
            return open_orders[0]
        if not open_orders:
            raise ConflictError(
                f"Tray {tray_id} has no open units; only reprints are allowed",
                {"tray_id": tray_id},
            )
        raise ConflictError(
            f"Tray {tray_id} holds open units of several orders: {', '.join(open_orders)}",
            {"tray_id": tray_id, "order_numbers": open_orders},
        )

    @staticmethod
    def _markable_operation(uow, operation_id: int) -> Operation:
        operation = uow.operations.get_by_id_required(operation_id)
        if operation.is_final:
            raise ValidationError(
                "operation_id",
                operation.id,
                "is a final operation; finalize the tray instead",
                "FINAL_OPERATION",
            )
        return operation

    @staticmethod
    def _mark(uow, serial_numbers: list[str], operation: Operation, operator_id: str) -> int:
        """Append history and move the units, skipping those already recorded."""
        if not serial_numbers:
            return 0
        recorded = uow.serials.serials_with_history_at(serial_numbers, operation.id)
        fresh = [s for s in serial_numbers if s not in recorded]
        if not fresh:
            return 0
        now = utc_now()
        uow.serials.insert_history(
            [
                {
                    "serial_number": serial_number,
                    "operation_id": operation.id,
                    "operator_id": operator_id,
                    "timestamp": now,
                }
                for serial_number in fresh
            ]
        )
        return uow.serials.move_units(fresh, operation.id)
