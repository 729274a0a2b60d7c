"""Tests for single-unit scans through the route."""

import pytest

from trayflow.application.dtos.serial_dtos import (
    FunctionalTestCreate,
    ProcessSerialRequest,
    ScanRequest,
)
from trayflow.application.dtos.tray_dtos import GenerateTrayRequest
from trayflow.domain.printing.label_policy import PrintJobKind, excluded_labels
from trayflow.domain.routing.enums import OrderStatus, Readiness, ScanStatus
from trayflow.domain.shared.exceptions import (
    ConflictError,
    NotFoundError,
    OrderCompleteError,
    PendingStepError,
    ValidationError,
)
from trayflow.infrastructure.database.repositories import WorkOrderRepository


def scan(serial_service, line, serial, operation, token="4500012345", operator="op-1"):
    return serial_service.scan(
        ScanRequest(
            serial_number=serial,
            context_token=token,
            operation_id=operation.id,
            operator_id=operator,
            active_route_id=line.route.id,
        )
    )


def process(order, serial, operation, operator="op-1"):
    return ProcessSerialRequest(
        serial_number=serial,
        order_number=order.order_number,
        operation_id=operation.id,
        operator_id=operator,
    )


class TestBoardLifecycle:
    """A scanned board through Initial, Assemble, Test (needs a test record), Pack."""

    SERIAL = "PCB000001"

    @pytest.fixture
    def order(self, make_order):
        return make_order(sap="SAP-PCB", product_code="PCB-300", quantity=1)

    def test_full_route(self, serial_service, order_service, dispatcher, order, line):
        registered = scan(serial_service, line, self.SERIAL, line.initial, token="SAP-PCB")
        assert registered.status == ScanStatus.PROCESSED
        assert registered.order_number == order.order_number

        scan(serial_service, line, self.SERIAL, line.assemble, token="SAP-PCB")
        serial_service.record_test_log(self.SERIAL, FunctionalTestCreate(firmware="1.4.2"))
        scan(serial_service, line, self.SERIAL, line.test, token="SAP-PCB")
        final = scan(serial_service, line, self.SERIAL, line.pack, token="SAP-PCB")

        assert final.is_complete is True
        assert final.order_closed is True
        assert order_service.get_order(order.order_number).status == OrderStatus.CLOSED

        unit = serial_service.get_serial(self.SERIAL)
        assert unit.test_firmware == "1.4.2"
        assert [h.operation_id for h in unit.history] == [
            line.initial.id,
            line.assemble.id,
            line.test.id,
            line.pack.id,
        ]

        kinds = [job.exclude_label_types for job in dispatcher.jobs]
        assert kinds == [
            excluded_labels(PrintJobKind.INITIAL_UNIT),
            excluded_labels(PrintJobKind.FINAL_UNIT),
        ]

    def test_test_record_is_required(self, serial_service, order, line):
        scan(serial_service, line, self.SERIAL, line.initial, token="SAP-PCB")
        scan(serial_service, line, self.SERIAL, line.assemble, token="SAP-PCB")

        with pytest.raises(ValidationError) as exc_info:
            scan(serial_service, line, self.SERIAL, line.test, token="SAP-PCB")

        assert exc_info.value.error_code == "TEST_LOG_MISSING"

    def test_rescan_is_already_processed(self, serial_service, dispatcher, order, line):
        scan(serial_service, line, self.SERIAL, line.initial, token="SAP-PCB")

        again = scan(serial_service, line, self.SERIAL, line.initial, token="SAP-PCB")

        assert again.status == ScanStatus.ALREADY_PROCESSED
        assert len(dispatcher.calls) == 1

    def test_skipped_step(self, serial_service, order, line):
        scan(serial_service, line, self.SERIAL, line.initial, token="SAP-PCB")

        with pytest.raises(PendingStepError):
            scan(serial_service, line, self.SERIAL, line.pack, token="SAP-PCB")

    def test_serial_outside_the_mask(self, serial_service, order, line):
        with pytest.raises(ValidationError) as exc_info:
            scan(serial_service, line, "XYZ-1", line.initial, token="SAP-PCB")
        assert exc_info.value.error_code == "MASK_MISMATCH"

    def test_unknown_serial_after_the_initial_station(self, serial_service, order, line):
        with pytest.raises(NotFoundError):
            scan(serial_service, line, self.SERIAL, line.assemble, token="SAP-PCB")

    def test_order_quantity_is_enforced(self, serial_service, order, line):
        scan(serial_service, line, self.SERIAL, line.initial, token="SAP-PCB")
        with pytest.raises(OrderCompleteError):
            scan(serial_service, line, "PCB000002", line.initial, token="SAP-PCB")

    def test_order_closed_by_another_station_mid_registration(
        self, serial_service, order_service, order, line, monkeypatch
    ):
        reserve = WorkOrderRepository.reserve

        def closed_before_reservation(repository, order_number):
            repository.close(order_number)
            return reserve(repository, order_number)

        monkeypatch.setattr(WorkOrderRepository, "reserve", closed_before_reservation)

        with pytest.raises(ConflictError):
            scan(serial_service, line, self.SERIAL, line.initial, token="SAP-PCB")

        with pytest.raises(NotFoundError):
            serial_service.get_serial(self.SERIAL)
        assert order_service.get_order(order.order_number).status == OrderStatus.OPEN

    def test_print_failure_is_a_warning(self, serial_service, dispatcher, order, line):
        dispatcher.offline = True

        result = scan(serial_service, line, self.SERIAL, line.initial, token="SAP-PCB")

        assert result.status == ScanStatus.PROCESSED
        assert result.print_warning is not None
        assert serial_service.get_serial(self.SERIAL).current_operation_id == line.initial.id


class TestExplicitProcessing:
    @pytest.fixture
    def batch(self, tray_service, make_order, line):
        order = make_order(quantity=5)
        generated = tray_service.generate(
            GenerateTrayRequest(
                order_number=order.order_number,
                operation_id=line.initial.id,
                operator_id="op-1",
                tray_id="T1",
                quantity=2,
            )
        )
        return order, generated.serial_numbers

    def test_standard_then_readiness(self, serial_service, batch, line):
        order, serials = batch

        serial_service.process_standard(process(order, serials[0], line.assemble))

        assert serial_service.readiness(serials[0], line.test.id).readiness == Readiness.READY
        assert serial_service.readiness(serials[1], line.test.id).readiness == Readiness.PENDING
        assert serial_service.readiness(serials[0], line.assemble.id).readiness == Readiness.AHEAD

    def test_wrong_station_kind(self, serial_service, batch, line):
        order, serials = batch
        with pytest.raises(ValidationError):
            serial_service.process_final(process(order, serials[0], line.assemble))
        with pytest.raises(ValidationError):
            serial_service.process_standard(process(order, serials[0], line.pack))
        with pytest.raises(ValidationError):
            serial_service.process_initial(process(order, serials[0], line.assemble))

    def test_serial_of_another_order(self, serial_service, make_order, batch, line):
        _, serials = batch
        other = make_order(sap="OTHER", quantity=5)
        with pytest.raises(ConflictError):
            serial_service.process_standard(process(other, serials[0], line.assemble))

    def test_closed_order_rejects_registration(self, serial_service, order_service, batch, line):
        order, _ = batch
        order_service.close_order(order.order_number)
        with pytest.raises(ConflictError):
            serial_service.process_initial(process(order, "KA999-001M", line.initial))

    def test_delete_serial(self, serial_service, batch):
        _, serials = batch

        serial_service.delete_serial(serials[0])

        with pytest.raises(NotFoundError):
            serial_service.get_serial(serials[0])
        assert serial_service.get_serial(serials[1]).serial_number == serials[1]

    def test_scan_by_tray_token(self, serial_service, batch, line):
        order, serials = batch

        result = scan(serial_service, line, serials[1], line.assemble, token="T1")

        assert result.status == ScanStatus.PROCESSED
        assert result.order_number == order.order_number
