from trayflow.domain.routing.enums import OrderStatus
from trayflow.domain.shared.exceptions import (
    ConflictError,
    ErrorType,
    NotFoundError,
    OrderCompleteError,
    PendingStepError,
    ValidationError,
)


def test_validation_error_to_dict():
    error = ValidationError("quantity", 0, "must be a positive number", "INVALID_QUANTITY")
    assert error.to_dict() == {
        "type": "validation",
        "field": "quantity",
        "value": "0",
        "message": "Validation failed for field 'quantity': must be a positive number",
        "error_code": "INVALID_QUANTITY",
    }


def test_not_found_message():
    error = NotFoundError("WorkOrder", "KA001")
    assert error.error_type == ErrorType.NOT_FOUND
    assert error.message == "WorkOrder 'KA001' not found"


def test_order_complete_is_a_conflict():
    error = OrderCompleteError("KA001", 250)
    assert isinstance(error, ConflictError)
    assert error.details["complete"] is True


def test_pending_step_message_is_truncated():
    serials = [f"KA001-{i:03d}M" for i in range(1, 15)]
    error = PendingStepError(serials, "Test")
    assert "14 unit(s)" in error.message
    assert "(+4 more)" in error.message
    assert error.details["serial_numbers"] == serials


def test_order_status_transitions():
    assert OrderStatus.OPEN.can_transition_to(OrderStatus.CLOSED)
    assert not OrderStatus.CLOSED.can_transition_to(OrderStatus.OPEN)
    assert OrderStatus.CLOSED.is_terminal
