"""
Domain Exceptions

Defines the error taxonomy for routing, tray batching and station locking.
Every error carries an ErrorType discriminator so the API layer can map it to
a response without inspecting the concrete class.
"""

from enum import Enum


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    ROUTE_MISMATCH = "route_mismatch"
    PENDING_STEP = "pending_step"
    PRINT = "print"
    REPOSITORY = "repository"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, str | int | bool | list[str] | None] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when input fails a routing rule (mask, quantity, required field)."""

    def __init__(
        self,
        field_name: str,
        value: str | int | float | bool | None,
        message: str,
        error_code: str | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.error_code = error_code or "VALIDATION_ERROR"

        full_message = f"Validation failed for field '{field_name}': {message}"
        details = {
            "field": field_name,
            "value": str(value) if value is not None else None,
            "error_code": self.error_code,
        }
        super().__init__(full_message, ErrorType.VALIDATION, details)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "field": self.field_name,
            "value": str(self.value) if self.value is not None else None,
            "message": self.message,
            "error_code": self.error_code,
        }


class ConflictError(DomainError):
    """Raised when current state forbids the action (held station, locked tray, duplicates)."""

    def __init__(
        self,
        message: str,
        details: dict[str, str | int | bool | list[str] | None] | None = None,
    ) -> None:
        super().__init__(message, ErrorType.CONFLICT, details)


class OrderCompleteError(ConflictError):
    """Raised when an order has no remaining quantity to assign."""

    def __init__(self, order_number: str, quantity: int) -> None:
        self.order_number = order_number
        super().__init__(
            f"Order {order_number} is complete: all {quantity} units are assigned",
            {"order_number": order_number, "quantity": quantity, "complete": True},
        )


class NotFoundError(DomainError):
    """Raised when a referenced serial, order, part, tray or operation is absent."""

    def __init__(self, entity_type: str, identifier: str | int) -> None:
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(
            f"{entity_type} '{identifier}' not found",
            ErrorType.NOT_FOUND,
            {"entity_type": entity_type, "identifier": str(identifier)},
        )


class RouteMismatchError(DomainError):
    """Raised when a part or station does not belong to the active route."""

    def __init__(
        self,
        message: str,
        details: dict[str, str | int | bool | list[str] | None] | None = None,
    ) -> None:
        super().__init__(message, ErrorType.ROUTE_MISMATCH, details)


class PendingStepError(DomainError):
    """Raised when units skipped a required prior step."""

    def __init__(self, serial_numbers: list[str], operation_name: str) -> None:
        self.serial_numbers = serial_numbers
        shown = ", ".join(serial_numbers[:10])
        if len(serial_numbers) > 10:
            shown += f" (+{len(serial_numbers) - 10} more)"
        super().__init__(
            f"{len(serial_numbers)} unit(s) skipped the step before {operation_name}: {shown}",
            ErrorType.PENDING_STEP,
            {"serial_numbers": serial_numbers, "operation": operation_name},
        )


class TransientPrintError(DomainError):
    """Raised by print dispatchers; callers downgrade it to a warning."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorType.PRINT)
