"""
Base application service providing common functionality.

This module provides a base class for all application services,
including common validation and transaction management.
"""

from abc import ABC

from trayflow.core.config import Settings, get_settings
from trayflow.domain.shared.exceptions import ValidationError
from trayflow.infrastructure.database.unit_of_work import (
    UnitOfWorkManager,
    get_unit_of_work_manager,
)


class ApplicationServiceBase(ABC):
    """
    Base class for application services.

    Provides common functionality for validation and transaction
    coordination across all application services.
    """

    def __init__(
        self,
        unit_of_work_manager: UnitOfWorkManager | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the application service.

        Args:
            unit_of_work_manager: Creates the transaction of each use case
            settings: Settings override, mainly for tests
        """
        self._uow_manager = unit_of_work_manager or get_unit_of_work_manager()
        self._settings = settings or get_settings()

    def _transaction(self):
        return self._uow_manager.transaction()

    def validate_non_empty_string(self, value: str | None, field_name: str) -> str:
        """
        Validate that a string field is not empty.

        Args:
            value: String value to validate
            field_name: Name of the field for error messages

        Returns:
            The value stripped of surrounding whitespace

        Raises:
            ValidationError: If string is None or empty
        """
        if not value or not value.strip():
            raise ValidationError(field_name, value, "cannot be empty", "REQUIRED")
        return value.strip()

    def validate_quantity(self, value: int | None, field_name: str = "quantity") -> int:
        """
        Validate that a quantity is positive and within the hard cap.

        Raises:
            ValidationError: If quantity is missing, not positive or too large
        """
        if value is None or value <= 0:
            raise ValidationError(
                field_name, value, "must be a positive number", "INVALID_QUANTITY"
            )
        if value > self._settings.MAX_ORDER_QUANTITY:
            raise ValidationError(
                field_name,
                value,
                f"must not exceed {self._settings.MAX_ORDER_QUANTITY}",
                "QUANTITY_LIMIT",
            )
        return value
