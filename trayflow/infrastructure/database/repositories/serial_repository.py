"""
Serial registry repository.

Owns SerialUnit rows together with their append-only history. Batch writes
are single multi-row statements so a tray is either fully written or not at
all, and unit moves always update the unit and its history in the same
session.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, insert, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from trayflow.domain.shared.exceptions import NotFoundError
from trayflow.infrastructure.database.models import SerialHistory, SerialUnit

from .base import BaseRepository, DatabaseError


class SerialRepository(BaseRepository[SerialUnit]):
    """Repository for serial units and their history."""

    @property
    def entity_class(self):
        return SerialUnit

    def get_required(self, serial_number: str) -> SerialUnit:
        unit = self.get_by_id(serial_number)
        if unit is None:
            raise NotFoundError("SerialUnit", serial_number)
        return unit

    def count_for_order(self, order_number: str) -> int:
        try:
            statement = (
                select(func.count())
                .select_from(SerialUnit)
                .where(SerialUnit.order_number == order_number)
            )
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error counting serials of {order_number}: {str(e)}") from e

    def find_by_order(self, order_number: str) -> list[SerialUnit]:
        try:
            statement = (
                select(SerialUnit)
                .where(SerialUnit.order_number == order_number)
                .order_by(SerialUnit.serial_number)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error finding serials of {order_number}: {str(e)}") from e

    def find_by_tray(
        self, tray_id: str, order_number: str | None = None
    ) -> list[SerialUnit]:
        """
        Units carried on a tray, optionally restricted to one order.

        Args:
            tray_id: Physical tray identifier
            order_number: Restrict to this lot when given

        Returns:
            Units sorted by serial number

        Raises:
            DatabaseError: If database operation fails
        """
        try:
            statement = select(SerialUnit).where(SerialUnit.tray_id == tray_id)
            if order_number is not None:
                statement = statement.where(SerialUnit.order_number == order_number)
            statement = statement.order_by(SerialUnit.serial_number)
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error finding serials on tray {tray_id}: {str(e)}") from e

    def blocking_order_for_tray(self, tray_id: str, order_number: str) -> str | None:
        """Another order that still has incomplete units on the tray, if any."""
        try:
            statement = (
                select(SerialUnit.order_number)
                .where(SerialUnit.tray_id == tray_id)
                .where(SerialUnit.is_complete == False)  # noqa: E712
                .where(SerialUnit.order_number != order_number)
                .limit(1)
            )
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error checking tray {tray_id}: {str(e)}") from e

    def insert_units(self, rows: list[dict[str, Any]]) -> None:
        """Insert many units with one multi-row statement."""
        if rows:
            self._execute(insert(SerialUnit).values(rows), "insert_units")

    def insert_history(self, rows: list[dict[str, Any]]) -> None:
        """Append many history entries with one multi-row statement."""
        if rows:
            self._execute(insert(SerialHistory).values(rows), "insert_history")

    def move_units(
        self,
        serial_numbers: list[str],
        operation_id: int,
        complete: bool = False,
    ) -> int:
        """
        Set the current operation of many units in one statement.

        Args:
            serial_numbers: Units to move
            operation_id: New current operation
            complete: Also mark the units complete

        Returns:
            Number of rows updated
        """
        if not serial_numbers:
            return 0
        values: dict[str, Any] = {"current_operation_id": operation_id}
        if complete:
            values["is_complete"] = True
        statement = (
            update(SerialUnit)
            .where(SerialUnit.serial_number.in_(serial_numbers))
            .where(SerialUnit.is_complete == False)  # noqa: E712
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        moved = self._execute(statement, "move_units").rowcount
        self.session.expire_all()
        return moved

    def record_test_result(
        self, serial_number: str, registered_at: datetime, firmware: str | None
    ) -> None:
        statement = (
            update(SerialUnit)
            .where(SerialUnit.serial_number == serial_number)
            .values(test_registered_at=registered_at, test_firmware=firmware)
            .execution_options(synchronize_session=False)
        )
        self._execute(statement, "record_test_result")
        self.session.expire_all()

    def serials_with_history_at(
        self, serial_numbers: list[str], operation_id: int
    ) -> set[str]:
        if not serial_numbers:
            return set()
        try:
            statement = (
                select(SerialHistory.serial_number)
                .where(SerialHistory.serial_number.in_(serial_numbers))
                .where(SerialHistory.operation_id == operation_id)
            )
            return set(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error reading history: {str(e)}") from e

    def has_history_at(self, serial_number: str, operation_id: int) -> bool:
        return bool(self.serials_with_history_at([serial_number], operation_id))

    def history_for(self, serial_number: str) -> list[SerialHistory]:
        try:
            statement = (
                select(SerialHistory)
                .where(SerialHistory.serial_number == serial_number)
                .order_by(SerialHistory.id)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error reading history of {serial_number}: {str(e)}") from e

    def history_since(self, operation_id: int, since: datetime) -> list[SerialHistory]:
        try:
            statement = (
                select(SerialHistory)
                .where(SerialHistory.operation_id == operation_id)
                .where(SerialHistory.timestamp >= since)
                .order_by(SerialHistory.timestamp.desc(), SerialHistory.id.desc())
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error reading station activity: {str(e)}") from e

    def completed_at_station(self, order_number: str, operation_id: int) -> int:
        """
        Count units of an order whose last history entry is at the operation.

        Args:
            order_number: Lot to count
            operation_id: Operation the last entry must reference

        Returns:
            Number of matching units
        """
        try:
            last_entry = (
                select(func.max(SerialHistory.id).label("last_id"))
                .join(SerialUnit, SerialUnit.serial_number == SerialHistory.serial_number)
                .where(SerialUnit.order_number == order_number)
                .group_by(SerialHistory.serial_number)
                .subquery()
            )
            statement = (
                select(func.count())
                .select_from(SerialHistory)
                .join(last_entry, SerialHistory.id == last_entry.c.last_id)
                .where(SerialHistory.operation_id == operation_id)
            )
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error counting completed units of {order_number}: {str(e)}"
            ) from e

    def delete_with_history(self, serial_number: str) -> bool:
        self._execute(
            delete(SerialHistory).where(SerialHistory.serial_number == serial_number),
            "delete_history",
        )
        result = self._execute(
            delete(SerialUnit).where(SerialUnit.serial_number == serial_number),
            "delete_serial",
        )
        self.session.expire_all()
        return result.rowcount == 1
