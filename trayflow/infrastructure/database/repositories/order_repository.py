"""
Work order repository.

Status changes are conditional updates so an order can never be closed
twice or reopened by a concurrent writer.
"""

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from trayflow.domain.routing.enums import OrderStatus
from trayflow.domain.shared.exceptions import NotFoundError
from trayflow.infrastructure.database.models import WorkOrder

from .base import BaseRepository, DatabaseError


class WorkOrderRepository(BaseRepository[WorkOrder]):
    """
    Repository implementation for WorkOrder entities.

    Provides lookups by internal lot number and external SAP reference,
    lot number sequencing support and guarded status transitions.
    """

    @property
    def entity_class(self):
        return WorkOrder

    def find_by_order_number(self, order_number: str) -> WorkOrder | None:
        try:
            statement = select(WorkOrder).where(WorkOrder.order_number == order_number)
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error finding order by number {order_number}: {str(e)}"
            ) from e

    def find_by_order_number_required(self, order_number: str) -> WorkOrder:
        order = self.find_by_order_number(order_number)
        if order is None:
            raise NotFoundError("WorkOrder", order_number)
        return order

    def find_by_order_numbers(self, order_numbers: list[str]) -> list[WorkOrder]:
        if not order_numbers:
            return []
        try:
            statement = (
                select(WorkOrder)
                .where(WorkOrder.order_number.in_(order_numbers))
                .order_by(WorkOrder.created_at, WorkOrder.id)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error finding orders: {str(e)}") from e

    def find_by_sap_numbers(self, sap_order_numbers: list[str]) -> list[WorkOrder]:
        """
        All orders, in any status, sharing one of the SAP references.

        Args:
            sap_order_numbers: External order references

        Returns:
            Orders sorted by creation time

        Raises:
            DatabaseError: If database operation fails
        """
        if not sap_order_numbers:
            return []
        try:
            statement = (
                select(WorkOrder)
                .where(WorkOrder.sap_order_number.in_(sap_order_numbers))
                .order_by(WorkOrder.created_at, WorkOrder.id)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error finding orders by SAP number: {str(e)}") from e

    def find_open_by_sap(self, sap_order_number: str) -> list[WorkOrder]:
        return [
            order
            for order in self.find_by_sap_numbers([sap_order_number])
            if order.status == OrderStatus.OPEN
        ]

    def find_by_status(self, status: OrderStatus | None = None) -> list[WorkOrder]:
        try:
            statement = select(WorkOrder).order_by(WorkOrder.created_at.desc())
            if status is not None:
                statement = statement.where(WorkOrder.status == status)
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error listing orders: {str(e)}") from e

    def lot_numbers_with_prefix(self, prefix: str) -> list[str]:
        try:
            statement = select(WorkOrder.order_number).where(
                WorkOrder.order_number.startswith(prefix)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error reading lot numbers for {prefix}: {str(e)}") from e

    def close(self, order_number: str) -> bool:
        """
        Close an open order.

        Returns:
            True if this call closed it, False if it was already closed
        """
        statement = (
            update(WorkOrder)
            .where(WorkOrder.order_number == order_number)
            .where(WorkOrder.status == OrderStatus.OPEN)
            .values(status=OrderStatus.CLOSED)
            .execution_options(synchronize_session=False)
        )
        closed = self._execute(statement, "close").rowcount == 1
        self.session.expire_all()
        return closed

    def reserve(self, order_number: str) -> bool:
        """
        Write-lock an open order row until the transaction ends.

        Assignments count the order's units and then insert new ones; holding
        the row keeps concurrent assignments from both passing the count.

        Returns:
            True if the order is open and now held, False if it is closed
        """
        statement = (
            update(WorkOrder)
            .where(WorkOrder.order_number == order_number)
            .where(WorkOrder.status == OrderStatus.OPEN)
            .values(quantity=WorkOrder.quantity)
            .execution_options(synchronize_session=False)
        )
        reserved = self._execute(statement, "reserve").rowcount == 1
        self.session.expire_all()
        return reserved

    def set_quantity(self, order_number: str, quantity: int) -> bool:
        statement = (
            update(WorkOrder)
            .where(WorkOrder.order_number == order_number)
            .where(WorkOrder.status == OrderStatus.OPEN)
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        updated = self._execute(statement, "set_quantity").rowcount == 1
        self.session.expire_all()
        return updated
