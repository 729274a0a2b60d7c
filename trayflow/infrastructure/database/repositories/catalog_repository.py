"""
Catalog repositories: operations, process routes and part numbers.

Reference data is read far more often than written; writes only come from
catalog configuration.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from trayflow.infrastructure.database.models import (
    Operation,
    PartNumber,
    ProcessRoute,
    ProcessRouteStep,
)

from .base import BaseRepository, DatabaseError


class OperationRepository(BaseRepository[Operation]):
    @property
    def entity_class(self):
        return Operation

    def list_ordered(self) -> list[Operation]:
        try:
            statement = select(Operation).order_by(Operation.order_index, Operation.id)
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error listing operations: {str(e)}") from e

    def find_by_ids(self, operation_ids: list[int]) -> list[Operation]:
        if not operation_ids:
            return []
        try:
            statement = select(Operation).where(Operation.id.in_(operation_ids))
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error finding operations: {str(e)}") from e


class RouteRepository(BaseRepository[ProcessRoute]):
    """Repository for process routes and their steps."""

    @property
    def entity_class(self):
        return ProcessRoute

    def find_by_name(self, name: str) -> ProcessRoute | None:
        try:
            statement = select(ProcessRoute).where(ProcessRoute.name == name)
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error finding route {name}: {str(e)}") from e

    def steps_for(self, route_id: int) -> list[ProcessRouteStep]:
        """
        Steps of a route sorted by step order.

        Args:
            route_id: Route identifier

        Returns:
            Ordered list of steps, empty if the route has none

        Raises:
            DatabaseError: If database operation fails
        """
        try:
            statement = (
                select(ProcessRouteStep)
                .where(ProcessRouteStep.route_id == route_id)
                .order_by(ProcessRouteStep.step_order)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading steps of route {route_id}: {str(e)}") from e

    def add_steps(self, steps: list[ProcessRouteStep]) -> list[ProcessRouteStep]:
        for step in steps:
            self.session.add(step)
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error adding route steps: {str(e)}") from e
        return steps


class PartNumberRepository(BaseRepository[PartNumber]):
    @property
    def entity_class(self):
        return PartNumber

    def find_by_product_code(self, product_code: str) -> PartNumber | None:
        try:
            statement = select(PartNumber).where(PartNumber.product_code == product_code)
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error finding part by product code {product_code}: {str(e)}"
            ) from e

    def find_by_ids(self, part_ids: list[int]) -> list[PartNumber]:
        if not part_ids:
            return []
        try:
            statement = (
                select(PartNumber)
                .where(PartNumber.id.in_(part_ids))
                .order_by(PartNumber.id)
            )
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error finding parts: {str(e)}") from e
