"""
Catalog application service.

Configures the reference data the routing engine reads: operations (each
with its station lock row), process routes with ordered steps, and part
numbers with their serial masks and route assignments.
"""

import logging

from trayflow.domain.shared.exceptions import ConflictError, NotFoundError, ValidationError
from trayflow.infrastructure.database.models import (
    Operation,
    PartNumber,
    ProcessRoute,
    ProcessRouteStep,
    StationLock,
)

from ..dtos.catalog_dtos import (
    OperationCreate,
    OperationResponse,
    PartCreate,
    PartResponse,
    RouteCreate,
    RouteResponse,
    RouteStepResponse,
)
from .base_service import ApplicationServiceBase

logger = logging.getLogger(__name__)


class CatalogService(ApplicationServiceBase):
    """Application service for catalog configuration and reads."""

    def define_operation(self, request: OperationCreate) -> OperationResponse:
        """
        Create an operation and its free station lock.

        Args:
            request: Operation definition

        Returns:
            Created operation

        Raises:
            ValidationError: If the name is empty
        """
        name = self.validate_non_empty_string(request.name, "name")

        with self._transaction() as uow:
            operation = uow.operations.add(
                Operation(
                    name=name,
                    order_index=request.order_index,
                    is_initial=request.is_initial,
                    is_final=request.is_final,
                    require_test_log=request.require_test_log,
                )
            )
            uow.station_locks.add(StationLock(operation_id=operation.id))
            logger.info(f"Defined operation {operation.id} ({operation.name})")
            return OperationResponse.model_validate(operation)

    def list_operations(self) -> list[OperationResponse]:
        with self._transaction() as uow:
            return [
                OperationResponse.model_validate(operation)
                for operation in uow.operations.list_ordered()
            ]

    def define_route(self, request: RouteCreate) -> RouteResponse:
        """
        Create a process route with its steps.

        Args:
            request: Route definition

        Returns:
            Created route with sorted steps

        Raises:
            ValidationError: If steps repeat an operation or a step order, or
                no step references an initial operation
            NotFoundError: If a step references an unknown operation
            ConflictError: If the route name is taken
        """
        name = self.validate_non_empty_string(request.name, "name")
        operation_ids = [step.operation_id for step in request.steps]
        if len(set(operation_ids)) != len(operation_ids):
            raise ValidationError(
                "steps", None, "an operation may appear only once per route", "DUPLICATE_STEP"
            )
        step_orders = [step.step_order for step in request.steps]
        if len(set(step_orders)) != len(step_orders):
            raise ValidationError(
                "steps", None, "step orders must be distinct", "DUPLICATE_STEP_ORDER"
            )

        with self._transaction() as uow:
            operations = {op.id: op for op in uow.operations.find_by_ids(operation_ids)}
            missing = [op_id for op_id in operation_ids if op_id not in operations]
            if missing:
                raise NotFoundError("Operation", missing[0])
            if not any(operations[op_id].is_initial for op_id in operation_ids):
                raise ValidationError(
                    "steps", None, "route needs a step at an initial operation", "NO_INITIAL_STEP"
                )
            if uow.routes.find_by_name(name):
                raise ConflictError(f"Route '{name}' already exists", {"name": name})

            route = uow.routes.add(ProcessRoute(name=name, description=request.description))
            uow.routes.add_steps(
                [
                    ProcessRouteStep(
                        route_id=route.id,
                        operation_id=step.operation_id,
                        step_order=step.step_order,
                    )
                    for step in request.steps
                ]
            )
            logger.info(f"Defined route {route.id} ({route.name}) with {len(request.steps)} steps")
            return self._route_response(uow, route)

    def get_route(self, route_id: int) -> RouteResponse:
        with self._transaction() as uow:
            route = uow.routes.get_by_id_required(route_id)
            return self._route_response(uow, route)

    def define_part(self, request: PartCreate) -> PartResponse:
        """
        Create a part number.

        Raises:
            NotFoundError: If the assigned route does not exist
            ConflictError: If the product code is taken
        """
        with self._transaction() as uow:
            if request.process_route_id is not None:
                uow.routes.get_by_id_required(request.process_route_id)
            if uow.parts.find_by_product_code(request.product_code):
                raise ConflictError(
                    f"Product code '{request.product_code}' already exists",
                    {"product_code": request.product_code},
                )
            part = uow.parts.add(PartNumber(**request.model_dump()))
            return PartResponse.model_validate(part)

    def assign_route(self, part_id: int, route_id: int | None) -> PartResponse:
        """Assign a route to a part, or clear it to make the part non-producible."""
        with self._transaction() as uow:
            part = uow.parts.get_by_id_required(part_id)
            if route_id is not None:
                uow.routes.get_by_id_required(route_id)
            part.process_route_id = route_id
            uow.parts.add(part)
            return PartResponse.model_validate(part)

    def get_part_by_code(self, product_code: str) -> PartResponse:
        with self._transaction() as uow:
            part = uow.parts.find_by_product_code(product_code)
            if part is None:
                raise NotFoundError("PartNumber", product_code)
            return PartResponse.model_validate(part)

    def _route_response(self, uow, route: ProcessRoute) -> RouteResponse:
        steps = uow.routes.steps_for(route.id)
        operations = {
            op.id: op for op in uow.operations.find_by_ids([s.operation_id for s in steps])
        }
        return RouteResponse(
            id=route.id,
            name=route.name,
            description=route.description,
            steps=[
                RouteStepResponse(
                    operation_id=step.operation_id,
                    operation_name=operations[step.operation_id].name,
                    step_order=step.step_order,
                    is_initial=operations[step.operation_id].is_initial,
                    is_final=operations[step.operation_id].is_final,
                )
                for step in steps
            ],
        )
