"""
Catalog API Routes.

Configuration of operations, process routes and part numbers.
"""

from fastapi import APIRouter, Query, status

from trayflow.api.deps import CatalogServiceDep
from trayflow.application.dtos.catalog_dtos import (
    OperationCreate,
    OperationResponse,
    PartCreate,
    PartResponse,
    RouteCreate,
    RouteResponse,
)

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.post(
    "/operations",
    response_model=OperationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Define an operation",
)
def create_operation(request: OperationCreate, service: CatalogServiceDep) -> OperationResponse:
    return service.define_operation(request)


@router.get("/operations", response_model=list[OperationResponse])
def list_operations(service: CatalogServiceDep) -> list[OperationResponse]:
    return service.list_operations()


@router.post(
    "/routes",
    response_model=RouteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Define a process route",
    description="Steps need distinct operations and orders, and at least one initial operation.",
)
def create_route(request: RouteCreate, service: CatalogServiceDep) -> RouteResponse:
    return service.define_route(request)


@router.get("/routes/{route_id}", response_model=RouteResponse)
def get_route(route_id: int, service: CatalogServiceDep) -> RouteResponse:
    return service.get_route(route_id)


@router.post(
    "/parts",
    response_model=PartResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Define a part number",
)
def create_part(request: PartCreate, service: CatalogServiceDep) -> PartResponse:
    return service.define_part(request)


@router.get("/parts/{product_code}", response_model=PartResponse)
def get_part(product_code: str, service: CatalogServiceDep) -> PartResponse:
    return service.get_part_by_code(product_code)


@router.put(
    "/parts/{part_id}/route",
    response_model=PartResponse,
    summary="Assign or clear a part's route",
)
def assign_route(
    part_id: int,
    service: CatalogServiceDep,
    route_id: int | None = Query(None, description="Omit to make the part non-producible"),
) -> PartResponse:
    return service.assign_route(part_id, route_id)
