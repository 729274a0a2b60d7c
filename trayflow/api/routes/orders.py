"""
Order API Routes.

Lot creation and supervision: progress, quantity changes, closing,
deletion and order-level labels.
"""

from fastapi import APIRouter, Query, Response, status

from trayflow.api.deps import OrderServiceDep
from trayflow.application.dtos.order_dtos import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderProgressResponse,
    OrderResponse,
    PrintOutcome,
    UpdateQuantityRequest,
)
from trayflow.domain.routing.enums import OrderStatus

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a lot for an SAP order",
)
def create_order(request: CreateOrderRequest, service: OrderServiceDep) -> CreateOrderResponse:
    return service.create_order(request)


@router.get("", response_model=list[OrderResponse])
def list_orders(
    service: OrderServiceDep,
    order_status: OrderStatus | None = Query(None, alias="status"),
) -> list[OrderResponse]:
    return service.list_orders(order_status)


@router.get("/{order_number}", response_model=OrderResponse)
def get_order(order_number: str, service: OrderServiceDep) -> OrderResponse:
    return service.get_order(order_number)


@router.get("/{order_number}/progress", response_model=OrderProgressResponse)
def order_progress(
    order_number: str,
    service: OrderServiceDep,
    operation_id: int = Query(..., description="Station to count completions at"),
) -> OrderProgressResponse:
    return service.order_progress(order_number, operation_id)


@router.put("/{order_number}/quantity", response_model=OrderResponse)
def set_quantity(
    order_number: str, request: UpdateQuantityRequest, service: OrderServiceDep
) -> OrderResponse:
    return service.set_quantity(order_number, request.quantity)


@router.post("/{order_number}/close", response_model=OrderResponse)
def close_order(order_number: str, service: OrderServiceDep) -> OrderResponse:
    return service.close_order(order_number)


@router.delete("/{order_number}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(order_number: str, service: OrderServiceDep) -> Response:
    service.delete_order(order_number)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{order_number}/labels", response_model=PrintOutcome)
def reprint_order_labels(
    order_number: str, service: OrderServiceDep, copies: int = Query(1)
) -> PrintOutcome:
    return service.reprint_order_labels(order_number, copies)


@router.post("/{order_number}/box-label", response_model=PrintOutcome)
def print_box_label(
    order_number: str, service: OrderServiceDep, copies: int = Query(1)
) -> PrintOutcome:
    return service.print_box_label(order_number, copies)
