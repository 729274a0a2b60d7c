"""
Order-related Data Transfer Objects.

This module contains DTOs for order creation, supervision and progress.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from trayflow.domain.routing.enums import OrderStatus


class CreateOrderRequest(BaseModel):
    """DTO for creating a new work order (lot)."""

    sap_order_number: str = Field(..., min_length=1, max_length=50)
    product_code: str = Field(..., min_length=1, max_length=50)
    quantity: int = Field(..., description="Units to produce")
    active_route_id: int = Field(..., description="Route the requesting line runs")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sap_order_number": "4500012345",
                "product_code": "SKU-100",
                "quantity": 250,
                "active_route_id": 1,
            }
        }
    )


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    sap_order_number: str
    part_number_id: int
    quantity: int
    status: OrderStatus
    created_at: datetime


class CreateOrderResponse(BaseModel):
    order: OrderResponse
    print_warning: str | None = None


class UpdateQuantityRequest(BaseModel):
    quantity: int


class OrderProgressResponse(BaseModel):
    order_number: str
    sap_order_number: str
    status: OrderStatus
    quantity: int
    assigned: int
    operation_id: int
    completed_at_station: int
    remaining: int


class PrintOutcome(BaseModel):
    """Result of an explicit print request."""

    identifier: str
    printed: bool
    job_id: str | None = None
    warning: str | None = None
