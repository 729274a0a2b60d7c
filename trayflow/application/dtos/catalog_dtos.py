"""
Catalog Data Transfer Objects.

Requests used to configure operations, routes and parts, and the views
returned for them.
"""

from pydantic import BaseModel, ConfigDict, Field

from trayflow.domain.routing.enums import SerialGenType


class OperationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    order_index: int = Field(0, ge=0, description="Display order on the line")
    is_initial: bool = False
    is_final: bool = False
    require_test_log: bool = Field(
        False, description="Scanned units need a functional test record"
    )


class OperationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    order_index: int
    is_initial: bool
    is_final: bool
    require_test_log: bool


class RouteStepInput(BaseModel):
    operation_id: int
    step_order: int = Field(..., gt=0, description="Sparse ordering, e.g. 10, 20, 30")


class RouteCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    steps: list[RouteStepInput] = Field(..., min_length=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Standard assembly",
                "steps": [
                    {"operation_id": 1, "step_order": 10},
                    {"operation_id": 2, "step_order": 20},
                ],
            }
        }
    )


class RouteStepResponse(BaseModel):
    operation_id: int
    operation_name: str
    step_order: int
    is_initial: bool
    is_final: bool


class RouteResponse(BaseModel):
    id: int
    name: str
    description: str | None
    steps: list[RouteStepResponse]


class PartCreate(BaseModel):
    part_number: str = Field(..., min_length=1, max_length=50)
    revision: str | None = Field(None, max_length=20)
    description: str | None = Field(None, max_length=200)
    product_code: str = Field(..., min_length=1, max_length=50, description="Scanned model / SKU")
    serial_mask: str = Field(
        ..., min_length=1, max_length=50, description="'#' digit, '@' letter, others literal"
    )
    serial_gen_type: SerialGenType = SerialGenType.LOT_BASED
    process_route_id: int | None = None


class PartResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    part_number: str
    revision: str | None
    description: str | None
    product_code: str
    serial_mask: str
    serial_gen_type: SerialGenType
    process_route_id: int | None
