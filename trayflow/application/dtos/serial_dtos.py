from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from trayflow.domain.routing.enums import Readiness, ScanStatus


class ScanRequest(BaseModel):
    """A serial scanned at a station within a resolved context."""

    serial_number: str = Field(..., min_length=1, max_length=50)
    context_token: str = Field(..., min_length=1, description="SAP order or tray scanned first")
    operation_id: int
    operator_id: str = Field(..., min_length=1, max_length=100)
    active_route_id: int


class ProcessSerialRequest(BaseModel):
    serial_number: str = Field(..., min_length=1, max_length=50)
    order_number: str = Field(..., min_length=1)
    operation_id: int
    operator_id: str = Field(..., min_length=1, max_length=100)


class ScanResult(BaseModel):
    serial_number: str
    order_number: str
    operation_id: int
    status: ScanStatus
    is_complete: bool
    order_closed: bool = False
    print_warning: str | None = None


class SerialHistoryEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    operation_id: int
    operator_id: str | None
    timestamp: datetime


class SerialResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    serial_number: str
    order_number: str
    part_number_id: int
    current_operation_id: int | None
    tray_id: str | None
    is_complete: bool
    test_registered_at: datetime | None
    test_firmware: str | None
    history: list[SerialHistoryEntry] = Field(default_factory=list)


class ReadinessResponse(BaseModel):
    serial_number: str
    operation_id: int
    readiness: Readiness


class MarkUnitRequest(BaseModel):
    operation_id: int
    operator_id: str = Field(..., min_length=1, max_length=100)


class MarkUnitResponse(BaseModel):
    serial_number: str
    operation_id: int
    marked: bool


class FunctionalTestCreate(BaseModel):
    """Functional test result reported by a test bench."""

    firmware: str | None = Field(None, max_length=50)
    status: str = Field("PASS", max_length=20)
    registered_at: datetime | None = None
