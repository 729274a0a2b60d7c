from pydantic import BaseModel, Field

from trayflow.domain.routing.enums import Readiness


class GenerateTrayRequest(BaseModel):
    """DTO for generating a batch of serials, usually onto a tray."""

    order_number: str = Field(..., min_length=1)
    operation_id: int
    operator_id: str = Field(..., min_length=1, max_length=100)
    tray_id: str | None = Field(None, max_length=50, description="Omitted only for accessories")
    quantity: int = Field(..., description="Requested batch size")


class TrayExport(BaseModel):
    file_name: str
    content: str


class TrayBatchResponse(BaseModel):
    order_number: str
    tray_id: str | None
    serial_numbers: list[str]
    auto_completed: bool = False
    order_closed: bool = False
    export: TrayExport


class TrayUnitView(BaseModel):
    serial_number: str
    current_operation_id: int | None
    is_complete: bool
    readiness: Readiness


class TrayView(BaseModel):
    """A tray as seen from one station."""

    tray_id: str
    order_number: str | None
    operation_id: int
    units: list[TrayUnitView]
    finished: bool = Field(False, description="Every unit already processed here; reprint only")
    marked: int = 0
    order_closed: bool = False
    print_warning: str | None = None


class TrayActionRequest(BaseModel):
    operation_id: int
    operator_id: str = Field(..., min_length=1, max_length=100)
    order_number: str | None = None


class ReprintUnitRequest(BaseModel):
    order_number: str = Field(..., min_length=1)
    suffix: str = Field(..., description="Last three digits of the unit sequence")
