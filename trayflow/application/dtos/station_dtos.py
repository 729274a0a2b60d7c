from datetime import datetime

from pydantic import BaseModel, Field

from trayflow.domain.routing.enums import StationState


class EnterStationRequest(BaseModel):
    operator_id: str = Field(..., min_length=1, max_length=100)


class StationLockResponse(BaseModel):
    operation_id: int
    operation_name: str
    state: StationState
    active_operator_id: str | None = None
    acquired_at: datetime | None = None


class ExitStationResponse(BaseModel):
    operation_id: int
    released: bool


class StationActivityEntry(BaseModel):
    serial_number: str
    operator_id: str | None
    timestamp: datetime
