"""
Station API Routes.

Operators enter and leave stations; supervisors watch and force-release
them.
"""

from fastapi import APIRouter

from trayflow.api.deps import StationServiceDep
from trayflow.application.dtos.station_dtos import (
    EnterStationRequest,
    ExitStationResponse,
    StationActivityEntry,
    StationLockResponse,
)

router = APIRouter(prefix="/stations", tags=["stations"])


@router.get(
    "",
    response_model=list[StationLockResponse],
    summary="Station status",
    description="Every operation with its current operator, if any.",
)
def station_status(service: StationServiceDep) -> list[StationLockResponse]:
    return service.station_status()


@router.post("/{operation_id}/enter", response_model=StationLockResponse)
def enter_station(
    operation_id: int, request: EnterStationRequest, service: StationServiceDep
) -> StationLockResponse:
    """Take the station; repeating the call as its holder is harmless."""
    return service.enter(operation_id, request.operator_id)


@router.post("/{operation_id}/exit", response_model=ExitStationResponse)
def exit_station(
    operation_id: int, request: EnterStationRequest, service: StationServiceDep
) -> ExitStationResponse:
    return service.exit(operation_id, request.operator_id)


@router.post("/{operation_id}/force-unlock", response_model=StationLockResponse)
def force_unlock(operation_id: int, service: StationServiceDep) -> StationLockResponse:
    return service.force_unlock(operation_id)


@router.get("/{operation_id}/activity", response_model=list[StationActivityEntry])
def today_activity(operation_id: int, service: StationServiceDep) -> list[StationActivityEntry]:
    return service.today_activity(operation_id)
