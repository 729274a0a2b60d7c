"""
Serial API Routes.

Single-unit scans at stations, readiness checks, unit inspection and
functional test results.
"""

from fastapi import APIRouter, Query, Response, status

from trayflow.api.deps import SerialServiceDep, TrayServiceDep
from trayflow.application.dtos.serial_dtos import (
    FunctionalTestCreate,
    MarkUnitRequest,
    MarkUnitResponse,
    ProcessSerialRequest,
    ReadinessResponse,
    ScanRequest,
    ScanResult,
    SerialResponse,
)

router = APIRouter(prefix="/serials", tags=["serials"])


@router.post(
    "/scan",
    response_model=ScanResult,
    summary="Scan a serial at a station",
    description=(
        "Resolves the scanned context, picks the part by serial mask and "
        "processes the unit according to the station's operation."
    ),
)
def scan_serial(request: ScanRequest, service: SerialServiceDep) -> ScanResult:
    return service.scan(request)


@router.post("/initial", response_model=ScanResult)
def process_initial(request: ProcessSerialRequest, service: SerialServiceDep) -> ScanResult:
    return service.process_initial(request)


@router.post("/standard", response_model=ScanResult)
def process_standard(request: ProcessSerialRequest, service: SerialServiceDep) -> ScanResult:
    return service.process_standard(request)


@router.post("/final", response_model=ScanResult)
def process_final(request: ProcessSerialRequest, service: SerialServiceDep) -> ScanResult:
    return service.process_final(request)


@router.get("/{serial_number}", response_model=SerialResponse)
def get_serial(serial_number: str, service: SerialServiceDep) -> SerialResponse:
    return service.get_serial(serial_number)


@router.get("/{serial_number}/readiness", response_model=ReadinessResponse)
def readiness(
    serial_number: str, service: SerialServiceDep, operation_id: int = Query(...)
) -> ReadinessResponse:
    return service.readiness(serial_number, operation_id)


@router.post("/{serial_number}/mark", response_model=MarkUnitResponse)
def mark_unit(
    serial_number: str, request: MarkUnitRequest, service: TrayServiceDep
) -> MarkUnitResponse:
    return service.mark_unit(serial_number, request.operation_id, request.operator_id)


@router.post("/{serial_number}/test-log", status_code=status.HTTP_201_CREATED)
def record_test_log(
    serial_number: str, request: FunctionalTestCreate, service: SerialServiceDep
) -> Response:
    service.record_test_log(serial_number, request)
    return Response(status_code=status.HTTP_201_CREATED)


@router.delete("/{serial_number}", status_code=status.HTTP_204_NO_CONTENT)
def delete_serial(serial_number: str, service: SerialServiceDep) -> Response:
    service.delete_serial(serial_number)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
