"""
Tray API Routes.

Batch generation, station-wide marking, finalization and reprints of
trays.
"""

from fastapi import APIRouter, Query, Response, status

from trayflow.api.deps import TrayServiceDep
from trayflow.application.dtos.order_dtos import PrintOutcome
from trayflow.application.dtos.tray_dtos import (
    GenerateTrayRequest,
    ReprintUnitRequest,
    TrayActionRequest,
    TrayBatchResponse,
    TrayView,
)

router = APIRouter(prefix="/trays", tags=["trays"])


@router.post(
    "/generate",
    response_model=TrayBatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate a batch of serials",
    description="Accessory batches may omit the tray and complete immediately.",
)
def generate_tray(request: GenerateTrayRequest, service: TrayServiceDep) -> TrayBatchResponse:
    return service.generate(request)


@router.get("/{tray_id}", response_model=TrayView)
def load_tray(
    tray_id: str,
    service: TrayServiceDep,
    order_number: str = Query(...),
    operation_id: int = Query(...),
) -> TrayView:
    return service.load(tray_id, order_number, operation_id)


@router.post("/{tray_id}/mark-all", response_model=TrayView)
def mark_all(tray_id: str, request: TrayActionRequest, service: TrayServiceDep) -> TrayView:
    return service.mark_all(tray_id, request)


@router.post("/{tray_id}/finalize", response_model=TrayView)
def finalize_tray(
    tray_id: str, request: TrayActionRequest, service: TrayServiceDep
) -> TrayView:
    return service.finalize_tray(tray_id, request)


@router.post("/{tray_id}/reprint", response_model=PrintOutcome)
def reprint_unit(
    tray_id: str, request: ReprintUnitRequest, service: TrayServiceDep
) -> PrintOutcome:
    return service.reprint_unit(tray_id, request)


@router.get("/{tray_id}/export", response_class=Response)
def export_tray(
    tray_id: str, service: TrayServiceDep, order_number: str = Query(...)
) -> Response:
    export = service.export_tray(tray_id, order_number)
    return Response(
        content=export.content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export.file_name}"'},
    )
