from fastapi import APIRouter

from trayflow.api.deps import ContextServiceDep
from trayflow.application.dtos.context_dtos import ResolvedContext, ResolveRequest

router = APIRouter(prefix="/context", tags=["context"])


@router.post(
    "/resolve",
    response_model=ResolvedContext,
    summary="Resolve a scanned SAP order or tray",
)
def resolve_context(request: ResolveRequest, service: ContextServiceDep) -> ResolvedContext:
    return service.resolve(request.scan_token, request.active_route_id)
