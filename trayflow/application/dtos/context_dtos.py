from pydantic import BaseModel, Field

from trayflow.domain.routing.enums import ResolutionStrategy

from .catalog_dtos import PartResponse
from .order_dtos import OrderResponse


class ResolveRequest(BaseModel):
    scan_token: str = Field(..., min_length=1, max_length=50)
    active_route_id: int


class ResolvedContext(BaseModel):
    """Open orders and their parts matched by a scan."""

    strategy: ResolutionStrategy
    scan_token: str
    tray_id: str | None = None
    orders: list[OrderResponse]
    parts: list[PartResponse]
