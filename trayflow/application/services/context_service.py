"""
Context resolution.

A station starts by scanning either an SAP order number or a tray label.
Each lookup is an independent strategy; they are tried in order and the
first one that finds an open order wins. Closed lots only matter when no
strategy finds anything open.
"""

import logging
from abc import ABC, abstractmethod

from trayflow.domain.routing.enums import OrderStatus, ResolutionStrategy
from trayflow.domain.routing.route_affinity import check_route_affinity
from trayflow.domain.shared.exceptions import ConflictError, NotFoundError
from trayflow.infrastructure.database.models import WorkOrder

from ..dtos.catalog_dtos import PartResponse
from ..dtos.context_dtos import ResolvedContext
from ..dtos.order_dtos import OrderResponse
from .base_service import ApplicationServiceBase

logger = logging.getLogger(__name__)


class ContextStrategy(ABC):
    name: ResolutionStrategy

    @abstractmethod
    def matched_lots(self, uow, scan_token: str) -> list[WorkOrder]:
        """Lots the token names directly, in any status."""

    def open_orders(self, uow, lots: list[WorkOrder]) -> list[WorkOrder]:
        return [lot for lot in lots if lot.status == OrderStatus.OPEN]


class SapOrderStrategy(ContextStrategy):
    name = ResolutionStrategy.SAP_ORDER

    def matched_lots(self, uow, scan_token: str) -> list[WorkOrder]:
        return uow.orders.find_by_sap_numbers([scan_token])


class TrayStrategy(ContextStrategy):
    """Open lots on a tray, widened to every open lot of their SAP orders."""

    name = ResolutionStrategy.TRAY

    def matched_lots(self, uow, scan_token: str) -> list[WorkOrder]:
        units = uow.serials.find_by_tray(scan_token)
        if not units:
            return []
        return uow.orders.find_by_order_numbers(sorted({u.order_number for u in units}))

    def open_orders(self, uow, lots: list[WorkOrder]) -> list[WorkOrder]:
        # closed lots of a previous occupant must not pull in their SAP order
        sap_numbers = sorted({lot.sap_order_number for lot in super().open_orders(uow, lots)})
        if not sap_numbers:
            return []
        return super().open_orders(uow, uow.orders.find_by_sap_numbers(sap_numbers))


DEFAULT_STRATEGIES: tuple[ContextStrategy, ...] = (SapOrderStrategy(), TrayStrategy())


class ContextService(ApplicationServiceBase):
    def __init__(self, strategies: tuple[ContextStrategy, ...] = DEFAULT_STRATEGIES, **kwargs):
        super().__init__(**kwargs)
        self._strategies = strategies

    def resolve(self, scan_token: str, active_route_id: int) -> ResolvedContext:
        """
        Map a scanned token to its open orders and their parts.

        Args:
            scan_token: SAP order number or tray id
            active_route_id: Route of the requesting line

        Returns:
            Open orders and parts of the first strategy that matched

        Raises:
            NotFoundError: If no strategy matches the token
            ConflictError: If the token only matches closed lots
            RouteMismatchError: If a matched part is not on the active route
        """
        token = self.validate_non_empty_string(scan_token, "scan_token")

        with self._transaction() as uow:
            closed_lots: list[WorkOrder] = []
            for strategy in self._strategies:
                lots = strategy.matched_lots(uow, token)
                open_orders = strategy.open_orders(uow, lots)
                if not open_orders:
                    closed_lots.extend(lots)
                    continue

                parts = uow.parts.find_by_ids(sorted({o.part_number_id for o in open_orders}))
                for part in parts:
                    check_route_affinity(part.product_code, part.process_route_id, active_route_id)

                logger.debug(f"Resolved {token} by {strategy.name.value}: {len(open_orders)} orders")
                return ResolvedContext(
                    strategy=strategy.name,
                    scan_token=token,
                    tray_id=token if strategy.name == ResolutionStrategy.TRAY else None,
                    orders=[OrderResponse.model_validate(o) for o in open_orders],
                    parts=[PartResponse.model_validate(p) for p in parts],
                )

            if closed_lots:
                raise ConflictError(
                    f"Order {closed_lots[0].sap_order_number} is closed",
                    {
                        "scan_token": token,
                        "order_numbers": [lot.order_number for lot in closed_lots],
                    },
                )

        raise NotFoundError("Order or tray", token)
