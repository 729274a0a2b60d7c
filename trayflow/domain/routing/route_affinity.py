from trayflow.domain.shared.exceptions import RouteMismatchError


def check_route_affinity(
    product_code: str, process_route_id: int | None, active_route_id: int
) -> None:
    """
    A part is producible on a line only when its assigned route is the
    route the line runs.

    Raises:
        RouteMismatchError: If the part has no route or a different one
    """
    if process_route_id is None:
        raise RouteMismatchError(
            f"Model {product_code} has no process route and cannot be produced",
            {"product_code": product_code, "active_route_id": active_route_id},
        )
    if process_route_id != active_route_id:
        raise RouteMismatchError(
            f"Model {product_code} belongs to route {process_route_id}, "
            f"not the active route {active_route_id}",
            {
                "product_code": product_code,
                "part_route_id": process_route_id,
                "active_route_id": active_route_id,
            },
        )
