"""
Unit readiness classification.

A station decides whether a unit may be processed by comparing the step
order of the unit's current operation with its own position on the route.
The functions here are pure: they take anything exposing the attributes
below and never touch storage.

    unit:  is_complete, current_operation_id, serial_number
    step:  operation_id, step_order
"""

from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from trayflow.domain.routing.enums import Readiness
from trayflow.domain.shared.exceptions import PendingStepError, RouteMismatchError


class UnitLike(Protocol):
    serial_number: str
    is_complete: bool
    current_operation_id: int | None


class StepLike(Protocol):
    operation_id: int
    step_order: int


def sorted_steps(steps: Iterable[StepLike]) -> list[StepLike]:
    return sorted(steps, key=lambda step: step.step_order)


def station_index(steps: Sequence[StepLike], operation_id: int) -> int:
    """Position of ``operation_id`` in the sorted steps.

    Raises:
        RouteMismatchError: If the operation is not a step of the route
    """
    for index, step in enumerate(steps):
        if step.operation_id == operation_id:
            return index
    raise RouteMismatchError(
        f"Operation {operation_id} is not a step of the active route",
        {"operation_id": operation_id},
    )


def classify(unit: UnitLike, steps: Iterable[StepLike], operation_id: int) -> Readiness:
    """
    Classify a unit's readiness at the station running ``operation_id``.

    Args:
        unit: Unit being processed
        steps: Route steps, in any order
        operation_id: Operation of the current station

    Returns:
        AHEAD if the unit is complete or already processed here, READY if it
        may be processed, PENDING if it skipped the step before this station.

    Raises:
        RouteMismatchError: If the station's operation is not on the route
    """
    if unit.is_complete or unit.current_operation_id == operation_id:
        return Readiness.AHEAD

    ordered = sorted_steps(steps)
    index = station_index(ordered, operation_id)
    station_order = ordered[index].step_order

    unit_order = next(
        (
            step.step_order
            for step in ordered
            if step.operation_id == unit.current_operation_id
        ),
        0,
    )

    if unit_order >= station_order:
        return Readiness.AHEAD

    if index == 0:
        return Readiness.READY

    previous = ordered[index - 1]
    if unit.current_operation_id == previous.operation_id:
        return Readiness.READY
    if unit_order < previous.step_order:
        return Readiness.PENDING
    # Unit sits on an unmapped step between the predecessor and this station
    return Readiness.READY


def classify_all(
    units: Iterable[UnitLike], steps: Iterable[StepLike], operation_id: int
) -> list[tuple[Any, Readiness]]:
    ordered = sorted_steps(steps)
    return [(unit, classify(unit, ordered, operation_id)) for unit in units]


def ensure_none_pending(
    classified: Iterable[tuple[Any, Readiness]], operation_name: str
) -> None:
    """Reject the whole set when any member is PENDING.

    Raises:
        PendingStepError: Naming every blocking unit
    """
    blocking = [
        unit.serial_number for unit, readiness in classified if readiness.is_blocking
    ]
    if blocking:
        raise PendingStepError(sorted(blocking), operation_name)
