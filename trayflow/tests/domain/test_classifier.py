"""
Tests for unit readiness classification.

Route under test: Initial (op 1, step 10), Assemble (op 2, step 20),
Test (op 3, step 30), Pack (op 4, step 40).
"""

from types import SimpleNamespace

import pytest

from trayflow.domain.routing.classifier import (
    classify,
    classify_all,
    ensure_none_pending,
    station_index,
)
from trayflow.domain.routing.enums import Readiness
from trayflow.domain.shared.exceptions import PendingStepError, RouteMismatchError

INITIAL, ASSEMBLE, TEST, PACK = 1, 2, 3, 4


@pytest.fixture
def steps():
    # deliberately unsorted
    return [
        SimpleNamespace(operation_id=TEST, step_order=30),
        SimpleNamespace(operation_id=INITIAL, step_order=10),
        SimpleNamespace(operation_id=PACK, step_order=40),
        SimpleNamespace(operation_id=ASSEMBLE, step_order=20),
    ]


def unit(current: int | None, complete: bool = False, serial: str = "KA001-001M"):
    return SimpleNamespace(
        serial_number=serial, current_operation_id=current, is_complete=complete
    )


class TestClassify:
    def test_unit_at_previous_step_is_ready(self, steps):
        assert classify(unit(ASSEMBLE), steps, TEST) == Readiness.READY

    def test_unit_at_this_station_is_ahead(self, steps):
        assert classify(unit(TEST), steps, TEST) == Readiness.AHEAD

    def test_unit_past_this_station_is_ahead(self, steps):
        assert classify(unit(PACK), steps, ASSEMBLE) == Readiness.AHEAD

    def test_complete_unit_is_ahead_everywhere(self, steps):
        for operation_id in (INITIAL, ASSEMBLE, TEST, PACK):
            assert classify(unit(PACK, complete=True), steps, operation_id) == Readiness.AHEAD

    def test_unit_that_skipped_a_step_is_pending(self, steps):
        """A unit still at Initial cannot be processed at Test."""
        assert classify(unit(INITIAL), steps, TEST) == Readiness.PENDING

    def test_first_station_accepts_units_without_position(self, steps):
        assert classify(unit(None), steps, INITIAL) == Readiness.READY

    def test_unit_without_position_is_pending_later_on(self, steps):
        assert classify(unit(None), steps, ASSEMBLE) == Readiness.PENDING

    def test_unit_on_an_operation_outside_the_route(self, steps):
        # unknown positions count as before the first step
        assert classify(unit(99), steps, INITIAL) == Readiness.READY
        assert classify(unit(99), steps, PACK) == Readiness.PENDING

    def test_station_not_on_route_is_rejected(self, steps):
        with pytest.raises(RouteMismatchError):
            classify(unit(INITIAL), steps, 42)

    def test_gaps_in_step_order_do_not_matter(self):
        sparse = [
            SimpleNamespace(operation_id=INITIAL, step_order=5),
            SimpleNamespace(operation_id=PACK, step_order=500),
        ]
        assert classify(unit(INITIAL), sparse, PACK) == Readiness.READY


class TestStationIndex:
    def test_index_in_sorted_steps(self, steps):
        ordered = sorted(steps, key=lambda s: s.step_order)
        assert station_index(ordered, TEST) == 2

    def test_unknown_operation(self, steps):
        with pytest.raises(RouteMismatchError) as exc_info:
            station_index(steps, 42)
        assert exc_info.value.details["operation_id"] == 42


class TestTrayPolicy:
    def test_classify_all_keeps_unit_order(self, steps):
        units = [unit(ASSEMBLE, serial="A"), unit(TEST, serial="B")]
        classified = classify_all(units, steps, TEST)
        assert [(u.serial_number, r) for u, r in classified] == [
            ("A", Readiness.READY),
            ("B", Readiness.AHEAD),
        ]

    def test_one_pending_member_rejects_the_set(self, steps):
        units = [
            unit(ASSEMBLE, serial="KA001-002M"),
            unit(INITIAL, serial="KA001-003M"),
            unit(INITIAL, serial="KA001-001M"),
        ]
        classified = classify_all(units, steps, TEST)

        with pytest.raises(PendingStepError) as exc_info:
            ensure_none_pending(classified, "Test")

        assert exc_info.value.details["serial_numbers"] == ["KA001-001M", "KA001-003M"]
        assert exc_info.value.details["operation"] == "Test"

    def test_ready_and_ahead_members_pass(self, steps):
        classified = classify_all([unit(ASSEMBLE), unit(PACK, complete=True)], steps, TEST)
        ensure_none_pending(classified, "Test")
