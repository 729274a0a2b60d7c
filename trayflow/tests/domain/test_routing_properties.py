"""
Property-based tests for the routing rules.

Hypothesis explores route shapes and unit positions that hand-written
cases would miss.
"""

from types import SimpleNamespace

from hypothesis import assume, given, strategies as st

from trayflow.domain.routing.classifier import classify
from trayflow.domain.routing.enums import Readiness
from trayflow.domain.routing.lot_numbers import batch_serials, next_lot_number
from trayflow.domain.routing.serial_mask import matches_mask


@st.composite
def routes(draw):
    """Steps with distinct operations and distinct, sparse step orders."""
    size = draw(st.integers(min_value=1, max_value=8))
    orders = draw(
        st.lists(
            st.integers(min_value=1, max_value=1000), min_size=size, max_size=size, unique=True
        )
    )
    return [
        SimpleNamespace(operation_id=operation_id, step_order=order)
        for operation_id, order in enumerate(orders, start=1)
    ]


@given(routes(), st.data())
def test_unit_at_the_preceding_step_is_ready(steps, data):
    ordered = sorted(steps, key=lambda s: s.step_order)
    assume(len(ordered) > 1)
    index = data.draw(st.integers(min_value=1, max_value=len(ordered) - 1))
    unit = SimpleNamespace(
        serial_number="X", is_complete=False, current_operation_id=ordered[index - 1].operation_id
    )
    assert classify(unit, steps, ordered[index].operation_id) == Readiness.READY


@given(routes(), st.data())
def test_unit_two_or_more_steps_behind_is_pending(steps, data):
    ordered = sorted(steps, key=lambda s: s.step_order)
    assume(len(ordered) > 2)
    station = data.draw(st.integers(min_value=2, max_value=len(ordered) - 1))
    position = data.draw(st.integers(min_value=0, max_value=station - 2))
    unit = SimpleNamespace(
        serial_number="X", is_complete=False, current_operation_id=ordered[position].operation_id
    )
    assert classify(unit, steps, ordered[station].operation_id) == Readiness.PENDING


@given(routes(), st.data())
def test_unit_at_or_past_the_station_is_ahead(steps, data):
    ordered = sorted(steps, key=lambda s: s.step_order)
    station = data.draw(st.integers(min_value=0, max_value=len(ordered) - 1))
    position = data.draw(st.integers(min_value=station, max_value=len(ordered) - 1))
    unit = SimpleNamespace(
        serial_number="X", is_complete=False, current_operation_id=ordered[position].operation_id
    )
    assert classify(unit, steps, ordered[station].operation_id) == Readiness.AHEAD


@given(
    st.lists(st.integers(min_value=1, max_value=999), unique=True, max_size=20),
)
def test_next_lot_number_is_unused(sequences):
    existing = [f"KA{seq:03d}" for seq in sequences]
    assert next_lot_number("KA", existing) not in existing


@given(
    st.integers(min_value=1, max_value=900),
    st.integers(min_value=1, max_value=99),
)
def test_generated_batch_serials_fit_the_lot_mask(first, count):
    for serial in batch_serials("KC012", first, count):
        assert matches_mask(serial, "@@###-###")
