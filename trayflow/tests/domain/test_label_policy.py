import pytest

from trayflow.domain.printing.label_policy import (
    EXCLUDED_LABELS,
    PrintJobKind,
    excluded_labels,
    printed_labels,
)
from trayflow.domain.routing.enums import LabelType


def test_every_job_kind_has_an_entry():
    assert set(EXCLUDED_LABELS) == set(PrintJobKind)


@pytest.mark.parametrize(
    "kind, printed",
    [
        (PrintJobKind.INITIAL_UNIT, [LabelType.CARTON1, LabelType.CARTON2]),
        (PrintJobKind.FINAL_UNIT, [LabelType.NAMEPLATE, LabelType.BOX_LABEL]),
        (PrintJobKind.UNIT_REPRINT, [LabelType.NAMEPLATE, LabelType.BOX_LABEL]),
        (PrintJobKind.TRAY_FINALIZE, [LabelType.NAMEPLATE]),
        (
            PrintJobKind.ORDER_LABELS,
            [LabelType.CARTON1, LabelType.CARTON2, LabelType.BOX_LABEL],
        ),
        (PrintJobKind.BOX_LABEL, [LabelType.BOX_LABEL]),
    ],
)
def test_printed_labels(kind, printed):
    assert printed_labels(kind) == printed


def test_excluded_and_printed_partition_the_label_types():
    for kind in PrintJobKind:
        assert sorted(excluded_labels(kind) + printed_labels(kind)) == sorted(LabelType)
