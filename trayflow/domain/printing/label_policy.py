"""
Which label formats each kind of print job leaves out.

Every print in the system goes through this one table, so a station's
labels depend only on the kind of job it sends.
"""

from enum import Enum

from trayflow.domain.routing.enums import LabelType


class PrintJobKind(str, Enum):
    INITIAL_UNIT = "initial_unit"
    FINAL_UNIT = "final_unit"
    UNIT_REPRINT = "unit_reprint"
    TRAY_FINALIZE = "tray_finalize"
    ORDER_LABELS = "order_labels"
    BOX_LABEL = "box_label"


def _all_but(*kept: LabelType) -> tuple[LabelType, ...]:
    return tuple(label for label in LabelType if label not in kept)


EXCLUDED_LABELS: dict[PrintJobKind, tuple[LabelType, ...]] = {
    PrintJobKind.INITIAL_UNIT: (LabelType.NAMEPLATE, LabelType.BOX_LABEL),
    PrintJobKind.FINAL_UNIT: (LabelType.CARTON1, LabelType.CARTON2),
    PrintJobKind.UNIT_REPRINT: (LabelType.CARTON1, LabelType.CARTON2),
    PrintJobKind.TRAY_FINALIZE: _all_but(LabelType.NAMEPLATE),
    PrintJobKind.ORDER_LABELS: (LabelType.NAMEPLATE,),
    PrintJobKind.BOX_LABEL: _all_but(LabelType.BOX_LABEL),
}


def excluded_labels(kind: PrintJobKind) -> list[LabelType]:
    return list(EXCLUDED_LABELS[kind])


def printed_labels(kind: PrintJobKind) -> list[LabelType]:
    excluded = set(EXCLUDED_LABELS[kind])
    return [label for label in LabelType if label not in excluded]
