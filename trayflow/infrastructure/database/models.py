"""
SQLModel database models.

These tables back the catalog (operations, routes, parts), the order ledger,
the serial registry and the two lock tables (stations and trays).
Timestamps are naive UTC, stored in plain ``DateTime`` columns.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, Text, UniqueConstraint, text
from sqlmodel import Column, Field, SQLModel

from trayflow.domain.routing.enums import OrderStatus, PrintStatus, SerialGenType
from trayflow.utils import utc_now


class OperationBase(SQLModel):
    """Base operation fields."""

    name: str = Field(max_length=100, index=True)
    order_index: int = Field(default=0, ge=0)
    is_initial: bool = Field(default=False)
    is_final: bool = Field(default=False)
    require_test_log: bool = Field(default=False)


class Operation(OperationBase, table=True):
    """A production operation; each physical station runs one."""

    __tablename__ = "operations"

    id: int | None = Field(default=None, primary_key=True)


class StationLock(SQLModel, table=True):
    """
    Occupancy of one station.

    Mutated only through conditional updates keyed on the current owner.
    """

    __tablename__ = "station_locks"

    operation_id: int = Field(foreign_key="operations.id", primary_key=True)
    owner_id: str | None = Field(default=None, max_length=100)
    acquired_at: datetime | None = Field(default=None, sa_type=DateTime)


class ProcessRoute(SQLModel, table=True):
    __tablename__ = "process_routes"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)
    description: str | None = Field(default=None, max_length=500)


class ProcessRouteStep(SQLModel, table=True):
    __tablename__ = "process_route_steps"
    __table_args__ = (
        UniqueConstraint("route_id", "operation_id", name="uq_route_step_operation"),
    )

    id: int | None = Field(default=None, primary_key=True)
    route_id: int = Field(foreign_key="process_routes.id", index=True)
    operation_id: int = Field(foreign_key="operations.id")
    step_order: int = Field(gt=0)


class PartNumberBase(SQLModel):
    """Base part number fields."""

    part_number: str = Field(max_length=50, index=True)
    revision: str | None = Field(default=None, max_length=20)
    description: str | None = Field(default=None, max_length=200)
    product_code: str = Field(max_length=50, unique=True, index=True)
    serial_mask: str = Field(max_length=50)
    serial_gen_type: SerialGenType = Field(default=SerialGenType.LOT_BASED)
    process_route_id: int | None = Field(default=None, foreign_key="process_routes.id")


class PartNumber(PartNumberBase, table=True):
    __tablename__ = "part_numbers"

    id: int | None = Field(default=None, primary_key=True)


class WorkOrder(SQLModel, table=True):
    """
    Work order table model.

    ``order_number`` is the internal lot id; ``sap_order_number`` is the
    external reference several lots may share, but only one of them may be
    OPEN at a time.
    """

    __tablename__ = "work_orders"
    __table_args__ = (
        Index(
            "uq_work_orders_open_sap",
            "sap_order_number",
            unique=True,
            sqlite_where=text("status = 'OPEN'"),
            postgresql_where=text("status = 'OPEN'"),
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    order_number: str = Field(max_length=20, unique=True, index=True)
    sap_order_number: str = Field(max_length=50, index=True)
    part_number_id: int = Field(foreign_key="part_numbers.id", index=True)
    quantity: int = Field(gt=0)
    status: OrderStatus = Field(default=OrderStatus.OPEN, index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class SerialUnit(SQLModel, table=True):
    __tablename__ = "serial_units"

    serial_number: str = Field(max_length=50, primary_key=True)
    order_number: str = Field(max_length=20, index=True)
    part_number_id: int = Field(foreign_key="part_numbers.id")
    current_operation_id: int | None = Field(default=None, foreign_key="operations.id")
    tray_id: str | None = Field(default=None, max_length=50, index=True)
    is_complete: bool = Field(default=False)
    test_registered_at: datetime | None = Field(default=None, sa_type=DateTime)
    test_firmware: str | None = Field(default=None, max_length=50)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class SerialHistory(SQLModel, table=True):
    """Append-only record of a unit passing an operation."""

    __tablename__ = "serial_history"
    __table_args__ = (
        UniqueConstraint("serial_number", "operation_id", name="uq_history_serial_operation"),
    )

    id: int | None = Field(default=None, primary_key=True)
    serial_number: str = Field(
        max_length=50, foreign_key="serial_units.serial_number", index=True
    )
    operation_id: int = Field(foreign_key="operations.id", index=True)
    operator_id: str | None = Field(default=None, max_length=100)
    timestamp: datetime = Field(default_factory=utc_now, sa_type=DateTime, index=True)


class PrintLog(SQLModel, table=True):
    __tablename__ = "print_logs"

    id: int | None = Field(default=None, primary_key=True)
    print_identifier: str = Field(max_length=50, index=True)
    status: PrintStatus
    message: str | None = Field(default=None, max_length=500)
    file_name: str | None = Field(default=None, max_length=200)
    job_id: str | None = Field(default=None, max_length=100)
    job_content: str | None = Field(default=None, sa_column=Column(Text))
    timestamp: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class TrayClaim(SQLModel, table=True):
    """
    One row per physical tray.

    Tray generation updates this row first, which serialises concurrent
    batches on the same tray for the rest of the transaction.
    """

    __tablename__ = "tray_claims"

    tray_id: str = Field(max_length=50, primary_key=True)
    order_number: str | None = Field(default=None, max_length=20)
    claimed_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class TestLog(SQLModel, table=True):
    """Functional test result reported by the test bench."""

    __tablename__ = "test_logs"
    __test__ = False  # not a pytest test class

    id: int | None = Field(default=None, primary_key=True)
    serial_number: str = Field(max_length=50, index=True)
    registered_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)
    firmware: str | None = Field(default=None, max_length=50)
    status: str = Field(default="PASS", max_length=20)
