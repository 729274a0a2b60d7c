from collections.abc import Generator
from types import SimpleNamespace

import pytest
from sqlalchemy.engine import Engine

from trayflow.application.dtos.catalog_dtos import (
    OperationCreate,
    PartCreate,
    RouteCreate,
    RouteStepInput,
)
from trayflow.application.dtos.order_dtos import CreateOrderRequest
from trayflow.application.services import (
    CatalogService,
    ContextService,
    OrderService,
    PrintService,
    SerialService,
    StationService,
    TrayService,
)
from trayflow.core.config import Settings
from trayflow.core.db import build_engine, get_session_factory, init_db
from trayflow.domain.routing.enums import SerialGenType
from trayflow.domain.shared.exceptions import TransientPrintError
from trayflow.infrastructure.database.unit_of_work import UnitOfWorkManager
from trayflow.infrastructure.printing import PrintJob, PrintReceipt


class RecordingDispatcher:
    """Print dispatcher double that keeps every job it was handed."""

    def __init__(self) -> None:
        self.calls: list[list[PrintJob]] = []
        self.offline = False

    def dispatch(self, jobs: list[PrintJob]) -> PrintReceipt:
        if self.offline:
            raise TransientPrintError("Print service unreachable: connection refused")
        self.calls.append(list(jobs))
        return PrintReceipt(job_id=f"job-{len(self.calls)}", message="queued")

    @property
    def jobs(self) -> list[PrintJob]:
        return [job for call in self.calls for job in call]


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, DATABASE_URL="sqlite://", PRINT_SERVICE_URL=None)


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def uow_manager(engine: Engine) -> UnitOfWorkManager:
    return UnitOfWorkManager(get_session_factory(engine))


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def service_kwargs(uow_manager: UnitOfWorkManager, settings: Settings) -> dict:
    return {"unit_of_work_manager": uow_manager, "settings": settings}


@pytest.fixture
def print_service(dispatcher: RecordingDispatcher, service_kwargs: dict) -> PrintService:
    return PrintService(dispatcher, **service_kwargs)


@pytest.fixture
def catalog_service(service_kwargs: dict) -> CatalogService:
    return CatalogService(**service_kwargs)


@pytest.fixture
def station_service(service_kwargs: dict) -> StationService:
    return StationService(**service_kwargs)


@pytest.fixture
def order_service(print_service: PrintService, service_kwargs: dict) -> OrderService:
    return OrderService(print_service, **service_kwargs)


@pytest.fixture
def context_service(service_kwargs: dict) -> ContextService:
    return ContextService(**service_kwargs)


@pytest.fixture
def serial_service(
    print_service: PrintService, context_service: ContextService, service_kwargs: dict
) -> SerialService:
    return SerialService(print_service, context_service, **service_kwargs)


@pytest.fixture
def tray_service(print_service: PrintService, service_kwargs: dict) -> TrayService:
    return TrayService(print_service, **service_kwargs)


@pytest.fixture
def line(catalog_service: CatalogService) -> SimpleNamespace:
    """Four-station line: Initial 10, Assemble 20, Test 30, Pack 40 (final)."""
    initial = catalog_service.define_operation(
        OperationCreate(name="Initial", order_index=1, is_initial=True)
    )
    assemble = catalog_service.define_operation(OperationCreate(name="Assemble", order_index=2))
    test = catalog_service.define_operation(
        OperationCreate(name="Test", order_index=3, require_test_log=True)
    )
    pack = catalog_service.define_operation(
        OperationCreate(name="Pack", order_index=4, is_final=True)
    )
    route = catalog_service.define_route(
        RouteCreate(
            name="Main line",
            steps=[
                RouteStepInput(operation_id=initial.id, step_order=10),
                RouteStepInput(operation_id=assemble.id, step_order=20),
                RouteStepInput(operation_id=test.id, step_order=30),
                RouteStepInput(operation_id=pack.id, step_order=40),
            ],
        )
    )
    lot_part = catalog_service.define_part(
        PartCreate(
            part_number="PN-100",
            description="Sensor module",
            product_code="SKU-100",
            serial_mask="@@###-###",
            serial_gen_type=SerialGenType.LOT_BASED,
            process_route_id=route.id,
        )
    )
    accessory_part = catalog_service.define_part(
        PartCreate(
            part_number="PN-200",
            description="Mounting kit",
            product_code="ACC-200",
            serial_mask="@@###-###",
            serial_gen_type=SerialGenType.ACCESSORIES,
            process_route_id=route.id,
        )
    )
    pcb_part = catalog_service.define_part(
        PartCreate(
            part_number="PN-300",
            description="Controller board",
            product_code="PCB-300",
            serial_mask="PCB######",
            serial_gen_type=SerialGenType.PCB_SERIAL,
            process_route_id=route.id,
        )
    )
    return SimpleNamespace(
        initial=initial,
        assemble=assemble,
        test=test,
        pack=pack,
        route=route,
        lot_part=lot_part,
        accessory_part=accessory_part,
        pcb_part=pcb_part,
    )


@pytest.fixture
def make_order(order_service: OrderService, line: SimpleNamespace):
    def _make(sap: str = "4500012345", product_code: str = "SKU-100", quantity: int = 250):
        return order_service.create_order(
            CreateOrderRequest(
                sap_order_number=sap,
                product_code=product_code,
                quantity=quantity,
                active_route_id=line.route.id,
            )
        ).order

    return _make
