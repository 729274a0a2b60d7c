"""
Dependency injection for FastAPI route handlers.

Services are built per request on top of the process-wide unit of work
manager and print dispatcher; tests swap those through
``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from trayflow.application.services import (
    CatalogService,
    ContextService,
    OrderService,
    PrintService,
    SerialService,
    StationService,
    TrayService,
)
from trayflow.core.config import Settings, get_settings
from trayflow.infrastructure.database.unit_of_work import (
    UnitOfWorkManager,
    get_unit_of_work_manager,
)
from trayflow.infrastructure.printing import PrintDispatcher, build_print_dispatcher

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_uow_manager() -> UnitOfWorkManager:
    return get_unit_of_work_manager()


UnitOfWorkManagerDep = Annotated[UnitOfWorkManager, Depends(get_uow_manager)]


@lru_cache
def get_print_dispatcher() -> PrintDispatcher:
    """Process-wide dispatcher, so the HTTP client is reused across requests."""
    return build_print_dispatcher(get_settings())


PrintDispatcherDep = Annotated[PrintDispatcher, Depends(get_print_dispatcher)]


def get_print_service(
    uow_manager: UnitOfWorkManagerDep,
    dispatcher: PrintDispatcherDep,
    settings: SettingsDep,
) -> PrintService:
    return PrintService(dispatcher, unit_of_work_manager=uow_manager, settings=settings)


PrintServiceDep = Annotated[PrintService, Depends(get_print_service)]


def get_catalog_service(
    uow_manager: UnitOfWorkManagerDep, settings: SettingsDep
) -> CatalogService:
    return CatalogService(unit_of_work_manager=uow_manager, settings=settings)


def get_context_service(
    uow_manager: UnitOfWorkManagerDep, settings: SettingsDep
) -> ContextService:
    return ContextService(unit_of_work_manager=uow_manager, settings=settings)


def get_station_service(
    uow_manager: UnitOfWorkManagerDep, settings: SettingsDep
) -> StationService:
    return StationService(unit_of_work_manager=uow_manager, settings=settings)


ContextServiceDep = Annotated[ContextService, Depends(get_context_service)]


def get_order_service(
    printer: PrintServiceDep, uow_manager: UnitOfWorkManagerDep, settings: SettingsDep
) -> OrderService:
    return OrderService(printer, unit_of_work_manager=uow_manager, settings=settings)


def get_serial_service(
    printer: PrintServiceDep,
    context: ContextServiceDep,
    uow_manager: UnitOfWorkManagerDep,
    settings: SettingsDep,
) -> SerialService:
    return SerialService(
        printer, context, unit_of_work_manager=uow_manager, settings=settings
    )


def get_tray_service(
    printer: PrintServiceDep, uow_manager: UnitOfWorkManagerDep, settings: SettingsDep
) -> TrayService:
    return TrayService(printer, unit_of_work_manager=uow_manager, settings=settings)


CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
StationServiceDep = Annotated[StationService, Depends(get_station_service)]
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
SerialServiceDep = Annotated[SerialService, Depends(get_serial_service)]
TrayServiceDep = Annotated[TrayService, Depends(get_tray_service)]
