import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import APIRoute

from trayflow.api.errors import register_exception_handlers
from trayflow.api.main import api_router
from trayflow.core.config import Settings, get_settings
from trayflow.core.db import get_session_factory, init_db
from trayflow.core.log_config import configure_logging
from trayflow.infrastructure.database import configure_unit_of_work

logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    configure_logging(settings)
    init_db()
    configure_unit_of_work(get_session_factory())
    logger.info(
        f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT}), "
        f"tray capacity {settings.TRAY_CAPACITY}"
    )
    yield
    logger.info("Shutting down application")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="""
    Trayflow - Manufacturing Execution API

    Tracks serialized units and tray batches through ordered process routes.

    * **Stations**: one operator per station at a time
    * **Orders**: lots with generated lot numbers, closed when complete
    * **Trays**: batch generation, station-wide marking and finalization
    * **Serials**: single-unit scans with skipped-step detection
    """,
        version="0.1.0",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
