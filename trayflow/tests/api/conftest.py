from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from trayflow.api.deps import get_print_dispatcher, get_uow_manager
from trayflow.core.config import get_settings
from trayflow.main import app


@pytest.fixture
def client(uow_manager, dispatcher, settings) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_uow_manager] = lambda: uow_manager
    app.dependency_overrides[get_print_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_settings] = lambda: settings
    # no context manager: the lifespan would initialise the process database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api(settings) -> str:
    return settings.API_V1_STR
