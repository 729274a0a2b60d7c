import pytest
from pydantic import ValidationError

from trayflow.core.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.TRAY_CAPACITY == 100
    assert settings.LOT_BASE_LETTER == "K"
    assert settings.LOT_SERIAL_SUFFIX == "M"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TRAY_CAPACITY", "50")
    monkeypatch.setenv("PRINT_SERVICE_URL", "http://labels.local")
    settings = Settings(_env_file=None)
    assert settings.TRAY_CAPACITY == 50
    assert settings.PRINT_SERVICE_URL == "http://labels.local"


@pytest.mark.parametrize("letter", ["k", "KA", "1"])
def test_lot_base_letter_is_validated(letter):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, LOT_BASE_LETTER=letter)


def test_tray_capacity_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, TRAY_CAPACITY=0)
