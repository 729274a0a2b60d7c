from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "trayflow"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    DATABASE_URL: str = "sqlite:///./trayflow.db"
    SQL_ECHO: bool = False

    # Observability
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

    # Tray batching
    TRAY_CAPACITY: int = 100
    MAX_ORDER_QUANTITY: int = 10000

    # Lot and serial numbering
    LOT_BASE_YEAR: int = 2025
    LOT_BASE_LETTER: str = "K"
    LOT_SEQUENCE_WIDTH: int = 3
    LOT_NUMBER_RETRIES: int = 3
    SERIAL_SEQUENCE_WIDTH: int = 3
    LOT_SERIAL_SUFFIX: str = "M"

    # Print dispatch
    PRINT_SERVICE_URL: str | None = None
    PRINT_TIMEOUT_SECONDS: float = 5.0

    @field_validator("LOT_BASE_LETTER")
    @classmethod
    def _single_uppercase_letter(cls, v: str) -> str:
        if len(v) != 1 or not v.isalpha() or not v.isupper():
            raise ValueError("LOT_BASE_LETTER must be a single uppercase letter")
        return v

    @field_validator("TRAY_CAPACITY", "MAX_ORDER_QUANTITY")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive number")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
