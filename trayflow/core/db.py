from typing import Any

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from trayflow.core.config import settings


def engine_kwargs(database_url: str) -> dict[str, Any]:
    """Connection options for the configured backend."""
    if database_url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "pool_pre_ping": True,  # Verify connections before use
        "pool_recycle": 3600,  # Recycle connections every hour
        "pool_size": 10,
        "max_overflow": 20,
    }


def build_engine(database_url: str, echo: bool = False) -> Engine:
    return create_engine(database_url, echo=echo, **engine_kwargs(database_url))


engine = build_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)


def get_session_factory(bind: Engine | None = None):
    """Return a callable producing new sessions bound to ``bind``."""
    target = bind or engine

    def factory() -> Session:
        return Session(target)

    return factory


def init_db(bind: Engine | None = None) -> None:
    # make sure all SQLModel tables are imported before creating them
    from trayflow.infrastructure.database import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
