import logging
from functools import lru_cache
from pathlib import Path

from fastapi import Depends
from sqlalchemy.engine import Engine, make_url
from sqlmodel import Session as SQLModelSession  # type: ignore
from sqlmodel import SQLModel, create_engine

from orbitfund.config import settings

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Build an engine for the given URL. SQLite files get their parent directory created."""
    url = make_url(database_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        connect_args = {
            "check_same_thread": False,
            "timeout": 15,
        }
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        database_url,
        echo=echo,
        connect_args=connect_args,
        pool_pre_ping=True,
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Process-wide engine. Overridden in tests via app.dependency_overrides."""
    logger.info("Creating database engine.")
    return create_db_engine(settings.database_url, echo=settings.sqlite_echo_log)


def create_db_and_tables(engine: Engine) -> None:
    """
    Creates database tables based on SQLModel definitions if they don't exist.
    """
    # Registers the table classes on SQLModel.metadata
    from orbitfund.core.models import database  # noqa: F401

    logger.info("Creating database and tables if they don't exist...")
    SQLModel.metadata.create_all(engine)
    logger.info("Database and tables checked/created.")


def get_db_session(engine: Engine = Depends(get_engine)):
    # Closed by FastAPI's dependency injection after the request.
    with SQLModelSession(engine) as session:
        yield session
