import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


def is_memory_url(url: str) -> bool:
    """Whether the URL points at a private in-memory SQLite database."""
    return url.startswith("sqlite") and (url.endswith("://") or ":memory:" in url)


def create_store_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine backing a Store.

    In-memory SQLite databases live and die with their connection, so they
    get a single shared connection.
    """
    kwargs = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if is_memory_url(url):
            kwargs["poolclass"] = StaticPool

    engine = create_async_engine(url, **kwargs)

    if url.startswith("sqlite"):

        @event.listens_for(engine.sync_engine, "connect")
        def connect(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    logger.info(f"Store engine created for {url}")
    return engine
