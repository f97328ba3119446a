"""Engine lifecycle for the conversation store (SQLite by default)."""

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from streamchat.config import Settings, get_settings
from streamchat.core import get_logger

logger = get_logger(__name__)

_engine: Engine | None = None


def _engine_options(settings: Settings) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    if settings.is_sqlite:
        # Sessions are used from the threadpool as well as the event loop
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(pool_size=5, max_overflow=10)
    return options


def _ensure_sqlite_directory(database_url: str) -> None:
    database = make_url(database_url).database
    if not database or database == ":memory:":
        return
    directory = Path(database).parent
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        logger.info("Created database directory", data={"path": str(directory)})


def get_engine() -> Engine:
    """Process-wide engine built from ``DATABASE_URL`` on first use."""
    global _engine
    if _engine is None:
        settings = get_settings()
        if settings.is_sqlite:
            _ensure_sqlite_directory(settings.database_url)
        _engine = create_engine(settings.database_url, **_engine_options(settings))
        logger.info("Database engine created", data={"dialect": _engine.dialect.name})
    return _engine


def init_database() -> None:
    """Create any missing tables; existing tables are left untouched."""
    from streamchat.db import models  # noqa: F401  (register mappers)
    from streamchat.db.base import Base

    Base.metadata.create_all(get_engine())


def verify_database_connection() -> bool:
    """True when the database answers ``SELECT 1``."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Database connection failed", data={"error": str(exc)})
        return False
    return True


def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _engine
    if _engine is None:
        return
    _engine.dispose()
    _engine = None
    logger.info("Database engine disposed")
