"""Session factory and the ``get_db`` request dependency."""

from collections.abc import Iterator

from sqlalchemy.orm import Session, sessionmaker

from streamchat.db.engine import get_engine

_session_factory: sessionmaker[Session] | None = None


def get_session_factory() -> sessionmaker[Session]:
    """Factory bound to the current engine, rebuilt if the engine was replaced."""
    global _session_factory
    engine = get_engine()
    if _session_factory is None or _session_factory.kw.get("bind") is not engine:
        # Objects stay readable after commit; responses are built from them.
        _session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return _session_factory


def get_db() -> Iterator[Session]:
    """Yield one session per request and close it afterwards."""
    with get_session_factory()() as session:
        yield session
