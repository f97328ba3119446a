import gc
import json
import os
import tempfile
from pathlib import Path

# Settings are cached on first use; point them at a scratch database first.
_SCRATCH_DIR = tempfile.mkdtemp(prefix="streamchat-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_SCRATCH_DIR}/app.db")
os.environ.setdefault("AI_API_KEY", "sk-test-0000000000000000")
os.environ.setdefault("AI_BASE_URL", "http://llm.test/v1")

import httpx  # noqa: E402
import pytest  # noqa: E402
from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, text  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from streamchat.db import get_db  # noqa: E402
from streamchat.main import create_app  # noqa: E402
from streamchat.providers import ProviderConfigStore, ProviderSettings  # noqa: E402

TEST_SETTINGS = ProviderSettings(
    provider="openai",
    model="gpt-test",
    base_url="http://llm.test/v1",
    api_key="sk-test-0000000000000000",
)


def sse_body(*contents: str, done: bool = True) -> bytes:
    """Chat-completions SSE body streaming ``contents`` as deltas."""
    lines = []
    for content in contents:
        chunk = {"model": "gpt-test", "choices": [{"delta": {"content": content}, "finish_reason": None}]}
        lines.append(f"data: {json.dumps(chunk)}\n\n")
    lines.append('data: {"choices": [{"delta": {}, "finish_reason": "stop"}]}\n\n')
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


@pytest.fixture(scope="session")
def project_root():
    return Path(__file__).resolve().parent.parent.parent


@pytest.fixture
def tmp_db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def engine(tmp_db_path):
    db_url = f"sqlite:///{tmp_db_path}"
    engine = create_engine(
        db_url,
        poolclass=NullPool,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    with engine.connect() as conn:
        conn.execute(text("PRAGMA journal_mode=DELETE;"))
    yield engine
    engine.dispose()


def apply_migrations(db_url, project_root):
    cfg = Config(str(project_root / "backend" / "alembic.ini"))
    cfg.set_main_option("script_location", str(project_root / "backend" / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    cfg.attributes["configure_logger"] = False
    command.upgrade(cfg, "head")


@pytest.fixture
def db_session(engine, tmp_db_path, project_root):
    apply_migrations(f"sqlite:///{tmp_db_path}", project_root)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    session = SessionLocal()
    yield session
    session.close()
    gc.collect()


@pytest.fixture
def provider_handler():
    """Mutable handler behind the mock transport; tests swap ``handler.respond``."""

    class Handler:
        def __init__(self):
            self.requests: list[httpx.Request] = []
            self.respond = lambda request: httpx.Response(
                200,
                content=sse_body("Hello", ", ", "world"),
                headers={"Content-Type": "text/event-stream"},
            )

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return self.respond(request)

    return Handler()


@pytest.fixture
def config_store(provider_handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(provider_handler))
    return ProviderConfigStore(client, TEST_SETTINGS)


@pytest.fixture
def client(db_session, config_store):
    app = create_app()
    app.state.config_store = config_store

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
