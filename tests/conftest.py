import pytest
from doubles import FakeRedis
from fastapi.testclient import TestClient

from context import AppContext
from database import create_db_engine, create_tables_with_retry
from models import COUNTER_ROW_ID, VisitorCount
from settings import Settings


def sqlite_engine(path):
    return create_db_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )


@pytest.fixture
def engine(tmp_path):
    engine = sqlite_engine(tmp_path / "test.db")
    create_tables_with_retry(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def broken_engine(tmp_path):
    # Parent directory does not exist, so every connection attempt fails
    engine = sqlite_engine(tmp_path / "missing" / "test.db")
    yield engine
    engine.dispose()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def context(engine, fake_redis):
    ctx = AppContext(engine, fake_redis)
    ctx.store.seed()
    return ctx


@pytest.fixture
def set_count(context):
    def _set(value):
        with context.SessionLocal.begin() as db:
            db.get(VisitorCount, COUNTER_ROW_ID).count = value

    return _set


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        hostname="test-host",
        container_name="test-container",
        seed_demo_users=False,
    )


@pytest.fixture
def client(settings, context):
    from main import create_app

    with TestClient(create_app(settings=settings, context=context)) as c:
        yield c


@pytest.fixture
def broken_client(monkeypatch, settings, broken_engine, fake_redis):
    from main import create_app

    # Skip the startup retries against a database that will never come up
    monkeypatch.setattr("context.create_tables_with_retry", lambda engine: None)

    ctx = AppContext(broken_engine, fake_redis)
    with TestClient(create_app(settings=settings, context=ctx)) as c:
        yield c
