import os
import tempfile

# Keep test runs away from the package directory and the background reaper.
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "chat_relay_test.log"))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["REAPER_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chat_relay.server.clock import get_clock
from chat_relay.server.database import Base, get_db
from chat_relay.server.main import app
from chat_relay.shared.utils import format_clock_time


class FakeClock:
    """Clock whose time only moves when a test says so."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.current = start

    def now(self) -> float:
        return self.current

    def display(self, timestamp: float) -> str:
        return format_clock_time(timestamp)

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def client(session_factory, clock):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def join(client):
    """Join a participant through the API and assert it worked."""

    def _join(name: str) -> None:
        resp = client.post("/participants", json={"name": name})
        assert resp.status_code == 201, resp.text

    return _join
