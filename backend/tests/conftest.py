import os
import tempfile

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCRATCH_DIR", tempfile.mkdtemp(prefix="videolens-scratch-"))
os.environ.setdefault("TIKHUB_API_TOKEN", "test-token")
os.environ.setdefault("GOOGLE_DRIVE_CREDENTIALS_PATH", "/nonexistent/drive-service-account.json")

import pytest
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool
from videolens import models  # noqa: F401
from videolens.core import db
from videolens.core.config import settings
from videolens.services import log_publisher


class DummyRedis:
    """collects published log entries instead of talking to redis"""

    def __init__(self):
        self.published = []

    def publish(self, channel, message):
        self.published.append((channel, message))
        return 1


# create in-memory test database shared by the api and the services
@pytest.fixture(name="engine")
def engine_fixture(monkeypatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    monkeypatch.setattr(db, "engine", engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(autouse=True)
def published_logs(monkeypatch):
    redis_client = DummyRedis()
    monkeypatch.setattr(log_publisher, "get_redis_client", lambda: redis_client)
    return redis_client.published


@pytest.fixture
def scratch_root(tmp_path, monkeypatch):
    root = tmp_path / "scratch"
    monkeypatch.setattr(settings, "SCRATCH_DIR", str(root))
    return root


@pytest.fixture
def no_sleep(monkeypatch):
    """record retry waits instead of sleeping"""
    waits = []
    monkeypatch.setattr("videolens.core.errors.time.sleep", lambda seconds: waits.append(seconds))
    return waits
