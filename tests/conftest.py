"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_BROKER_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_RESULT_BACKEND"] = "redis://localhost:6379/1"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["VIEW_CACHE_ENABLED"] = "false"

from production_engine.domain.engine_config import EngineConfig  # noqa: E402
from production_engine.domain.enums import TeamRole, VideoStatus  # noqa: E402
from production_engine.domain.models import (  # noqa: E402
    ClientProfile,
    EditorStat,
    Project,
    TeamMember,
    Video,
)
from production_engine.domain.snapshot import Snapshot  # noqa: E402
from production_engine.services.view_cache import ViewCache  # noqa: E402

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """A fixed evaluation instant in the middle of June 2025."""
    return NOW


@pytest.fixture
def config() -> EngineConfig:
    """Default engine configuration."""
    return EngineConfig()


@pytest.fixture
def make_project() -> Callable[..., Project]:
    def factory(**kwargs: Any) -> Project:
        kwargs.setdefault("id", uuid4())
        kwargs.setdefault("title", "Spring campaign")
        return Project(**kwargs)

    return factory


@pytest.fixture
def make_video() -> Callable[..., Video]:
    def factory(**kwargs: Any) -> Video:
        kwargs.setdefault("id", uuid4())
        kwargs.setdefault("project_id", uuid4())
        kwargs.setdefault("title", "Reel")
        kwargs.setdefault("status", VideoStatus.NEW)
        return Video(**kwargs)

    return factory


@pytest.fixture
def make_member() -> Callable[..., TeamMember]:
    def factory(**kwargs: Any) -> TeamMember:
        kwargs.setdefault("user_id", uuid4())
        kwargs.setdefault("full_name", "Sam Editor")
        kwargs.setdefault("role", TeamRole.EDITOR)
        return TeamMember(**kwargs)

    return factory


@pytest.fixture
def make_stat() -> Callable[..., EditorStat]:
    def factory(**kwargs: Any) -> EditorStat:
        kwargs.setdefault("user_id", uuid4())
        return EditorStat(**kwargs)

    return factory


@pytest.fixture
def make_client() -> Callable[..., ClientProfile]:
    def factory(**kwargs: Any) -> ClientProfile:
        kwargs.setdefault("user_id", uuid4())
        kwargs.setdefault("company_name", "Acme")
        return ClientProfile(**kwargs)

    return factory


@pytest.fixture
def empty_snapshot(now: datetime) -> Snapshot:
    """A snapshot with every collection empty."""
    return Snapshot(taken_at=now)


@pytest.fixture
def db() -> Generator[None, None, None]:
    """Create the schema on the in-memory SQLite engine for one test."""
    from production_engine.db.models import Base
    from production_engine.db.session import engine

    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="session")
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from production_engine.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def serve_snapshot() -> Generator[Callable[[Snapshot], None], None, None]:
    """Make API routes read the given snapshot instead of the database."""
    from production_engine.api.deps import get_snapshot_source
    from production_engine.main import app

    def install(snapshot: Snapshot) -> None:
        app.dependency_overrides[get_snapshot_source] = lambda: lambda: snapshot

    yield install
    app.dependency_overrides.clear()


class FakeRedis:
    """Dict-backed stand-in for the Redis commands the view cache uses."""

    def __init__(self) -> None:
        self.values: dict[str, bytes] = {}
        self.ttls: dict[str, int | None] = {}

    def get(self, key: str) -> bytes | None:
        return self.values.get(key)

    def set(self, key: str, value: bytes, ex: int | None = None) -> bool:
        self.values[key] = value
        self.ttls[key] = ex
        return True


@pytest.fixture
def view_cache() -> ViewCache:
    """A view cache over an in-memory Redis double."""
    return ViewCache(FakeRedis(), ttl_seconds=300)


@pytest.fixture
def serve_view_cache(view_cache) -> Generator[ViewCache, None, None]:
    """Make API routes read and publish through the given view cache."""
    from production_engine.api.deps import get_view_cache
    from production_engine.main import app

    app.dependency_overrides[get_view_cache] = lambda: view_cache
    yield view_cache
    app.dependency_overrides.pop(get_view_cache, None)
