"""FastAPI dependencies."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from production_engine.config import get_settings
from production_engine.db.session import get_session
from production_engine.db.snapshot import DatabaseSnapshotLoader
from production_engine.domain.engine_config import EngineConfig
from production_engine.domain.snapshot import Snapshot
from production_engine.services.view_cache import ViewCache, view_cache_from_settings

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]

SnapshotSource = Callable[[], Snapshot]


def get_engine_config() -> EngineConfig:
    """Get the engine configuration built from settings."""
    return EngineConfig.from_settings(get_settings())


def get_snapshot_source() -> SnapshotSource:
    """Load a fresh snapshot of every collection when the route needs one.

    Routes answered from the view cache never call it.
    """
    loader = DatabaseSnapshotLoader()
    return lambda: loader.load(datetime.now(UTC))


def get_view_cache() -> ViewCache | None:
    """Get the published view cache, if enabled."""
    return view_cache_from_settings(get_settings())


EngineConfigDep = Annotated[EngineConfig, Depends(get_engine_config)]
SnapshotSourceDep = Annotated[SnapshotSource, Depends(get_snapshot_source)]
ViewCacheDep = Annotated[ViewCache | None, Depends(get_view_cache)]
