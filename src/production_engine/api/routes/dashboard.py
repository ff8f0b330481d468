"""Dashboard endpoints for production tracking and editor performance."""

from datetime import datetime

from fastapi import APIRouter, Query
from pydantic import BaseModel

from production_engine.api.deps import (
    EngineConfigDep,
    SnapshotSource,
    SnapshotSourceDep,
    ViewCacheDep,
)
from production_engine.domain.engine_config import EngineConfig
from production_engine.logging import get_logger
from production_engine.services.aggregation import (
    EditorWorkload,
    GlobalStats,
    PendingValidation,
    ProjectSummary,
    build_dashboard,
)
from production_engine.services.performance import EditorPerformance
from production_engine.services.recompute import View
from production_engine.services.view_cache import ViewCache

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])
logger = get_logger(__name__)


# =============================================================================
# Response Models
# =============================================================================


class DashboardResponse(BaseModel):
    """Full production dashboard."""

    generated_at: datetime
    partial: bool
    unavailable: list[str]
    stats: GlobalStats
    projects: list[ProjectSummary]
    editors: list[EditorPerformance]
    workload: list[EditorWorkload]
    pending_validations: list[PendingValidation]


class EditorsResponse(BaseModel):
    """Editor performance records, leaderboard order."""

    editors: list[EditorPerformance]
    partial: bool


class WorkloadResponse(BaseModel):
    """Editor load against nominal capacity."""

    workload: list[EditorWorkload]
    partial: bool


class ProjectsResponse(BaseModel):
    """Per-project video counts."""

    projects: list[ProjectSummary]
    partial: bool


def load_dashboard(
    source: SnapshotSource,
    config: EngineConfig,
    views: ViewCache | None,
) -> DashboardResponse:
    """The published dashboard while it is fresh, otherwise one built from a snapshot."""
    if views is not None:
        cached = views.latest(View.DASHBOARD, DashboardResponse)
        if cached is not None:
            return cached

    view = build_dashboard(source(), config)
    if views is not None and not view.partial:
        views.publish(View.DASHBOARD, view)
    return DashboardResponse(
        generated_at=view.generated_at,
        partial=view.partial,
        unavailable=[c.value for c in view.unavailable],
        stats=view.stats,
        projects=view.projects,
        editors=view.editors,
        workload=view.workload,
        pending_validations=view.pending_validations,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.get(
    "",
    response_model=DashboardResponse,
    summary="Get the production dashboard",
    description="Project summaries, editor performance, workload and global KPIs.",
)
async def get_dashboard(
    source: SnapshotSourceDep,
    config: EngineConfigDep,
    views: ViewCacheDep,
) -> DashboardResponse:
    """Serve the full dashboard."""
    return load_dashboard(source, config, views)


@router.get(
    "/editors",
    response_model=EditorsResponse,
    summary="Get editor performance",
)
async def get_editors(
    source: SnapshotSourceDep,
    config: EngineConfigDep,
    views: ViewCacheDep,
    status: str | None = Query(None, description="Filter by status: active, warning, at_risk"),
) -> EditorsResponse:
    """Editor performance records sorted by XP."""
    dashboard = load_dashboard(source, config, views)
    editors = dashboard.editors
    if status:
        editors = [e for e in editors if e.status == status]
    return EditorsResponse(editors=editors, partial=dashboard.partial)


@router.get(
    "/workload",
    response_model=WorkloadResponse,
    summary="Get editor workload",
)
async def get_workload(
    source: SnapshotSourceDep,
    config: EngineConfigDep,
    views: ViewCacheDep,
) -> WorkloadResponse:
    """Active videos per editor against nominal capacity."""
    dashboard = load_dashboard(source, config, views)
    return WorkloadResponse(workload=dashboard.workload, partial=dashboard.partial)


@router.get(
    "/projects",
    response_model=ProjectsResponse,
    summary="Get project summaries",
)
async def get_projects(
    source: SnapshotSourceDep,
    config: EngineConfigDep,
    views: ViewCacheDep,
) -> ProjectsResponse:
    """Video counts by state for every project."""
    dashboard = load_dashboard(source, config, views)
    return ProjectsResponse(projects=dashboard.projects, partial=dashboard.partial)


@router.get(
    "/stats",
    response_model=GlobalStats,
    summary="Get global KPIs",
)
async def get_stats(
    source: SnapshotSourceDep,
    config: EngineConfigDep,
    views: ViewCacheDep,
) -> GlobalStats:
    """Totals and averages across editors and videos."""
    return load_dashboard(source, config, views).stats
