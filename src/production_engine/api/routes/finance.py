"""Finance endpoints: client profitability, team earnings and totals."""

from dataclasses import replace
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from production_engine.api.deps import (
    EngineConfigDep,
    SnapshotSource,
    SnapshotSourceDep,
    ViewCacheDep,
)
from production_engine.domain.engine_config import EngineConfig
from production_engine.domain.snapshot import Snapshot
from production_engine.logging import get_logger
from production_engine.services.costing import (
    ClientFinancial,
    Contributor,
    FinanceSummary,
    TeamMemberFinancial,
    build_finance_report,
    client_contributors,
    month_reference,
)
from production_engine.services.recompute import View
from production_engine.services.view_cache import ViewCache

router = APIRouter(prefix="/finance", tags=["Finance"])
logger = get_logger(__name__)


class FinanceResponse(BaseModel):
    """Finance view for one month."""

    period_start: datetime
    period_end: datetime
    partial: bool
    active_client_count: int
    total_shared_expenses: float
    shared_charge_per_client: float
    summary: FinanceSummary
    clients: list[ClientFinancial]
    team: list[TeamMemberFinancial]


class ContributorsResponse(BaseModel):
    """Editors and designers who worked for one client."""

    client_id: UUID
    company_name: str
    contributors: list[Contributor]


def _for_month(snapshot: Snapshot, month: str | None) -> Snapshot:
    if not month:
        return snapshot
    try:
        return replace(snapshot, taken_at=month_reference(month, snapshot.taken_at))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid month. Expected format: YYYY-MM",
        )


MonthQuery = Query(None, description="Period as YYYY-MM (defaults to the current month)")


def load_finance(
    source: SnapshotSource,
    config: EngineConfig,
    views: ViewCache | None,
    month: str | None,
) -> FinanceResponse:
    """The published current-month view while it is fresh, otherwise a rebuilt report.

    Only the current month is published, so a requested month is always rebuilt.
    """
    views = views if not month else None
    if views is not None:
        cached = views.latest(View.FINANCE, FinanceResponse)
        if cached is not None:
            return cached

    report = build_finance_report(_for_month(source(), month), config)
    if views is not None and not report.partial:
        views.publish(View.FINANCE, report)
    return FinanceResponse(
        period_start=report.period_start,
        period_end=report.period_end,
        partial=report.partial,
        active_client_count=report.active_client_count,
        total_shared_expenses=report.total_shared_expenses,
        shared_charge_per_client=report.shared_charge_per_client,
        summary=report.summary,
        clients=report.clients,
        team=report.team,
    )


@router.get(
    "",
    response_model=FinanceResponse,
    summary="Get the finance view",
    description="Per-client cost, profit and margin, team earnings and company totals.",
)
async def get_finance(
    source: SnapshotSourceDep,
    config: EngineConfigDep,
    views: ViewCacheDep,
    month: str | None = MonthQuery,
) -> FinanceResponse:
    """Compute the finance report for a month."""
    return load_finance(source, config, views, month)


@router.get(
    "/clients/{client_id}/contributors",
    response_model=ContributorsResponse,
    summary="Get contributors for a client",
)
async def get_client_contributors(
    client_id: UUID,
    source: SnapshotSourceDep,
    config: EngineConfigDep,
    views: ViewCacheDep,
    month: str | None = MonthQuery,
) -> ContributorsResponse:
    """Per-editor and per-designer earned amounts for one client."""
    report = load_finance(source, config, views, month)
    client = next((c for c in report.clients if c.client_id == client_id), None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Client {client_id} not found",
        )
    return ContributorsResponse(
        client_id=client.client_id,
        company_name=client.company_name,
        contributors=client_contributors(client.company_name, report.team),
    )
