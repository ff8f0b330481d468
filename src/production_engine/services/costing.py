"""Cost allocation, profit and margin per client.

Each client carries three production costs for the period:

    video cost        delivered videos x per-video rate
    design cost       approved design units x design unit rate
    copywriting cost  copywriter monthly rate / clients sharing that copywriter

The production cost used for profit is the greater of the actual cost and
the cost expected from the client's monthly package. Shared monthly
expenses (ads, daily, fixed) are split evenly across active clients:

    profit = total paid - production cost - shared charge
    margin = round(profit / total paid * 100), 0 when nothing was paid
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

from production_engine.domain.engine_config import EngineConfig
from production_engine.domain.enums import (
    ClientFinanceStatus,
    DesignType,
    ExpenseType,
    TeamRole,
    VideoStatus,
)
from production_engine.domain.models import (
    ClientProfile,
    DesignDelivery,
    DesignFeedback,
    DesignTask,
    Expense,
    Payment,
    Project,
    TeamMember,
    Video,
)
from production_engine.domain.snapshot import Snapshot
from production_engine.logging import get_logger
from production_engine.services.performance import month_window, monthly_bonus
from production_engine.utils.rounding import round_half_up

logger = get_logger(__name__)

UNASSIGNED_CLIENT = "Unassigned client"
APPROVED = "approved"
DAYS_PER_MONTH = 30

_LABEL_RE = re.compile(r"^\[(.+?)\]")
_CAROUSEL_PAGES_RE = re.compile(r"car(?:r)?ousel\s*(\d+)\s*p?", re.IGNORECASE)


@dataclass
class ClientCostBreakdown:
    """Production cost of one client for the period."""

    video_count: int
    videos_expected: int
    video_rate: float
    video_cost: float
    design_count: int
    design_types: dict[DesignType, int]
    designs_expected: dict[str, int]
    design_cost: float
    copywriting_cost: float
    copywriter_name: str | None
    copywriter_client_count: int
    copywriter_monthly_rate: float
    actual_cost: float
    expected_total_cost: float
    total_cost: float


@dataclass
class ClientFinancial:
    """Contract, payments, cost and profitability of one client."""

    client_id: UUID
    company_name: str
    contact_name: str | None
    subscription_type: str | None
    total_contract: float
    advance_received: float
    monthly_price: float
    contract_duration_months: int
    project_end_date: date | None
    total_paid: float
    remaining: float
    progress: int
    status: ClientFinanceStatus
    cost_breakdown: ClientCostBreakdown
    shared_charge: float
    profit: float
    margin: int
    payments: list[Payment] = field(default_factory=list)


@dataclass
class ContributionDetail:
    """Work a team member did for one client."""

    client_name: str
    count: int
    earned: float


@dataclass
class TeamMemberFinancial:
    """Earnings of one team member for the period."""

    user_id: UUID
    full_name: str
    role: TeamRole
    rate_per_video: float
    videos_delivered: int
    designs_delivered: int
    bonus: float
    total_earned: float
    clients: list[str]
    details: list[ContributionDetail]


@dataclass
class Contributor:
    """A team member's contribution to a single client."""

    name: str
    role: TeamRole
    count: int
    rate: float
    earned: float


@dataclass
class FinanceSummary:
    """Company-wide finance totals."""

    revenue_month: float
    revenue_total: float
    collected_month: float
    remaining_to_collect: float
    expenses_month: float
    expenses_by_type: dict[ExpenseType, float]
    payroll_month: float
    profit_month: float
    profit_total: float
    daily_revenue: float
    daily_collected: float
    daily_expenses: float


@dataclass
class FinanceReport:
    """Everything the finance views display for one period."""

    period_start: datetime
    period_end: datetime
    active_client_count: int
    total_shared_expenses: float
    shared_charge_per_client: float
    clients: list[ClientFinancial]
    team: list[TeamMemberFinancial]
    summary: FinanceSummary
    partial: bool = False


def design_type(notes: str | None) -> DesignType:
    """Detect the design type from a `[Label] ...` delivery note."""
    match = _LABEL_RE.match(notes or "")
    if not match:
        return DesignType.OTHER
    label = match.group(1).lower()
    if "miniature" in label:
        return DesignType.MINIATURES
    if "post" in label:
        return DesignType.POSTS
    if "logo" in label:
        return DesignType.LOGOS
    if "carrousel" in label or "carousel" in label:
        return DesignType.CAROUSELS
    return DesignType.OTHER


def design_item_cost(notes: str | None, config: EngineConfig) -> float:
    """Cost of one approved design; an N-page carousel counts as N/2 units."""
    match = _LABEL_RE.match(notes or "")
    if match:
        pages = _CAROUSEL_PAGES_RE.search(match.group(1))
        if pages:
            return int(pages.group(1)) / 2 * config.design_unit_rate
    return config.design_unit_rate


def shared_charge_per_client(total_expenses: float, active_client_count: int) -> float:
    """Even share of pooled expenses; 0 when there are no active clients."""
    if active_client_count <= 0:
        return 0
    return round_half_up(total_expenses / active_client_count)


def client_profit(total_paid: float, total_cost: float, shared_charge: float) -> float:
    return total_paid - total_cost - shared_charge


def margin(profit: float, total_paid: float) -> int:
    """Profit as a rounded percentage of what the client paid."""
    if total_paid == 0:
        return 0
    return round_half_up(profit / total_paid * 100)


def client_status(
    remaining: float,
    total_contract: float,
    project_end_date: date | None,
    today: date,
    config: EngineConfig,
) -> ClientFinanceStatus:
    """Payment health: critical when unpaid past the end date, late when mostly unpaid."""
    if project_end_date is None:
        return ClientFinanceStatus.ON_TRACK
    if remaining > 0 and project_end_date < today:
        return ClientFinanceStatus.CRITICAL
    if remaining > total_contract * config.client_late_remaining_ratio:
        return ClientFinanceStatus.LATE
    return ClientFinanceStatus.ON_TRACK


def _in_window(moment: datetime | None, start: datetime, end: datetime) -> bool:
    return moment is not None and start <= moment <= end


def period_videos(videos: Iterable[Video], start: datetime, end: datetime) -> list[Video]:
    """Completed videos whose completion falls inside the period."""
    return [
        v
        for v in videos
        if v.status == VideoStatus.COMPLETED and _in_window(v.completed_at, start, end)
    ]


def approved_designs(
    feedback: Iterable[DesignFeedback], start: datetime, end: datetime
) -> list[DesignFeedback]:
    """Design approvals recorded inside the period."""
    return [
        f for f in feedback if f.decision == APPROVED and _in_window(f.reviewed_at, start, end)
    ]


def month_reference(month: str, now: datetime) -> datetime:
    """Evaluation instant for a `YYYY-MM` period.

    The current month is evaluated at `now`; any other month at its last
    instant. Raises ValueError on a malformed month.
    """
    selected = datetime.strptime(month, "%Y-%m").replace(tzinfo=now.tzinfo)
    if (selected.year, selected.month) == (now.year, now.month):
        return now
    return month_window(selected)[1]


def period_expenses(expenses: Iterable[Expense], period_start: datetime) -> list[Expense]:
    month = period_start.date().replace(day=1)
    return [e for e in expenses if e.month.replace(day=1) == month]


class _CostContext:
    """Lookups shared by every client of one period."""

    def __init__(
        self,
        clients: Sequence[ClientProfile],
        team: Sequence[TeamMember],
        projects: Sequence[Project],
        videos: Sequence[Video],
        design_tasks: Sequence[DesignTask],
        design_deliveries: Sequence[DesignDelivery],
        approvals: Sequence[DesignFeedback],
    ):
        self.clients = clients
        self.team_by_id = {m.user_id: m for m in team}
        self.projects_by_id = {p.id: p for p in projects}
        self.videos = videos
        self.design_tasks_by_id = {t.id: t for t in design_tasks}
        self.deliveries_by_id = {d.id: d for d in design_deliveries}
        self.approvals = approvals
        self.copywriter_client_counts: dict[UUID, int] = {}
        for client in clients:
            if client.copywriter_id is not None:
                self.copywriter_client_counts[client.copywriter_id] = (
                    self.copywriter_client_counts.get(client.copywriter_id, 0) + 1
                )

    def project_client_name(self, project_id: UUID) -> str:
        project = self.projects_by_id.get(project_id)
        return (project.client_name if project else None) or UNASSIGNED_CLIENT

    def design_client_name(self, design_task_id: UUID) -> str:
        task = self.design_tasks_by_id.get(design_task_id)
        return (task.client_name if task else None) or UNASSIGNED_CLIENT

    def delivery_notes(self, delivery_id: UUID) -> str | None:
        delivery = self.deliveries_by_id.get(delivery_id)
        return delivery.notes if delivery else None

    def copywriter_share(self, copywriter_id: UUID) -> tuple[float, int, float]:
        """(monthly rate, clients sharing, per-client share) for a copywriter."""
        writer = self.team_by_id.get(copywriter_id)
        rate = writer.rate_per_video if writer else 0.0
        count = self.copywriter_client_counts.get(copywriter_id, 0)
        share = round_half_up(rate / count) if count > 0 and rate > 0 else 0
        return rate, count, share


def _editor_rate(video: Video, ctx: _CostContext, config: EngineConfig) -> float:
    editor = ctx.team_by_id.get(video.assigned_to) if video.assigned_to else None
    if editor is not None and editor.rate_per_video > 0:
        return editor.rate_per_video
    return config.default_video_rate


def client_cost_breakdown(
    client: ClientProfile,
    ctx: _CostContext,
    config: EngineConfig,
) -> ClientCostBreakdown:
    """Actual and expected production cost of one client."""
    project_ids = {p.id for p in ctx.projects_by_id.values() if p.client_id == client.user_id}
    videos = [v for v in ctx.videos if v.project_id in project_ids]

    video_cost = 0.0
    video_rate = client.video_rate if client.video_rate else config.default_video_rate
    for video in videos:
        rate = client.video_rate if client.video_rate else _editor_rate(video, ctx, config)
        video_rate = rate
        video_cost += rate

    design_task_ids = {
        t.id for t in ctx.design_tasks_by_id.values() if t.client_id == client.user_id
    }
    approvals = [f for f in ctx.approvals if f.design_task_id in design_task_ids]
    design_types = {t: 0 for t in DesignType}
    design_cost = 0.0
    for approval in approvals:
        notes = ctx.delivery_notes(approval.delivery_id)
        design_cost += design_item_cost(notes, config)
        design_types[design_type(notes)] += 1

    copywriting_cost = 0.0
    copywriter_name = None
    copywriter_count = 0
    copywriter_rate = 0.0
    if client.copywriter_id is not None and client.copywriter_id in ctx.team_by_id:
        copywriter_name = ctx.team_by_id[client.copywriter_id].display_name
        copywriter_rate, copywriter_count, copywriting_cost = ctx.copywriter_share(
            client.copywriter_id
        )

    videos_expected = client.videos_per_month
    designs_expected = {
        "miniatures": client.design_miniatures_per_month,
        "posts": client.design_posts_per_month,
        "logos": client.design_logos_per_month,
        "carousels": client.design_carousels_per_month,
        "thumbnails": videos_expected if client.has_thumbnail_design else 0,
    }
    # Expected carousels carry no unit cost
    expected_units = sum(
        count for kind, count in designs_expected.items() if kind != "carousels"
    )
    expected_total = (
        videos_expected * video_rate
        + expected_units * config.design_unit_rate
        + copywriting_cost
    )
    actual = video_cost + design_cost + copywriting_cost

    return ClientCostBreakdown(
        video_count=len(videos),
        videos_expected=videos_expected,
        video_rate=video_rate,
        video_cost=video_cost,
        design_count=len(approvals),
        design_types=design_types,
        designs_expected=designs_expected,
        design_cost=design_cost,
        copywriting_cost=copywriting_cost,
        copywriter_name=copywriter_name,
        copywriter_client_count=copywriter_count,
        copywriter_monthly_rate=copywriter_rate,
        actual_cost=actual,
        expected_total_cost=expected_total,
        total_cost=max(actual, expected_total),
    )


def _build_context(snapshot: Snapshot, start: datetime, end: datetime) -> _CostContext:
    return _CostContext(
        clients=_active_clients(snapshot.clients),
        team=[m for m in snapshot.team_members if m.is_active],
        projects=snapshot.projects,
        videos=period_videos(snapshot.videos, start, end),
        design_tasks=snapshot.design_tasks,
        design_deliveries=snapshot.design_deliveries,
        approvals=approved_designs(snapshot.design_feedback, start, end),
    )


def _active_clients(clients: Iterable[ClientProfile]) -> list[ClientProfile]:
    return [c for c in clients if c.account_status == "active"]


def build_client_financials(
    snapshot: Snapshot,
    config: EngineConfig,
    shared_charge: float = 0,
) -> list[ClientFinancial]:
    """Per-client contract, payment, cost and profit figures for the snapshot month."""
    start, end = month_window(snapshot.taken_at)
    ctx = _build_context(snapshot, start, end)

    results = []
    for client in ctx.clients:
        payments = [p for p in snapshot.payments if p.client_id == client.user_id]
        total_paid = sum(p.amount for p in payments) + client.advance_received
        remaining = client.total_contract - total_paid
        progress = (
            round_half_up(total_paid / client.total_contract * 100)
            if client.total_contract > 0
            else 0
        )
        breakdown = client_cost_breakdown(client, ctx, config)
        profit = client_profit(total_paid, breakdown.total_cost, shared_charge)

        results.append(
            ClientFinancial(
                client_id=client.user_id,
                company_name=client.company_name,
                contact_name=client.contact_name,
                subscription_type=client.subscription_type,
                total_contract=client.total_contract,
                advance_received=client.advance_received,
                monthly_price=client.monthly_price,
                contract_duration_months=client.contract_duration_months or 1,
                project_end_date=client.project_end_date,
                total_paid=total_paid,
                remaining=max(0.0, remaining),
                progress=progress,
                status=client_status(
                    remaining,
                    client.total_contract,
                    client.project_end_date,
                    snapshot.today,
                    config,
                ),
                cost_breakdown=breakdown,
                shared_charge=shared_charge,
                profit=profit,
                margin=margin(profit, total_paid),
                payments=sorted(payments, key=lambda p: (p.payment_date, str(p.id)), reverse=True),
            )
        )
    return results


def _details(entries: dict[str, list[float]]) -> list[ContributionDetail]:
    return [
        ContributionDetail(client_name=name, count=len(amounts), earned=sum(amounts))
        for name, amounts in entries.items()
    ]


def build_team_financials(snapshot: Snapshot, config: EngineConfig) -> list[TeamMemberFinancial]:
    """What each active team member earned in the snapshot month, per client."""
    start, end = month_window(snapshot.taken_at)
    ctx = _build_context(snapshot, start, end)
    results = []

    for member in ctx.team_by_id.values():
        per_client: dict[str, list[float]] = {}
        videos_delivered = 0
        designs_delivered = 0
        bonus = 0.0
        rate = member.rate_per_video

        if member.is_editor:
            for video in ctx.videos:
                if video.assigned_to == member.user_id:
                    client_name = ctx.project_client_name(video.project_id)
                    per_client.setdefault(client_name, []).append(rate)
                    videos_delivered += 1
            # The monthly bonus is not split across clients
            bonus = monthly_bonus(videos_delivered, config)
            total = videos_delivered * rate + bonus
        elif member.role == TeamRole.DESIGNER:
            own_deliveries = {
                d.id for d in ctx.deliveries_by_id.values() if d.designer_id == member.user_id
            }
            for approval in ctx.approvals:
                if approval.delivery_id in own_deliveries:
                    per_client.setdefault(
                        ctx.design_client_name(approval.design_task_id), []
                    ).append(design_item_cost(ctx.delivery_notes(approval.delivery_id), config))
                    designs_delivered += 1
            rate = 0.0
            total = sum(sum(amounts) for amounts in per_client.values())
        elif member.role == TeamRole.COPYWRITER:
            _, _, share = ctx.copywriter_share(member.user_id)
            for client in ctx.clients:
                if client.copywriter_id == member.user_id:
                    per_client.setdefault(client.company_name, []).append(share)
            total = rate
        else:
            rate = 0.0
            total = 0.0

        details = _details(per_client)
        results.append(
            TeamMemberFinancial(
                user_id=member.user_id,
                full_name=member.display_name,
                role=member.role,
                rate_per_video=rate,
                videos_delivered=videos_delivered,
                designs_delivered=designs_delivered,
                bonus=bonus,
                total_earned=total,
                clients=[d.client_name for d in details],
                details=details,
            )
        )
    return results


def client_contributors(
    client_name: str, team: Iterable[TeamMemberFinancial]
) -> list[Contributor]:
    """Editors and designers who delivered work for the named client."""
    contributors = []
    for member in team:
        if member.role == TeamRole.COPYWRITER:
            continue
        for detail in member.details:
            if detail.client_name == client_name and detail.count > 0:
                contributors.append(
                    Contributor(
                        name=member.full_name,
                        role=member.role,
                        count=detail.count,
                        rate=member.rate_per_video,
                        earned=detail.earned,
                    )
                )
    return contributors


def build_finance_summary(
    snapshot: Snapshot,
    team: Sequence[TeamMemberFinancial],
) -> FinanceSummary:
    """Revenue, collections, expenses and profit for the month and to date."""
    start, end = month_window(snapshot.taken_at)
    clients = _active_clients(snapshot.clients)
    month_expenses = period_expenses(snapshot.expenses, start)

    revenue_month = sum(c.monthly_price for c in clients)
    revenue_total = sum(c.total_contract for c in clients)
    advances = sum(c.advance_received for c in clients)
    collected_month = (
        sum(p.amount for p in snapshot.payments if start.date() <= p.payment_date <= end.date())
        + advances
    )
    collected_total = sum(p.amount for p in snapshot.payments) + advances

    expenses_by_type = {t: 0.0 for t in ExpenseType}
    for expense in month_expenses:
        expenses_by_type[expense.expense_type] += expense.amount

    payroll = sum(m.total_earned for m in team)
    expenses_month = sum(expenses_by_type.values()) + payroll
    expenses_total = sum(e.amount for e in snapshot.expenses) + payroll

    return FinanceSummary(
        revenue_month=revenue_month,
        revenue_total=revenue_total,
        collected_month=collected_month,
        remaining_to_collect=max(0.0, revenue_total - collected_total),
        expenses_month=expenses_month,
        expenses_by_type=expenses_by_type,
        payroll_month=payroll,
        profit_month=collected_month - expenses_month,
        profit_total=collected_total - expenses_total,
        daily_revenue=revenue_month / DAYS_PER_MONTH,
        daily_collected=sum(
            p.amount for p in snapshot.payments if p.payment_date == snapshot.today
        ),
        daily_expenses=expenses_month / DAYS_PER_MONTH,
    )


def build_finance_report(snapshot: Snapshot, config: EngineConfig) -> FinanceReport:
    """Compute the full finance view for the month of the snapshot."""
    start, end = month_window(snapshot.taken_at)
    active_count = len(_active_clients(snapshot.clients))
    total_shared = sum(e.amount for e in period_expenses(snapshot.expenses, start))
    shared_charge = shared_charge_per_client(total_shared, active_count)

    clients = build_client_financials(snapshot, config, shared_charge)
    team = build_team_financials(snapshot, config)

    logger.info(
        "finance_report_built",
        clients=len(clients),
        team=len(team),
        shared_charge=shared_charge,
        partial=snapshot.partial,
    )
    return FinanceReport(
        period_start=start,
        period_end=end,
        active_client_count=active_count,
        total_shared_expenses=total_shared,
        shared_charge_per_client=shared_charge,
        clients=clients,
        team=team,
        summary=build_finance_summary(snapshot, team),
        partial=snapshot.partial,
    )
