"""Dashboard aggregation over lifecycle and performance results.

Pure join/group-by layer: every number here is derived from the video
status (see `services.lifecycle`) or the editor performance records (see
`services.performance`). Empty collections produce zero-filled views.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from production_engine.domain.engine_config import EngineConfig
from production_engine.domain.enums import Collection, EditorStatus, VideoStatus
from production_engine.domain.models import (
    EditorQuestion,
    Project,
    TeamMember,
    Video,
    VideoDelivery,
)
from production_engine.domain.snapshot import Snapshot
from production_engine.logging import get_logger
from production_engine.services.lifecycle import evaluate, is_currently_late
from production_engine.services.performance import (
    EditorPerformance,
    leaderboard,
    score_editors,
)
from production_engine.utils.rounding import round_half_up

logger = get_logger(__name__)

UNKNOWN_PROJECT = "Unknown project"


@dataclass
class ProjectEditor:
    """Assigned vs completed videos of one editor within a project."""

    id: UUID
    name: str
    videos_assigned: int = 0
    videos_completed: int = 0


@dataclass
class ProjectSummary:
    """Video counts of one project by lifecycle state."""

    id: UUID
    title: str
    client_name: str | None
    video_count: int
    completed: int
    late: int
    in_review: int
    at_client: int
    active: int
    deadline: datetime | None
    editors: list[ProjectEditor] = field(default_factory=list)


@dataclass
class EditorWorkload:
    """Current load of one editor against the nominal capacity."""

    id: UUID
    name: str
    active_videos: int
    capacity: int
    load_ratio: float
    videos_completed: int
    videos_late: int
    videos_in_review: int


@dataclass
class PendingValidation:
    """A video waiting for admin validation."""

    video_id: UUID
    title: str
    project_title: str
    client_name: str | None
    editor_id: UUID | None
    editor_name: str | None
    submitted_at: datetime | None
    deadline: datetime | None
    is_on_time: bool
    revision_count: int
    preview_link: str | None = None


@dataclass
class GlobalStats:
    """Company-wide production KPIs."""

    total_editors: int
    active_editors: int
    at_risk_editors: int
    avg_on_time_rate: int
    total_pending_videos: int
    total_late_videos: int
    total_revision_videos: int
    total_active_videos: int
    total_questions: int


@dataclass
class DashboardView:
    """Everything the production dashboard displays."""

    generated_at: datetime
    projects: list[ProjectSummary]
    editors: list[EditorPerformance]
    workload: list[EditorWorkload]
    pending_validations: list[PendingValidation]
    stats: GlobalStats
    partial: bool = False
    unavailable: list[Collection] = field(default_factory=list)


def _names(members: Iterable[TeamMember]) -> dict[UUID, str]:
    return {m.user_id: m.display_name for m in members}


def summarize_project(
    project: Project,
    videos: Sequence[Video],
    names: dict[UUID, str],
    now: datetime,
    config: EngineConfig,
) -> ProjectSummary:
    """Count one project's videos by canonical state, with a per-editor breakdown."""
    statuses = [evaluate(v, now, config).status for v in videos]
    editors: dict[UUID, ProjectEditor] = {}
    for video in videos:
        if video.assigned_to is None:
            continue
        entry = editors.get(video.assigned_to)
        if entry is None:
            entry = ProjectEditor(
                id=video.assigned_to,
                name=names.get(video.assigned_to, "Unknown"),
            )
            editors[video.assigned_to] = entry
        entry.videos_assigned += 1
        if video.is_validated:
            entry.videos_completed += 1

    return ProjectSummary(
        id=project.id,
        title=project.title,
        client_name=project.client_name,
        video_count=project.video_count or len(videos),
        completed=sum(1 for v in videos if v.is_validated),
        late=sum(1 for v in videos if is_currently_late(v, now, config)),
        in_review=statuses.count(VideoStatus.REVIEW_ADMIN),
        at_client=statuses.count(VideoStatus.REVIEW_CLIENT),
        active=statuses.count(VideoStatus.ACTIVE) + statuses.count(VideoStatus.REVISION_REQUESTED),
        deadline=project.deadline,
        editors=list(editors.values()),
    )


def build_project_summaries(
    projects: Iterable[Project],
    videos: Iterable[Video],
    members: Iterable[TeamMember],
    now: datetime,
    config: EngineConfig,
) -> list[ProjectSummary]:
    """Summaries for every project, including projects with no videos."""
    by_project: dict[UUID, list[Video]] = {}
    for video in videos:
        by_project.setdefault(video.project_id, []).append(video)
    names = _names(members)
    return [
        summarize_project(project, by_project.get(project.id, []), names, now, config)
        for project in projects
    ]


def build_workload(
    performances: Iterable[EditorPerformance],
    videos: Iterable[Video],
    config: EngineConfig,
) -> list[EditorWorkload]:
    """Active videos per editor against `config.nominal_capacity`."""
    in_review: dict[UUID, int] = {}
    for video in videos:
        if video.assigned_to is not None and video.status in (
            VideoStatus.REVIEW_ADMIN,
            VideoStatus.REVIEW_CLIENT,
        ):
            in_review[video.assigned_to] = in_review.get(video.assigned_to, 0) + 1

    capacity = config.nominal_capacity
    return [
        EditorWorkload(
            id=p.id,
            name=p.name,
            active_videos=p.active_videos,
            capacity=capacity,
            load_ratio=p.active_videos / capacity,
            videos_completed=p.validated_videos,
            videos_late=p.late_videos,
            videos_in_review=in_review.get(p.id, 0),
        )
        for p in performances
    ]


def build_pending_validations(
    videos: Iterable[Video],
    projects: Iterable[Project],
    deliveries: Iterable[VideoDelivery],
    members: Iterable[TeamMember],
) -> list[PendingValidation]:
    """Videos awaiting admin review, with their latest delivery.

    A submission is on time when it happened no later than the video
    deadline; videos without a deadline are always on time. The last
    update time stands in for the submission time when no delivery exists.
    """
    projects_by_id = {p.id: p for p in projects}
    latest: dict[UUID, VideoDelivery] = {}
    for delivery in deliveries:
        current = latest.get(delivery.video_id)
        if current is None or delivery.version_number > current.version_number:
            latest[delivery.video_id] = delivery
    names = _names(members)

    pending = []
    for video in videos:
        if video.status != VideoStatus.REVIEW_ADMIN:
            continue
        delivery = latest.get(video.id)
        project = projects_by_id.get(video.project_id)
        submitted_at = (delivery.submitted_at if delivery else None) or video.updated_at
        if video.deadline is None:
            on_time = True
        else:
            on_time = submitted_at is not None and submitted_at <= video.deadline
        pending.append(
            PendingValidation(
                video_id=video.id,
                title=video.title,
                project_title=project.title if project else UNKNOWN_PROJECT,
                client_name=project.client_name if project else None,
                editor_id=video.assigned_to,
                editor_name=names.get(video.assigned_to) if video.assigned_to else None,
                submitted_at=submitted_at,
                deadline=video.deadline,
                is_on_time=on_time,
                revision_count=video.revision_count,
                preview_link=delivery.external_link if delivery else None,
            )
        )
    return pending


def build_global_stats(
    performances: Sequence[EditorPerformance],
    videos: Sequence[Video],
    pending: Sequence[PendingValidation],
    questions: Iterable[EditorQuestion],
    now: datetime,
    config: EngineConfig,
) -> GlobalStats:
    """Totals and averages across all editors and videos."""
    total = len(performances)
    avg_rate = (
        round_half_up(sum(p.on_time_rate for p in performances) / total) if total else 0
    )
    statuses = [evaluate(v, now, config).status for v in videos]
    return GlobalStats(
        total_editors=total,
        active_editors=sum(1 for p in performances if p.active_videos > 0),
        at_risk_editors=sum(1 for p in performances if p.status == EditorStatus.AT_RISK),
        avg_on_time_rate=avg_rate,
        total_pending_videos=len(pending),
        total_late_videos=sum(1 for v in videos if is_currently_late(v, now, config)),
        total_revision_videos=statuses.count(VideoStatus.REVISION_REQUESTED),
        total_active_videos=statuses.count(VideoStatus.ACTIVE),
        total_questions=sum(1 for q in questions if not q.is_answered),
    )


def build_dashboard(snapshot: Snapshot, config: EngineConfig) -> DashboardView:
    """Compose the full production dashboard from one snapshot."""
    now = snapshot.taken_at
    performances = leaderboard(
        score_editors(
            snapshot.team_members,
            snapshot.editor_stats,
            snapshot.videos,
            now,
            config,
        )
    )
    pending = build_pending_validations(
        snapshot.videos,
        snapshot.projects,
        snapshot.video_deliveries,
        snapshot.team_members,
    )

    view = DashboardView(
        generated_at=now,
        projects=build_project_summaries(
            snapshot.projects, snapshot.videos, snapshot.team_members, now, config
        ),
        editors=performances,
        workload=build_workload(performances, snapshot.videos, config),
        pending_validations=pending,
        stats=build_global_stats(
            performances, snapshot.videos, pending, snapshot.editor_questions, now, config
        ),
        partial=snapshot.partial,
        unavailable=sorted(snapshot.unavailable),
    )
    logger.info(
        "dashboard_built",
        projects=len(view.projects),
        editors=len(view.editors),
        partial=view.partial,
    )
    return view
