"""Editor performance scoring.

Turns the rolling `EditorStat` record and the editor's current videos into
a gamified performance record: XP maps to a level through configured
thresholds, the level maps to a rank through configured bands, and a
three-tier health status is computed by rule precedence:

    at_risk  if on-time rate < threshold or consecutive late >= streak limit
    warning  if any video is currently late or consecutive late >= 1
    active   otherwise
"""

import bisect
import calendar
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from production_engine.domain.engine_config import EngineConfig
from production_engine.domain.enums import EditorStatus, Rank, VideoStatus
from production_engine.domain.models import EditorStat, TeamMember, Video
from production_engine.logging import get_logger
from production_engine.services.lifecycle import is_currently_late
from production_engine.utils.rounding import round_half_up

logger = get_logger(__name__)

DEFAULT_AVG_QUALITY = 5.0

# Assigned work that still occupies the editor
OPEN_STATUSES = frozenset(
    {
        VideoStatus.NEW,
        VideoStatus.ACTIVE,
        VideoStatus.LATE,
        VideoStatus.REVIEW_ADMIN,
        VideoStatus.REVIEW_CLIENT,
        VideoStatus.REVISION_REQUESTED,
    }
)


@dataclass
class EditorPerformance:
    """Computed performance record for one editor."""

    id: UUID
    name: str
    level: int
    rank: Rank
    xp: int
    xp_to_next_level: int | None
    videos_this_month: int
    validated_videos: int
    late_videos: int
    on_time_rate: int
    avg_quality: float
    active_videos: int
    streak: int
    status: EditorStatus
    monthly_bonus: float = 0.0
    videos_to_next_bonus: int | None = None


def monthly_bonus(videos: int, config: EngineConfig) -> float:
    """Bonus of the highest tier reached by the month's completed videos."""
    reached = [tier.bonus for tier in config.bonus_tiers if videos >= tier.videos]
    return reached[-1] if reached else 0.0


def videos_to_next_bonus(videos: int, config: EngineConfig) -> int | None:
    """Videos still needed for the next tier, or None once the top tier is reached."""
    for tier in config.bonus_tiers:
        if videos < tier.videos:
            return tier.videos - videos
    return None


def level_for_xp(xp: int, config: EngineConfig) -> int:
    """Level reached with the given XP; level 1 at zero XP."""
    return 1 + bisect.bisect_right(config.level_xp_thresholds, max(xp, 0))


def rank_for_level(level: int, config: EngineConfig) -> Rank:
    """Rank of the band containing the level."""
    for band in config.rank_bands:
        if band.contains(level):
            return band.rank
    if level < config.rank_bands[0].min_level:
        return config.rank_bands[0].rank
    return config.rank_bands[-1].rank


def xp_to_next_level(xp: int, config: EngineConfig) -> int | None:
    """XP total needed for the next level, or None at the top level."""
    thresholds = config.level_xp_thresholds
    index = bisect.bisect_right(thresholds, max(xp, 0))
    return thresholds[index] if index < len(thresholds) else None


def on_time_rate(delivered: int, on_time: int) -> float:
    """Percentage of deliveries made on time; 100 for editors with no history."""
    if delivered <= 0:
        return 100.0
    return min(max(on_time / delivered * 100, 0.0), 100.0)


def classify_editor(
    rate: float,
    consecutive_late: int,
    late_video_count: int,
    config: EngineConfig,
) -> EditorStatus:
    """Apply the at_risk / warning / active precedence rules."""
    if rate < config.at_risk_on_time_threshold or consecutive_late >= config.at_risk_late_streak:
        return EditorStatus.AT_RISK
    if late_video_count > 0 or consecutive_late >= 1:
        return EditorStatus.WARNING
    return EditorStatus.ACTIVE


def month_window(now: datetime) -> tuple[datetime, datetime]:
    """Inclusive first and last instants of the calendar month containing `now`."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_day = calendar.monthrange(now.year, now.month)[1]
    end = now.replace(day=last_day, hour=23, minute=59, second=59, microsecond=999999)
    return start, end


def score_editor(
    member: TeamMember,
    stat: EditorStat | None,
    videos: Sequence[Video],
    now: datetime,
    config: EngineConfig,
) -> EditorPerformance:
    """Compute the performance record of one editor.

    A missing stat record means the editor has no delivery history yet and
    yields the neutral defaults rather than an error.
    """
    stat = stat or EditorStat(user_id=member.user_id)

    month_start, month_end = month_window(now)
    videos_this_month = sum(
        1
        for v in videos
        if v.completed_at is not None
        and v.status != VideoStatus.CANCELLED
        and month_start <= v.completed_at <= month_end
    )
    active_videos = sum(1 for v in videos if v.status in OPEN_STATUSES)
    currently_late = sum(1 for v in videos if is_currently_late(v, now, config))

    rate = on_time_rate(stat.total_videos_delivered, stat.total_on_time)
    level = level_for_xp(stat.xp, config)

    return EditorPerformance(
        id=member.user_id,
        name=member.display_name,
        level=level,
        rank=rank_for_level(level, config),
        xp=stat.xp,
        xp_to_next_level=xp_to_next_level(stat.xp, config),
        videos_this_month=videos_this_month,
        validated_videos=stat.total_videos_delivered,
        late_videos=stat.total_late,
        on_time_rate=round_half_up(rate),
        avg_quality=float(stat.average_rating) if stat.average_rating else DEFAULT_AVG_QUALITY,
        active_videos=active_videos,
        streak=stat.streak_days,
        status=classify_editor(rate, stat.consecutive_late_count, currently_late, config),
        monthly_bonus=monthly_bonus(videos_this_month, config),
        videos_to_next_bonus=videos_to_next_bonus(videos_this_month, config),
    )


def score_editors(
    members: Iterable[TeamMember],
    stats: Iterable[EditorStat],
    videos: Iterable[Video],
    now: datetime,
    config: EngineConfig,
) -> list[EditorPerformance]:
    """Score every active editor, including those without stats or videos."""
    stats_by_user = {s.user_id: s for s in stats}
    videos_by_editor: dict[UUID, list[Video]] = {}
    for video in videos:
        if video.assigned_to is not None:
            videos_by_editor.setdefault(video.assigned_to, []).append(video)

    performances = [
        score_editor(
            member,
            stats_by_user.get(member.user_id),
            videos_by_editor.get(member.user_id, []),
            now,
            config,
        )
        for member in members
        if member.is_active and member.is_editor
    ]
    logger.debug("editors_scored", count=len(performances))
    return performances


def leaderboard(performances: Iterable[EditorPerformance]) -> list[EditorPerformance]:
    """Order editors by XP, then validated videos; ties broken by id."""
    return sorted(
        performances,
        key=lambda p: (-p.xp, -p.validated_videos, str(p.id)),
    )
