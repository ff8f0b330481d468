"""Video lifecycle state and lateness evaluation.

Lateness is derived on read: a video is late when it is being worked on and
its allowed production time, counted from `started_at`, has elapsed. The
`late` status stored on a video is a cached copy of that fact, written once
by the late video check (see `services.late_videos`).
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from production_engine.domain.engine_config import EngineConfig
from production_engine.domain.enums import VideoStatus
from production_engine.domain.models import Video

S = VideoStatus

ALLOWED_TRANSITIONS: dict[VideoStatus, frozenset[VideoStatus]] = {
    S.NEW: frozenset({S.ACTIVE, S.CANCELLED}),
    S.ACTIVE: frozenset({S.LATE, S.REVIEW_ADMIN, S.REVISION_REQUESTED, S.CANCELLED}),
    S.LATE: frozenset({S.REVIEW_ADMIN, S.CANCELLED}),
    S.REVISION_REQUESTED: frozenset({S.ACTIVE, S.REVIEW_ADMIN, S.CANCELLED}),
    S.REVIEW_ADMIN: frozenset({S.REVIEW_CLIENT, S.REVISION_REQUESTED, S.CANCELLED}),
    S.REVIEW_CLIENT: frozenset({S.REVISION_REQUESTED, S.COMPLETED, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
}

# Statuses under which the production clock is running
_CLOCK_RUNNING = frozenset({S.ACTIVE, S.LATE})


@dataclass(frozen=True)
class LifecycleResult:
    """Derived lifecycle state of one video at one instant."""

    status: VideoStatus
    is_late: bool
    newly_late: bool


@dataclass(frozen=True)
class LateTransition:
    """A video detected late for the first time, awaiting write-back."""

    video_id: UUID
    detected_at: datetime
    deadline: datetime

    @property
    def idempotency_key(self) -> str:
        # Stable across concurrent detections of the same lateness episode
        return f"{self.video_id}:{self.deadline.astimezone(UTC).isoformat()}"


def can_transition(source: VideoStatus, target: VideoStatus) -> bool:
    """Check whether a manual status change is allowed."""
    return target in ALLOWED_TRANSITIONS[source]


def lateness_deadline(video: Video, config: EngineConfig) -> datetime | None:
    """Instant after which an in-progress video counts as late."""
    if video.started_at is None:
        return None
    minutes = video.allowed_duration_minutes or config.default_allowed_duration_minutes
    return video.started_at + timedelta(minutes=minutes)


def is_late(video: Video, now: datetime, config: EngineConfig) -> bool:
    """Whether the video's allowed production time has run out.

    Videos that were never started, are validated, or have left the
    active/late states are never late.
    """
    if video.status not in _CLOCK_RUNNING or video.is_validated:
        return False
    deadline = lateness_deadline(video, config)
    return deadline is not None and now > deadline


def evaluate(video: Video, now: datetime, config: EngineConfig) -> LifecycleResult:
    """Derive the canonical status and lateness of a video.

    `newly_late` is only set when the stored status is still `active`, so an
    already flagged video never triggers the late side effects again.
    """
    late = is_late(video, now, config)
    if late and video.status == S.ACTIVE:
        return LifecycleResult(status=S.LATE, is_late=True, newly_late=True)
    return LifecycleResult(status=video.status, is_late=late, newly_late=False)


def is_overdue(video: Video, now: datetime) -> bool:
    """Dashboard notion of lateness: flagged late, or past its deadline unvalidated."""
    if video.status.is_terminal or video.is_validated:
        return False
    if video.status == S.LATE:
        return True
    return video.deadline is not None and now > video.deadline


def is_currently_late(video: Video, now: datetime, config: EngineConfig) -> bool:
    """Late by the production clock or by the delivery deadline."""
    return is_late(video, now, config) or is_overdue(video, now)


def detect_late_transitions(
    videos: Iterable[Video],
    now: datetime,
    config: EngineConfig,
) -> list[LateTransition]:
    """Find every video that has just become late, in input order."""
    transitions = []
    for video in videos:
        deadline = lateness_deadline(video, config)
        if deadline is not None and evaluate(video, now, config).newly_late:
            transitions.append(
                LateTransition(video_id=video.id, detected_at=now, deadline=deadline)
            )
    return transitions
