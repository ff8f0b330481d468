"""Apply-once write-back of newly late videos.

Detection is pure (`lifecycle.detect_late_transitions`). This service turns
each detected transition into at most one status write and at most one
delivered notification, however many checks run concurrently:

1. Flag: a guarded status update and the ledger insert, committed together.
   Only a video still stored as active is flipped; a miss means another run
   got there first. A failed write leaves the video active for the next run.
2. Notify: every undelivered ledger row of a video still stored as late is
   pending. A worker claims the row, notifies the assignee and admins, then
   records the outcome. Failed deliveries stay pending until the configured
   number of attempts is used up.

Without a notifier the check only flags; pending rows wait for a run that
has one.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

from production_engine.domain.engine_config import EngineConfig
from production_engine.domain.snapshot import Snapshot
from production_engine.errors import CollectionUnavailableError, WriteBackError
from production_engine.logging import get_logger
from production_engine.services.alerting import LateVideoNotice, LateVideoNotifier
from production_engine.services.lifecycle import LateTransition, detect_late_transitions
from production_engine.utils.async_utils import run_async

logger = get_logger(__name__)


class LateVideoStore(Protocol):
    """Write side used by the late video check."""

    def flag_late(self, transition: LateTransition) -> bool:
        """Flip an active video to late and record it. False if no longer active."""
        ...

    def pending_late_notifications(self, max_attempts: int) -> list[LateTransition]:
        """Recorded transitions whose notification has not gone out yet."""
        ...

    def claim_late_notification(self, idempotency_key: str, max_attempts: int) -> bool:
        """Reserve a pending notification. False if held elsewhere or done."""
        ...

    def complete_late_notification(self, idempotency_key: str, delivered: bool) -> None:
        """Record whether the claimed notification went out."""
        ...


@dataclass
class LateCheckReport:
    """Outcome of one late video check."""

    checked: int = 0
    flagged: int = 0
    notified: int = 0
    skipped: int = 0
    failures: dict[str, str] = field(default_factory=dict)
    notification_failures: dict[str, str] = field(default_factory=dict)
    partial: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class LateVideoService:
    """Detects late videos in a snapshot and applies each transition once."""

    def __init__(
        self,
        store: LateVideoStore,
        config: EngineConfig,
        notifier: LateVideoNotifier | None = None,
    ) -> None:
        self.store = store
        self.config = config
        self.notifier = notifier

    def run(self, snapshot: Snapshot) -> LateCheckReport:
        """Check every video in the snapshot, then send pending notifications.

        Write-back failures are captured per video in the report and never
        stop the check.
        """
        transitions = detect_late_transitions(snapshot.videos, snapshot.taken_at, self.config)
        report = LateCheckReport(checked=len(snapshot.videos), partial=snapshot.partial)

        for transition in transitions:
            self._flag(transition, report)

        if self.notifier is None:
            logger.debug("late_notifications_deferred", reason="no notifier configured")
        else:
            self._notify_pending(snapshot, report)

        logger.info(
            "late_check_completed",
            checked=report.checked,
            flagged=report.flagged,
            notified=report.notified,
            skipped=report.skipped,
            failures=len(report.failures),
        )
        return report

    def _flag(self, transition: LateTransition, report: LateCheckReport) -> None:
        video_key = str(transition.video_id)
        try:
            flagged = self.store.flag_late(transition)
        except WriteBackError as e:
            report.failures[video_key] = str(e.cause)
            logger.error("late_write_back_failed", video_id=video_key, error=str(e.cause))
            return

        if not flagged:
            report.skipped += 1
            logger.debug("late_video_already_flagged", video_id=video_key)
            return
        report.flagged += 1
        logger.info(
            "late_video_detected",
            video_id=video_key,
            deadline=transition.deadline.isoformat(),
        )

    def _notify_pending(self, snapshot: Snapshot, report: LateCheckReport) -> None:
        max_attempts = self.config.late_notification_max_attempts
        try:
            pending = self.store.pending_late_notifications(max_attempts)
        except CollectionUnavailableError as e:
            report.partial = True
            logger.error("late_notifications_unavailable", error=str(e.cause))
            return

        for transition in pending:
            self._notify(transition, snapshot, report, max_attempts)

    def _notify(
        self,
        transition: LateTransition,
        snapshot: Snapshot,
        report: LateCheckReport,
        max_attempts: int,
    ) -> None:
        video_key = str(transition.video_id)
        notice = build_notice(transition, snapshot)
        if notice is None:
            logger.debug("late_notification_video_not_loaded", video_id=video_key)
            return

        key = transition.idempotency_key
        try:
            if not self.store.claim_late_notification(key, max_attempts):
                logger.debug("late_notification_already_claimed", video_id=video_key)
                return
        except WriteBackError as e:
            report.failures[video_key] = str(e.cause)
            logger.error("late_notification_claim_failed", video_id=video_key, error=str(e.cause))
            return

        result = run_async(self.notifier.notify(notice))
        if result.delivered:
            report.notified += 1
        if result.errors:
            report.notification_failures[video_key] = "; ".join(result.errors)

        try:
            self.store.complete_late_notification(key, result.delivered)
        except WriteBackError as e:
            report.failures[video_key] = str(e.cause)
            logger.error("late_notification_record_failed", video_id=video_key, error=str(e.cause))


def build_notice(transition: LateTransition, snapshot: Snapshot) -> LateVideoNotice | None:
    """Resolve names for the notification payload from the snapshot."""
    video = next((v for v in snapshot.videos if v.id == transition.video_id), None)
    if video is None:
        return None
    project = next((p for p in snapshot.projects if p.id == video.project_id), None)
    assignee = next(
        (m for m in snapshot.team_members if m.user_id == video.assigned_to), None
    )
    return LateVideoNotice(
        video_id=video.id,
        video_title=video.title,
        project_name=project.title if project else "Unknown project",
        client_name=project.client_name if project else None,
        assignee_name=assignee.display_name if assignee else None,
        assignee_email=assignee.email if assignee else None,
        detected_at=transition.detected_at,
    )
