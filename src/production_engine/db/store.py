"""Idempotent write-backs for derived video transitions."""

from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from production_engine.db.models import LateVideoNotificationModel, VideoModel
from production_engine.db.session import get_session_context
from production_engine.db.snapshot import aware
from production_engine.domain.enums import ACTIVE_RAW_LABELS, VideoStatus
from production_engine.errors import CollectionUnavailableError, WriteBackError
from production_engine.logging import get_logger
from production_engine.services.lifecycle import LateTransition

logger = get_logger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]

DEFAULT_CLAIM_LEASE = timedelta(minutes=15)

Ledger = LateVideoNotificationModel


def _video_id(idempotency_key: str) -> UUID:
    return UUID(idempotency_key.split(":", 1)[0])


class SqlLateVideoStore:
    """Late video write-backs against the production database.

    Safe to call concurrently from several workers: the status update is
    guarded on the previous status, the ledger key is unique and a
    notification claim is a guarded update on the ledger row.
    """

    def __init__(
        self,
        session_factory: SessionFactory = get_session_context,
        lease: timedelta = DEFAULT_CLAIM_LEASE,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.session_factory = session_factory
        self.lease = lease
        self.clock = clock

    def flag_late(self, transition: LateTransition) -> bool:
        """Set the video to late and record the transition in one transaction.

        The ledger row is written only by the call that changes the status,
        so a failed insert rolls the status back and the next check retries.

        Returns:
            True if this call changed the video, False if it was no longer active.

        Raises:
            WriteBackError: If either write fails.
        """
        stmt = (
            update(VideoModel)
            .where(VideoModel.id == transition.video_id)
            .where(VideoModel.status.in_(ACTIVE_RAW_LABELS))
            .values(status=VideoStatus.LATE.value)
        )
        key = transition.idempotency_key
        try:
            with self.session_factory() as session:
                if session.execute(stmt).rowcount == 0:
                    return False
                recorded = session.execute(
                    select(Ledger.id).where(Ledger.idempotency_key == key)
                ).first()
                if recorded is None:
                    session.add(
                        Ledger(
                            idempotency_key=key,
                            video_id=transition.video_id,
                            deadline=transition.deadline,
                            detected_at=transition.detected_at,
                        )
                    )
                else:
                    logger.debug("late_notification_already_recorded", key=key)
            return True
        except SQLAlchemyError as e:
            raise WriteBackError(transition.video_id, e) from e

    def pending_late_notifications(self, max_attempts: int) -> list[LateTransition]:
        """Undelivered notifications of videos still stored as late.

        Rows claimed by another worker within the lease, and rows that used
        up `max_attempts`, are left out.

        Raises:
            CollectionUnavailableError: If the ledger cannot be read.
        """
        now = self.clock()
        stmt = (
            select(Ledger)
            .join(VideoModel, VideoModel.id == Ledger.video_id)
            .where(VideoModel.status == VideoStatus.LATE.value)
            .where(Ledger.delivered.is_not(True))
            .where(Ledger.attempts < max_attempts)
            .where(or_(Ledger.claimed_at.is_(None), Ledger.claimed_at < now - self.lease))
            .order_by(Ledger.detected_at)
        )
        try:
            with self.session_factory() as session:
                return [
                    LateTransition(
                        video_id=row.video_id,
                        detected_at=aware(row.detected_at),
                        deadline=aware(row.deadline),
                    )
                    for row in session.execute(stmt).scalars()
                ]
        except SQLAlchemyError as e:
            raise CollectionUnavailableError(Ledger.__tablename__, e) from e

    def claim_late_notification(self, idempotency_key: str, max_attempts: int) -> bool:
        """Reserve a pending notification for this worker and count the attempt.

        Returns:
            True if the claim is ours, False if the row is delivered, exhausted
            or held by another worker.

        Raises:
            WriteBackError: If the update fails.
        """
        now = self.clock()
        stmt = (
            update(Ledger)
            .where(Ledger.idempotency_key == idempotency_key)
            .where(Ledger.delivered.is_not(True))
            .where(Ledger.attempts < max_attempts)
            .where(or_(Ledger.claimed_at.is_(None), Ledger.claimed_at < now - self.lease))
            .values(attempts=Ledger.attempts + 1, claimed_at=now)
        )
        try:
            with self.session_factory() as session:
                return session.execute(stmt).rowcount > 0
        except SQLAlchemyError as e:
            raise WriteBackError(_video_id(idempotency_key), e) from e

    def complete_late_notification(self, idempotency_key: str, delivered: bool) -> None:
        """Record the delivery outcome and release the claim.

        Raises:
            WriteBackError: If the update fails.
        """
        now = self.clock()
        values: dict[str, object] = {"delivered": delivered, "notified_at": now}
        if not delivered:
            values["claimed_at"] = None
        stmt = update(Ledger).where(Ledger.idempotency_key == idempotency_key).values(**values)
        try:
            with self.session_factory() as session:
                session.execute(stmt)
        except SQLAlchemyError as e:
            raise WriteBackError(_video_id(idempotency_key), e) from e

    def notifications_for(self, video_id: UUID) -> list[LateVideoNotificationModel]:
        """Ledger rows of one video, oldest first."""
        with self.session_factory() as session:
            rows = session.execute(
                select(Ledger).where(Ledger.video_id == video_id).order_by(Ledger.detected_at)
            ).scalars().all()
            session.expunge_all()
            return list(rows)
