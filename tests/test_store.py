"""Tests for the database snapshot loader and late video write-backs."""

from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from production_engine.db.models import (
    LateVideoNotificationModel,
    MonthlyExpenseModel,
    ProjectModel,
    TeamMemberModel,
    VideoModel,
)
from production_engine.db.session import engine, get_session_context
from production_engine.db.snapshot import DatabaseSnapshotLoader, aware
from production_engine.db.store import DEFAULT_CLAIM_LEASE, SqlLateVideoStore
from production_engine.domain.enums import Collection, TeamRole, VideoStatus
from production_engine.errors import WriteBackError
from production_engine.services.alerting import LateVideoNotice, NotificationResult
from production_engine.services.late_videos import LateVideoService
from production_engine.services.lifecycle import LateTransition

pytestmark = pytest.mark.usefixtures("db")


def add_video(status: str, started_at: datetime | None = None, **kwargs) -> UUID:
    project_id, video_id = uuid4(), uuid4()
    video = VideoModel(
        id=video_id,
        project_id=project_id,
        title=kwargs.pop("title", "Reel"),
        status=status,
        started_at=started_at,
        allowed_duration_minutes=300,
        is_validated=False,
        **kwargs,
    )
    with get_session_context() as session:
        session.add(ProjectModel(id=project_id, title="Spring campaign", client_name="Acme"))
        session.flush()
        session.add(video)
    return video_id


def stored_status(video_id) -> str:
    with get_session_context() as session:
        query = select(VideoModel.status).where(VideoModel.id == video_id)
        return session.execute(query).scalar_one()


def transition_for(video_id, now) -> LateTransition:
    return LateTransition(video_id=video_id, detected_at=now, deadline=now - timedelta(minutes=1))


class RecordingNotifier:
    def __init__(self, result: NotificationResult) -> None:
        self.result = result
        self.notices: list[LateVideoNotice] = []

    async def notify(self, notice: LateVideoNotice) -> NotificationResult:
        self.notices.append(notice)
        return self.result


class TestSqlLateVideoStore:
    def test_flag_late_accepts_legacy_active_label(self, now) -> None:
        video_id = add_video("in_progress")
        store = SqlLateVideoStore()
        transition = transition_for(video_id, now)

        assert store.flag_late(transition) is True
        assert stored_status(video_id) == "late"
        assert store.flag_late(transition) is False

        (row,) = store.notifications_for(video_id)
        assert row.idempotency_key == transition.idempotency_key
        assert row.delivered is None
        assert row.attempts == 0

    def test_flag_late_skips_other_states(self, now) -> None:
        video_id = add_video("review_admin")
        store = SqlLateVideoStore()

        assert store.flag_late(transition_for(video_id, now)) is False
        assert stored_status(video_id) == "review_admin"
        assert store.notifications_for(video_id) == []

    def test_failed_ledger_write_keeps_video_active(self, now) -> None:
        video_id = add_video("active")
        store = SqlLateVideoStore()
        transition = transition_for(video_id, now)
        LateVideoNotificationModel.__table__.drop(engine)

        with pytest.raises(WriteBackError):
            store.flag_late(transition)
        assert stored_status(video_id) == "active"

        LateVideoNotificationModel.__table__.create(engine)
        assert store.flag_late(transition) is True
        assert len(store.notifications_for(video_id)) == 1

    def test_claim_is_exclusive_until_lease_expires(self, now) -> None:
        video_id = add_video("active")
        store = SqlLateVideoStore(clock=lambda: now)
        transition = transition_for(video_id, now)
        store.flag_late(transition)

        assert store.pending_late_notifications(max_attempts=5) == [transition]
        assert store.claim_late_notification(transition.idempotency_key, 5) is True
        assert store.claim_late_notification(transition.idempotency_key, 5) is False
        assert store.pending_late_notifications(max_attempts=5) == []

        later = SqlLateVideoStore(clock=lambda: now + DEFAULT_CLAIM_LEASE + timedelta(seconds=1))
        assert later.pending_late_notifications(max_attempts=5) == [transition]
        assert later.claim_late_notification(transition.idempotency_key, 5) is True
        (row,) = store.notifications_for(video_id)
        assert row.attempts == 2

    def test_failed_delivery_stays_pending(self, now) -> None:
        video_id = add_video("active")
        store = SqlLateVideoStore(clock=lambda: now)
        transition = transition_for(video_id, now)
        key = transition.idempotency_key
        store.flag_late(transition)

        store.claim_late_notification(key, 2)
        store.complete_late_notification(key, delivered=False)

        assert store.pending_late_notifications(max_attempts=2) == [transition]
        assert store.pending_late_notifications(max_attempts=1) == []

        store.claim_late_notification(key, 2)
        store.complete_late_notification(key, delivered=True)

        assert store.pending_late_notifications(max_attempts=5) == []
        assert store.claim_late_notification(key, 5) is False
        (row,) = store.notifications_for(video_id)
        assert row.delivered is True
        assert row.notified_at is not None

    def test_pending_ignores_videos_no_longer_late(self, now) -> None:
        video_id = add_video("active")
        store = SqlLateVideoStore(clock=lambda: now)
        store.flag_late(transition_for(video_id, now))
        with get_session_context() as session:
            session.execute(
                update(VideoModel).where(VideoModel.id == video_id).values(status="review_admin")
            )

        assert store.pending_late_notifications(max_attempts=5) == []


class TestDatabaseSnapshotLoader:
    def test_load_normalizes_records(self, now) -> None:
        video_id = add_video("in_review", started_at=datetime(2025, 6, 15, 8, 0))
        with get_session_context() as session:
            session.add(
                TeamMemberModel(user_id=uuid4(), full_name="Ana", role="intern", status="active")
            )

        snapshot = DatabaseSnapshotLoader().load(now)

        assert snapshot.taken_at == now
        assert snapshot.partial is False
        (loaded,) = snapshot.videos
        assert loaded.id == video_id
        assert loaded.status == VideoStatus.REVIEW_ADMIN
        assert loaded.started_at == datetime(2025, 6, 15, 8, 0, tzinfo=UTC)
        assert len(snapshot.projects) == 1
        (member,) = snapshot.team_members
        assert member.role == TeamRole.ADMIN

    def test_missing_table_marks_collection_unavailable(self, now) -> None:
        add_video("active")
        MonthlyExpenseModel.__table__.drop(engine)

        snapshot = DatabaseSnapshotLoader().load(now)

        assert snapshot.unavailable == {Collection.EXPENSES}
        assert snapshot.expenses == []
        assert len(snapshot.videos) == 1

    def test_unreachable_database_gives_empty_partial_snapshot(self, now) -> None:
        @contextmanager
        def broken_session():
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))
            yield

        snapshot = DatabaseSnapshotLoader(broken_session).load(now)

        assert snapshot.unavailable == set(Collection)
        assert snapshot.videos == []


def test_aware_treats_naive_as_utc() -> None:
    """Test naive timestamps are read as UTC and aware ones are kept."""
    naive = datetime(2025, 6, 1, 9, 30)
    assert aware(naive) == datetime(2025, 6, 1, 9, 30, tzinfo=UTC)
    assert aware(None) is None
    moment = datetime(2025, 6, 1, 9, 30, tzinfo=UTC)
    assert aware(moment) is moment


def test_late_check_against_database(now, config) -> None:
    """Test two consecutive checks flip and record a late video once."""
    late_id = add_video("active", started_at=now - timedelta(minutes=301))
    fresh_id = add_video("active", started_at=now - timedelta(minutes=10))
    store = SqlLateVideoStore()
    service = LateVideoService(store, config)
    loader = DatabaseSnapshotLoader()

    first = service.run(loader.load(now))
    second = service.run(loader.load(now + timedelta(minutes=5)))

    assert first.flagged == 1
    assert second.flagged == 0
    assert second.skipped == 0
    assert stored_status(late_id) == "late"
    assert stored_status(fresh_id) == "active"
    assert len(store.notifications_for(late_id)) == 1


def test_late_check_retries_after_failed_ledger_write(now, config) -> None:
    """Test a check that could not record the transition notifies on the next run."""
    late_id = add_video("active", started_at=now - timedelta(minutes=301), title="Launch reel")
    notifier = RecordingNotifier(NotificationResult(email=True))
    service = LateVideoService(SqlLateVideoStore(), config, notifier)
    loader = DatabaseSnapshotLoader()
    LateVideoNotificationModel.__table__.drop(engine)

    first = service.run(loader.load(now))

    assert first.flagged == 0
    assert str(late_id) in first.failures
    assert stored_status(late_id) == "active"

    LateVideoNotificationModel.__table__.create(engine)
    second = service.run(loader.load(now + timedelta(minutes=5)))

    assert second.flagged == 1
    assert second.notified == 1
    assert [n.video_title for n in notifier.notices] == ["Launch reel"]
    (row,) = SqlLateVideoStore().notifications_for(late_id)
    assert row.delivered is True
    assert row.attempts == 1
