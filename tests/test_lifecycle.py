"""Tests for lifecycle state and lateness evaluation."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from production_engine.domain.engine_config import EngineConfig
from production_engine.domain.enums import VideoStatus
from production_engine.services.lifecycle import (
    ALLOWED_TRANSITIONS,
    can_transition,
    detect_late_transitions,
    evaluate,
    is_currently_late,
    is_late,
    is_overdue,
    lateness_deadline,
)


class TestIsLate:
    """Test the lateness rule."""

    def test_active_video_past_allowed_duration_is_late(self, make_video, now, config) -> None:
        video = make_video(
            status=VideoStatus.ACTIVE,
            started_at=now - timedelta(minutes=301),
            allowed_duration_minutes=300,
        )

        result = evaluate(video, now, config)

        assert result.status == VideoStatus.LATE
        assert result.is_late is True
        assert result.newly_late is True

    def test_active_video_within_allowed_duration(self, make_video, now, config) -> None:
        video = make_video(
            status=VideoStatus.ACTIVE,
            started_at=now - timedelta(minutes=299),
            allowed_duration_minutes=300,
        )

        result = evaluate(video, now, config)

        assert result.status == VideoStatus.ACTIVE
        assert result.is_late is False
        assert result.newly_late is False

    def test_exact_deadline_is_not_late(self, make_video, now, config) -> None:
        video = make_video(
            status=VideoStatus.ACTIVE,
            started_at=now - timedelta(minutes=300),
            allowed_duration_minutes=300,
        )
        assert is_late(video, now, config) is False

    def test_never_started_is_never_late(self, make_video, now, config) -> None:
        video = make_video(
            status=VideoStatus.ACTIVE,
            started_at=None,
            deadline=now - timedelta(days=10),
        )
        assert is_late(video, now, config) is False
        assert evaluate(video, now, config).status == VideoStatus.ACTIVE

    def test_validated_video_is_never_late(self, make_video, now, config) -> None:
        video = make_video(
            status=VideoStatus.ACTIVE,
            started_at=now - timedelta(days=2),
            is_validated=True,
        )
        assert is_late(video, now, config) is False

    def test_terminal_and_review_states_are_never_late(self, make_video, now, config) -> None:
        for status in (
            VideoStatus.COMPLETED,
            VideoStatus.CANCELLED,
            VideoStatus.REVIEW_ADMIN,
            VideoStatus.REVIEW_CLIENT,
            VideoStatus.REVISION_REQUESTED,
            VideoStatus.NEW,
        ):
            video = make_video(status=status, started_at=now - timedelta(days=2))
            assert is_late(video, now, config) is False, status

    def test_missing_duration_uses_configured_default(self, make_video, now) -> None:
        config = EngineConfig(default_allowed_duration_minutes=60)
        video = make_video(
            status=VideoStatus.ACTIVE,
            started_at=now - timedelta(minutes=61),
            allowed_duration_minutes=0,
        )

        assert lateness_deadline(video, config) == video.started_at + timedelta(minutes=60)
        assert is_late(video, now, config) is True


class TestIdempotentDetection:
    """Test that an already late video never triggers again."""

    def test_already_late_video_is_not_newly_late(self, make_video, now, config) -> None:
        video = make_video(
            status=VideoStatus.LATE,
            started_at=now - timedelta(minutes=600),
        )

        result = evaluate(video, now, config)

        assert result.status == VideoStatus.LATE
        assert result.is_late is True
        assert result.newly_late is False

    def test_detection_returns_newly_late_in_input_order(self, make_video, now, config) -> None:
        overdue = now - timedelta(minutes=400)
        first = make_video(status=VideoStatus.ACTIVE, started_at=overdue)
        flagged = make_video(status=VideoStatus.LATE, started_at=overdue)
        fresh = make_video(status=VideoStatus.ACTIVE, started_at=now)
        second = make_video(status=VideoStatus.ACTIVE, started_at=overdue)

        transitions = detect_late_transitions([first, flagged, fresh, second], now, config)

        assert [t.video_id for t in transitions] == [first.id, second.id]
        assert transitions[0].detected_at == now

    def test_idempotency_key_is_stable_across_detections(self, make_video, now, config) -> None:
        video = make_video(status=VideoStatus.ACTIVE, started_at=now - timedelta(minutes=400))

        first = detect_late_transitions([video], now, config)[0]
        later = detect_late_transitions([video], now + timedelta(minutes=5), config)[0]

        assert first.idempotency_key == later.idempotency_key
        assert first.idempotency_key.startswith(str(video.id))

    def test_idempotency_key_ignores_deadline_timezone(self, make_video, now, config) -> None:
        video = make_video(status=VideoStatus.ACTIVE, started_at=now - timedelta(minutes=400))
        (transition,) = detect_late_transitions([video], now, config)
        paris = timezone(timedelta(hours=2))

        shifted = replace(transition, deadline=transition.deadline.astimezone(paris))

        assert shifted.idempotency_key == transition.idempotency_key

    def test_unstarted_active_video_is_not_detected(self, make_video, now, config) -> None:
        video = make_video(status=VideoStatus.ACTIVE)

        assert detect_late_transitions([video], now, config) == []


class TestTransitions:
    """Test the manual transition table."""

    def test_happy_path(self) -> None:
        path = [
            VideoStatus.NEW,
            VideoStatus.ACTIVE,
            VideoStatus.REVIEW_ADMIN,
            VideoStatus.REVIEW_CLIENT,
            VideoStatus.COMPLETED,
        ]
        for source, target in zip(path, path[1:]):
            assert can_transition(source, target)

    def test_late_is_a_side_branch_of_active(self) -> None:
        assert can_transition(VideoStatus.ACTIVE, VideoStatus.LATE)
        assert can_transition(VideoStatus.LATE, VideoStatus.REVIEW_ADMIN)
        assert not can_transition(VideoStatus.NEW, VideoStatus.LATE)

    def test_cancel_from_any_non_terminal_state(self) -> None:
        for status in VideoStatus:
            if not status.is_terminal:
                assert can_transition(status, VideoStatus.CANCELLED), status

    def test_terminal_states_have_no_exit(self) -> None:
        assert ALLOWED_TRANSITIONS[VideoStatus.COMPLETED] == frozenset()
        assert ALLOWED_TRANSITIONS[VideoStatus.CANCELLED] == frozenset()


class TestIsOverdue:
    """Test the dashboard notion of overdue."""

    def test_stored_late_is_overdue(self, make_video, now) -> None:
        assert is_overdue(make_video(status=VideoStatus.LATE), now)

    def test_past_deadline_unvalidated_is_overdue(self, make_video, now) -> None:
        video = make_video(status=VideoStatus.REVIEW_ADMIN, deadline=now - timedelta(hours=1))
        assert is_overdue(video, now)

    def test_validated_or_terminal_is_not_overdue(self, make_video, now) -> None:
        past = now - timedelta(days=1)
        assert not is_overdue(
            make_video(status=VideoStatus.REVIEW_CLIENT, deadline=past, is_validated=True), now
        )
        assert not is_overdue(make_video(status=VideoStatus.COMPLETED, deadline=past), now)
        assert not is_overdue(make_video(status=VideoStatus.CANCELLED, deadline=past), now)

    def test_no_deadline_is_not_overdue(self, make_video, now: datetime) -> None:
        assert not is_overdue(make_video(status=VideoStatus.ACTIVE), now)


class TestIsCurrentlyLate:
    """Test the combined lateness used by the dashboard views."""

    def test_production_clock_without_deadline(self, make_video, now, config) -> None:
        video = make_video(status=VideoStatus.ACTIVE, started_at=now - timedelta(minutes=301))
        assert not is_overdue(video, now)
        assert is_currently_late(video, now, config)

    def test_deadline_without_production_clock(self, make_video, now, config) -> None:
        video = make_video(status=VideoStatus.REVIEW_ADMIN, deadline=now - timedelta(hours=1))
        assert is_currently_late(video, now, config)

    def test_on_schedule_video(self, make_video, now, config) -> None:
        video = make_video(
            status=VideoStatus.ACTIVE,
            started_at=now - timedelta(minutes=10),
            deadline=now + timedelta(days=1),
        )
        assert not is_currently_late(video, now, config)
