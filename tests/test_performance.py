"""Tests for editor performance scoring."""

from dataclasses import replace
from datetime import timedelta
from uuid import UUID

import pytest

from production_engine.domain.enums import EditorStatus, Rank, TeamRole, VideoStatus
from production_engine.services.performance import (
    classify_editor,
    leaderboard,
    level_for_xp,
    month_window,
    monthly_bonus,
    on_time_rate,
    rank_for_level,
    score_editor,
    score_editors,
    videos_to_next_bonus,
    xp_to_next_level,
)


class TestLevelsAndRanks:
    """Test the XP -> level -> rank mapping."""

    @pytest.mark.parametrize(
        ("xp", "level"),
        [(0, 1), (99, 1), (100, 2), (299, 2), (300, 3), (1000, 5), (-50, 1)],
    )
    def test_level_for_xp(self, xp: int, level: int, config) -> None:
        assert level_for_xp(xp, config) == level

    def test_rank_bands(self, config) -> None:
        assert rank_for_level(1, config) == Rank.BRONZE
        assert rank_for_level(4, config) == Rank.BRONZE
        assert rank_for_level(5, config) == Rank.SILVER
        assert rank_for_level(10, config) == Rank.GOLD
        assert rank_for_level(15, config) == Rank.PLATINUM
        assert rank_for_level(20, config) == Rank.DIAMOND
        assert rank_for_level(99, config) == Rank.DIAMOND

    def test_rank_is_monotonic_in_xp(self, config) -> None:
        previous_level, previous_rank = 1, Rank.BRONZE
        for xp in range(0, 40_000, 37):
            level = level_for_xp(xp, config)
            rank = rank_for_level(level, config)
            assert level >= previous_level
            assert rank.order >= previous_rank.order
            previous_level, previous_rank = level, rank

    def test_xp_to_next_level(self, config) -> None:
        assert xp_to_next_level(0, config) == 100
        assert xp_to_next_level(150, config) == 300
        assert xp_to_next_level(10**9, config) is None


class TestOnTimeRate:
    """Test the on-time rate definition."""

    def test_no_deliveries_is_a_perfect_rate(self) -> None:
        assert on_time_rate(0, 0) == 100.0

    def test_rate_is_a_percentage(self) -> None:
        assert on_time_rate(10, 9) == 90.0
        assert on_time_rate(4, 2) == 50.0

    def test_rate_is_clamped(self) -> None:
        assert on_time_rate(2, 5) == 100.0
        assert on_time_rate(2, -1) == 0.0


class TestClassification:
    """Test the at_risk / warning / active precedence."""

    def test_low_rate_is_at_risk(self, config) -> None:
        assert classify_editor(50.0, 0, 0, config) == EditorStatus.AT_RISK

    def test_late_streak_is_at_risk(self, config) -> None:
        assert classify_editor(95.0, 3, 0, config) == EditorStatus.AT_RISK

    def test_current_late_video_is_warning(self, config) -> None:
        assert classify_editor(90.0, 0, 1, config) == EditorStatus.WARNING

    def test_single_late_delivery_is_warning(self, config) -> None:
        assert classify_editor(90.0, 1, 0, config) == EditorStatus.WARNING

    def test_healthy_editor_is_active(self, config) -> None:
        assert classify_editor(90.0, 0, 0, config) == EditorStatus.ACTIVE

    def test_threshold_is_exclusive(self, config) -> None:
        assert classify_editor(75.0, 0, 0, config) == EditorStatus.ACTIVE


class TestMonthlyBonus:
    """Test the monthly bonus tiers."""

    @pytest.mark.parametrize(
        ("videos", "bonus"),
        [(0, 0.0), (29, 0.0), (30, 150.0), (49, 150.0), (50, 500.0), (80, 1000.0), (120, 1000.0)],
    )
    def test_highest_tier_reached(self, videos: int, bonus: float, config) -> None:
        assert monthly_bonus(videos, config) == bonus

    @pytest.mark.parametrize(
        ("videos", "missing"), [(0, 30), (29, 1), (30, 20), (79, 1), (80, None)]
    )
    def test_videos_to_next_bonus(self, videos: int, missing: int | None, config) -> None:
        assert videos_to_next_bonus(videos, config) == missing

    def test_no_tiers_means_no_bonus(self, config) -> None:
        no_tiers = replace(config, bonus_tiers=())
        assert monthly_bonus(100, no_tiers) == 0.0
        assert videos_to_next_bonus(100, no_tiers) is None


def test_month_window_is_inclusive(now) -> None:
    """Test the month window covers the first and last instants."""
    start, end = month_window(now)
    assert (start.day, start.hour, start.minute) == (1, 0, 0)
    assert (end.day, end.hour, end.minute, end.second) == (30, 23, 59, 59)
    assert start.tzinfo == now.tzinfo


class TestScoreEditor:
    """Test scoring one editor."""

    def test_ten_deliveries_nine_on_time(self, make_member, make_stat, now, config) -> None:
        member = make_member()
        stat = make_stat(user_id=member.user_id, total_videos_delivered=10, total_on_time=9)

        result = score_editor(member, stat, [], now, config)

        assert result.on_time_rate == 90
        assert result.status == EditorStatus.ACTIVE

    def test_four_deliveries_two_on_time(self, make_member, make_stat, now, config) -> None:
        member = make_member()
        stat = make_stat(user_id=member.user_id, total_videos_delivered=4, total_on_time=2)

        result = score_editor(member, stat, [], now, config)

        assert result.on_time_rate == 50
        assert result.status == EditorStatus.AT_RISK

    def test_missing_stat_uses_defaults(self, make_member, now, config) -> None:
        result = score_editor(make_member(), None, [], now, config)

        assert result.on_time_rate == 100
        assert result.avg_quality == 5.0
        assert result.level == 1
        assert result.rank == Rank.BRONZE
        assert result.xp == 0
        assert result.streak == 0
        assert result.status == EditorStatus.ACTIVE

    def test_level_and_rank_follow_xp_not_cached_values(
        self, make_member, make_stat, now, config
    ) -> None:
        member = make_member()
        stat = make_stat(user_id=member.user_id, xp=1000, level=1, rank=Rank.BRONZE)

        result = score_editor(member, stat, [], now, config)

        assert result.level == 5
        assert result.rank == Rank.SILVER
        assert result.xp_to_next_level == 1500

    def test_video_counts(self, make_member, make_video, now, config) -> None:
        member = make_member()
        videos = [
            make_video(status=VideoStatus.ACTIVE),
            make_video(status=VideoStatus.LATE),
            make_video(status=VideoStatus.REVIEW_CLIENT),
            make_video(status=VideoStatus.COMPLETED, completed_at=now - timedelta(days=3)),
            make_video(status=VideoStatus.COMPLETED, completed_at=now - timedelta(days=40)),
            make_video(status=VideoStatus.CANCELLED, completed_at=now - timedelta(days=1)),
        ]

        result = score_editor(member, None, videos, now, config)

        assert result.active_videos == 3
        assert result.videos_this_month == 1
        # The stored late video puts a clean editor on warning
        assert result.status == EditorStatus.WARNING

    def test_month_of_deliveries_earns_bonus(self, make_member, make_video, now, config) -> None:
        member = make_member()
        videos = [
            make_video(status=VideoStatus.COMPLETED, completed_at=now - timedelta(days=1))
            for _ in range(32)
        ]

        result = score_editor(member, None, videos, now, config)

        assert result.videos_this_month == 32
        assert result.monthly_bonus == 150.0
        assert result.videos_to_next_bonus == 18

    def test_average_rating_is_used_when_present(self, make_member, make_stat, now, config) -> None:
        member = make_member()
        stat = make_stat(user_id=member.user_id, average_rating=4.2)
        assert score_editor(member, stat, [], now, config).avg_quality == 4.2


class TestScoreEditors:
    """Test scoring the whole team."""

    def test_every_active_editor_appears(self, make_member, make_stat, make_video, now, config) -> None:
        editor = make_member(full_name="Ana")
        colorist = make_member(full_name="Bo", role=TeamRole.COLORIST)
        designer = make_member(full_name="Cy", role=TeamRole.DESIGNER)
        inactive = make_member(full_name="Di", status="inactive")
        stats = [make_stat(user_id=editor.user_id, xp=300)]
        videos = [make_video(status=VideoStatus.ACTIVE, assigned_to=colorist.user_id)]

        results = score_editors([editor, colorist, designer, inactive], stats, videos, now, config)

        assert [r.name for r in results] == ["Ana", "Bo"]
        assert results[0].level == 3
        assert results[1].active_videos == 1
        assert results[1].xp == 0

    def test_no_members_gives_empty_list(self, now, config) -> None:
        assert score_editors([], [], [], now, config) == []

    def test_leaderboard_is_deterministic(self, make_member, make_stat, now, config) -> None:
        members = [make_member(user_id=UUID(int=i), full_name=f"E{i}") for i in (3, 1, 2)]
        stats = [
            make_stat(user_id=UUID(int=1), xp=500, total_videos_delivered=5),
            make_stat(user_id=UUID(int=2), xp=500, total_videos_delivered=5),
            make_stat(user_id=UUID(int=3), xp=800, total_videos_delivered=1),
        ]
        results = score_editors(members, stats, [], now, config)

        ordered = leaderboard(results)

        assert [p.name for p in ordered] == ["E3", "E1", "E2"]
        assert leaderboard(reversed(results)) == ordered
