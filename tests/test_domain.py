"""Tests for domain models, enums and engine configuration."""

from uuid import uuid4

import pytest

from production_engine.domain.engine_config import (
    DEFAULT_BONUS_TIERS,
    DEFAULT_RANK_BANDS,
    BonusTier,
    EngineConfig,
    RankBand,
    bands_from_minimums,
    tiers_from_mapping,
)
from production_engine.domain.enums import (
    ExpenseType,
    Rank,
    TeamRole,
    VideoStatus,
)
from production_engine.domain.models import TeamMember


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("new", VideoStatus.NEW),
        ("active", VideoStatus.ACTIVE),
        ("in_progress", VideoStatus.ACTIVE),
        ("late", VideoStatus.LATE),
        ("in_review", VideoStatus.REVIEW_ADMIN),
        ("review_admin", VideoStatus.REVIEW_ADMIN),
        ("review_client", VideoStatus.REVIEW_CLIENT),
        ("revision_requested", VideoStatus.REVISION_REQUESTED),
        ("completed", VideoStatus.COMPLETED),
        ("cancelled", VideoStatus.CANCELLED),
        (" Active ", VideoStatus.ACTIVE),
        ("archived", VideoStatus.NEW),
        ("", VideoStatus.NEW),
        (None, VideoStatus.NEW),
    ],
)
def test_status_normalization(raw: str | None, expected: VideoStatus) -> None:
    """Test raw labels map onto the canonical status set."""
    assert VideoStatus.normalize(raw) == expected


def test_terminal_statuses() -> None:
    """Test only completed and cancelled are terminal."""
    terminal = {s for s in VideoStatus if s.is_terminal}
    assert terminal == {VideoStatus.COMPLETED, VideoStatus.CANCELLED}


def test_rank_ladder_order() -> None:
    """Test the rank ladder is ordered bronze to diamond."""
    assert [r.order for r in Rank] == [0, 1, 2, 3, 4]
    assert Rank.BRONZE.order < Rank.DIAMOND.order


def test_expense_type_parsing() -> None:
    """Test unknown or missing expense types are fixed costs."""
    assert ExpenseType.from_raw("ads") == ExpenseType.ADS
    assert ExpenseType.from_raw("daily") == ExpenseType.DAILY
    assert ExpenseType.from_raw("salary") == ExpenseType.FIXED
    assert ExpenseType.from_raw(None) == ExpenseType.FIXED


def test_team_member_display_name() -> None:
    """Test display name falls back to email, then a short id."""
    user_id = uuid4()
    assert TeamMember(user_id=user_id, full_name="Ana").display_name == "Ana"
    assert TeamMember(user_id=user_id, email="ana@example.com").display_name == "ana@example.com"
    assert TeamMember(user_id=user_id).display_name == f"Member {str(user_id)[:6]}"


def test_team_member_editor_roles() -> None:
    """Test motion designers and colorists count as editors."""
    for role in (TeamRole.EDITOR, TeamRole.MOTION_DESIGNER, TeamRole.COLORIST):
        assert TeamMember(user_id=uuid4(), role=role).is_editor
    assert not TeamMember(user_id=uuid4(), role=TeamRole.DESIGNER).is_editor


class TestEngineConfig:
    """Test engine configuration validation."""

    def test_default_bands_are_contiguous(self) -> None:
        bands = DEFAULT_RANK_BANDS
        assert bands[0] == RankBand(Rank.BRONZE, 1, 4)
        assert bands[-1] == RankBand(Rank.DIAMOND, 20, None)
        for lower, upper in zip(bands, bands[1:]):
            assert upper.min_level == lower.max_level + 1

    def test_default_config_is_valid(self) -> None:
        config = EngineConfig()
        assert config.lowest_rank == Rank.BRONZE
        assert config.nominal_capacity == 5
        assert config.design_unit_rate == 40.0

    def test_rejects_non_increasing_thresholds(self) -> None:
        with pytest.raises(ValueError, match="strictly increasing"):
            EngineConfig(level_xp_thresholds=(100, 100, 300))

    def test_rejects_non_positive_first_threshold(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            EngineConfig(level_xp_thresholds=(0, 100))

    def test_rejects_gap_between_bands(self) -> None:
        bands = (RankBand(Rank.BRONZE, 1, 4), RankBand(Rank.SILVER, 6, None))
        with pytest.raises(ValueError, match="contiguous"):
            EngineConfig(rank_bands=bands)

    def test_rejects_bands_not_starting_at_level_one(self) -> None:
        with pytest.raises(ValueError, match="level 1"):
            EngineConfig(rank_bands=(RankBand(Rank.BRONZE, 2, None),))

    def test_rejects_bands_out_of_ladder_order(self) -> None:
        bands = bands_from_minimums({"gold": 1, "silver": 5})
        with pytest.raises(ValueError, match="ladder order"):
            EngineConfig(rank_bands=bands)

    def test_rejects_zero_capacity(self) -> None:
        with pytest.raises(ValueError, match="capacity"):
            EngineConfig(nominal_capacity=0)

    def test_default_bonus_tiers(self) -> None:
        assert DEFAULT_BONUS_TIERS == (
            BonusTier(30, 150.0),
            BonusTier(50, 500.0),
            BonusTier(80, 1000.0),
        )

    def test_tiers_are_sorted_by_video_count(self) -> None:
        tiers = tiers_from_mapping({50: 500.0, 10: 20.0})
        assert [t.videos for t in tiers] == [10, 50]

    def test_rejects_unordered_bonus_tiers(self) -> None:
        tiers = (BonusTier(50, 500.0), BonusTier(30, 150.0))
        with pytest.raises(ValueError, match="strictly increasing video count"):
            EngineConfig(bonus_tiers=tiers)

    @pytest.mark.parametrize("tier", [BonusTier(0, 100.0), BonusTier(10, -1.0)])
    def test_rejects_invalid_bonus_tier(self, tier: BonusTier) -> None:
        with pytest.raises(ValueError, match="bonus_tiers"):
            EngineConfig(bonus_tiers=(tier,))

    def test_rejects_zero_notification_attempts(self) -> None:
        with pytest.raises(ValueError, match="max_attempts"):
            EngineConfig(late_notification_max_attempts=0)

    def test_from_settings(self) -> None:
        from production_engine.config import Settings

        settings = Settings(
            design_unit_rate=50.0,
            nominal_capacity=8,
            rank_bands={"bronze": 1, "silver": 3},
            editor_bonus_tiers={40: 300.0},
            late_notification_max_attempts=2,
        )
        config = EngineConfig.from_settings(settings)

        assert config.design_unit_rate == 50.0
        assert config.nominal_capacity == 8
        assert config.rank_bands == (
            RankBand(Rank.BRONZE, 1, 2),
            RankBand(Rank.SILVER, 3, None),
        )
        assert config.bonus_tiers == (BonusTier(40, 300.0),)
        assert config.late_notification_max_attempts == 2
