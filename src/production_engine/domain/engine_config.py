"""Computation constants passed explicitly into the engine."""

from dataclasses import dataclass, field

from production_engine.config import Settings
from production_engine.domain.enums import Rank


@dataclass(frozen=True)
class RankBand:
    """Inclusive level range mapped to a rank. `max_level` None means open-ended."""

    rank: Rank
    min_level: int
    max_level: int | None = None

    def contains(self, level: int) -> bool:
        if level < self.min_level:
            return False
        return self.max_level is None or level <= self.max_level


def bands_from_minimums(minimums: dict[str, int]) -> tuple[RankBand, ...]:
    """Build contiguous bands from a rank -> minimum level mapping."""
    ordered = sorted(((Rank(name), level) for name, level in minimums.items()), key=lambda x: x[1])
    bands = []
    for index, (rank, min_level) in enumerate(ordered):
        next_min = ordered[index + 1][1] if index + 1 < len(ordered) else None
        bands.append(
            RankBand(
                rank=rank,
                min_level=min_level,
                max_level=next_min - 1 if next_min is not None else None,
            )
        )
    return tuple(bands)


@dataclass(frozen=True)
class BonusTier:
    """Monthly bonus paid once an editor completes `videos` videos in the month."""

    videos: int
    bonus: float


def tiers_from_mapping(tiers: dict[int, float]) -> tuple[BonusTier, ...]:
    """Build bonus tiers from a video count -> bonus mapping, lowest tier first."""
    return tuple(BonusTier(videos=videos, bonus=bonus) for videos, bonus in sorted(tiers.items()))


DEFAULT_RANK_BANDS = bands_from_minimums(
    {"bronze": 1, "silver": 5, "gold": 10, "platinum": 15, "diamond": 20}
)
DEFAULT_LEVEL_XP_THRESHOLDS = tuple(50 * n * (n + 1) for n in range(1, 25))
DEFAULT_BONUS_TIERS = tiers_from_mapping({30: 150.0, 50: 500.0, 80: 1000.0})


@dataclass(frozen=True)
class EngineConfig:
    """Recognised options for the production engine.

    Every pure computation receives one of these instead of reading globals.
    """

    design_unit_rate: float = 40.0
    nominal_capacity: int = 5
    default_allowed_duration_minutes: int = 300
    default_video_rate: float = 100.0
    at_risk_on_time_threshold: float = 75.0
    at_risk_late_streak: int = 3
    client_late_remaining_ratio: float = 0.5
    level_xp_thresholds: tuple[int, ...] = DEFAULT_LEVEL_XP_THRESHOLDS
    rank_bands: tuple[RankBand, ...] = field(default=DEFAULT_RANK_BANDS)
    bonus_tiers: tuple[BonusTier, ...] = DEFAULT_BONUS_TIERS
    late_notification_max_attempts: int = 5

    def __post_init__(self) -> None:
        thresholds = self.level_xp_thresholds
        if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            raise ValueError("level_xp_thresholds must be strictly increasing")
        if thresholds and thresholds[0] <= 0:
            raise ValueError("level_xp_thresholds must be positive")

        bands = self.rank_bands
        if not bands:
            raise ValueError("rank_bands must not be empty")
        if bands[0].min_level != 1:
            raise ValueError("the lowest rank band must start at level 1")
        for lower, upper in zip(bands, bands[1:]):
            if lower.max_level is None or upper.min_level != lower.max_level + 1:
                raise ValueError("rank_bands must be contiguous and non-overlapping")
            if upper.rank.order <= lower.rank.order:
                raise ValueError("rank_bands must follow the rank ladder order")
        if self.nominal_capacity <= 0:
            raise ValueError("nominal_capacity must be positive")

        tiers = self.bonus_tiers
        if any(t.videos <= 0 or t.bonus < 0 for t in tiers):
            raise ValueError("bonus_tiers need a positive video count and a non-negative bonus")
        if any(b.videos <= a.videos for a, b in zip(tiers, tiers[1:])):
            raise ValueError("bonus_tiers must be ordered by strictly increasing video count")
        if self.late_notification_max_attempts <= 0:
            raise ValueError("late_notification_max_attempts must be positive")

    @property
    def lowest_rank(self) -> Rank:
        return self.rank_bands[0].rank

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        """Build the engine configuration from application settings."""
        return cls(
            design_unit_rate=settings.design_unit_rate,
            nominal_capacity=settings.nominal_capacity,
            default_allowed_duration_minutes=settings.default_allowed_duration_minutes,
            default_video_rate=settings.default_video_rate,
            at_risk_on_time_threshold=settings.at_risk_on_time_threshold,
            at_risk_late_streak=settings.at_risk_late_streak,
            client_late_remaining_ratio=settings.client_late_remaining_ratio,
            level_xp_thresholds=tuple(settings.level_xp_thresholds),
            rank_bands=bands_from_minimums(settings.rank_bands),
            bonus_tiers=tiers_from_mapping(settings.editor_bonus_tiers),
            late_notification_max_attempts=settings.late_notification_max_attempts,
        )
