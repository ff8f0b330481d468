"""Domain models and business vocabulary."""

from production_engine.domain.engine_config import EngineConfig, RankBand
from production_engine.domain.enums import (
    ClientFinanceStatus,
    Collection,
    DesignType,
    EditorStatus,
    ExpenseType,
    Rank,
    TeamRole,
    VideoStatus,
)
from production_engine.domain.models import (
    ClientProfile,
    DesignDelivery,
    DesignFeedback,
    DesignTask,
    EditorQuestion,
    EditorStat,
    Expense,
    Payment,
    Project,
    TeamMember,
    Video,
    VideoDelivery,
)
from production_engine.domain.snapshot import Snapshot

__all__ = [
    "ClientFinanceStatus",
    "ClientProfile",
    "Collection",
    "DesignDelivery",
    "DesignFeedback",
    "DesignTask",
    "DesignType",
    "EditorQuestion",
    "EditorStat",
    "EditorStatus",
    "EngineConfig",
    "Expense",
    "ExpenseType",
    "Payment",
    "Project",
    "Rank",
    "RankBand",
    "Snapshot",
    "TeamMember",
    "TeamRole",
    "Video",
    "VideoDelivery",
    "VideoStatus",
]
