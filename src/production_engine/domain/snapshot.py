"""Point-in-time view of every record collection the engine reads."""

from dataclasses import dataclass, field
from datetime import date, datetime

from production_engine.domain.enums import Collection
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


@dataclass
class Snapshot:
    """Input collections for one recomputation.

    Collections that could not be fetched are empty and listed in
    `unavailable`; results derived from such a snapshot are partial.
    """

    taken_at: datetime
    projects: list[Project] = field(default_factory=list)
    videos: list[Video] = field(default_factory=list)
    video_deliveries: list[VideoDelivery] = field(default_factory=list)
    editor_stats: list[EditorStat] = field(default_factory=list)
    editor_questions: list[EditorQuestion] = field(default_factory=list)
    team_members: list[TeamMember] = field(default_factory=list)
    clients: list[ClientProfile] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    design_tasks: list[DesignTask] = field(default_factory=list)
    design_deliveries: list[DesignDelivery] = field(default_factory=list)
    design_feedback: list[DesignFeedback] = field(default_factory=list)
    unavailable: set[Collection] = field(default_factory=set)

    @property
    def partial(self) -> bool:
        return bool(self.unavailable)

    @property
    def today(self) -> date:
        return self.taken_at.date()
