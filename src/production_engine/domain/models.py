"""Domain models - pure Python classes independent of database."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from production_engine.domain.enums import (
    EDITOR_ROLES,
    ExpenseType,
    Rank,
    TeamRole,
    VideoStatus,
)

DEFAULT_ALLOWED_DURATION_MINUTES = 300


@dataclass
class Project:
    """A client engagement owning zero or more videos."""

    id: UUID
    title: str
    client_id: UUID | None = None
    client_name: str | None = None
    copywriter_id: UUID | None = None
    video_count: int = 0
    deadline: datetime | None = None
    priority: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Video:
    """A unit of deliverable work, assigned to at most one editor."""

    id: UUID
    project_id: UUID
    title: str
    status: VideoStatus = VideoStatus.NEW
    assigned_to: UUID | None = None
    description: str | None = None
    started_at: datetime | None = None
    allowed_duration_minutes: int = DEFAULT_ALLOWED_DURATION_MINUTES
    deadline: datetime | None = None
    is_validated: bool = False
    validated_at: datetime | None = None
    validation_rating: float | None = None
    revision_count: int = 0
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class EditorStat:
    """Rolling performance record of one editor, maintained by delivery events."""

    user_id: UUID
    total_videos_delivered: int = 0
    total_on_time: int = 0
    total_late: int = 0
    consecutive_late_count: int = 0
    streak_days: int = 0
    xp: int = 0
    level: int = 1
    rank: Rank = Rank.BRONZE
    average_rating: float | None = None


@dataclass
class TeamMember:
    """A team member with a pay rate.

    For copywriters, `rate_per_video` holds the flat monthly rate.
    """

    user_id: UUID
    full_name: str | None = None
    email: str | None = None
    role: TeamRole = TeamRole.EDITOR
    status: str = "active"
    rate_per_video: float = 0.0

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or f"Member {str(self.user_id)[:6]}"

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def is_editor(self) -> bool:
        return self.role in EDITOR_ROLES


@dataclass
class ClientProfile:
    """A client's contract and monthly package."""

    user_id: UUID
    company_name: str
    contact_name: str | None = None
    subscription_type: str | None = None
    videos_per_month: int = 0
    design_miniatures_per_month: int = 0
    design_posts_per_month: int = 0
    design_logos_per_month: int = 0
    design_carousels_per_month: int = 0
    has_thumbnail_design: bool = False
    video_rate: float | None = None  # overrides the editor's rate when set
    monthly_price: float = 0.0
    total_contract: float = 0.0
    advance_received: float = 0.0
    contract_duration_months: int = 1
    project_end_date: date | None = None
    copywriter_id: UUID | None = None
    designer_id: UUID | None = None
    account_status: str = "active"


@dataclass
class VideoDelivery:
    """A submitted version of a video."""

    id: UUID
    video_id: UUID
    editor_id: UUID | None
    version_number: int = 1
    submitted_at: datetime | None = None
    external_link: str | None = None
    link_type: str | None = None


@dataclass
class DesignTask:
    """A design request for a client."""

    id: UUID
    title: str
    client_id: UUID | None = None
    client_name: str | None = None
    assigned_to: UUID | None = None


@dataclass
class DesignDelivery:
    """A design submitted by a designer; `notes` carries the type label."""

    id: UUID
    design_task_id: UUID
    designer_id: UUID | None = None
    notes: str | None = None


@dataclass
class DesignFeedback:
    """A review decision on a design delivery."""

    id: UUID
    design_task_id: UUID
    delivery_id: UUID
    decision: str
    reviewed_at: datetime | None = None


@dataclass
class Expense:
    """A shared monthly cost not tied to a client."""

    id: UUID
    month: date
    amount: float
    expense_type: ExpenseType = ExpenseType.FIXED
    category: str | None = None
    expense_date: date | None = None


@dataclass
class Payment:
    """Money received from a client."""

    id: UUID
    client_id: UUID
    amount: float
    payment_date: date
    payment_method: str = "cash"
    notes: str | None = None


@dataclass
class EditorQuestion:
    """A question an editor asked about a video."""

    id: UUID
    video_id: UUID | None
    sender_id: UUID | None = None
    is_answered: bool = False
    created_at: datetime | None = None
