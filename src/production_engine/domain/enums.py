"""Domain enumerations."""

from enum import StrEnum


class VideoStatus(StrEnum):
    """Canonical lifecycle status of a video."""

    NEW = "new"  # Created, not started
    ACTIVE = "active"  # Editor has started working
    LATE = "late"  # Allowed production time exceeded (automatic)
    REVIEW_ADMIN = "review_admin"  # Submitted, waiting for admin validation
    REVIEW_CLIENT = "review_client"  # Approved by admin, sent to client
    REVISION_REQUESTED = "revision_requested"  # Client or admin asked for changes
    COMPLETED = "completed"  # Approved by client
    CANCELLED = "cancelled"

    @classmethod
    def normalize(cls, raw: "str | VideoStatus | None") -> "VideoStatus":
        """Map a raw stored label, including legacy ones, to a canonical status.

        Unknown or missing labels map to NEW.
        """
        if raw is None:
            return cls.NEW
        return STATUS_NORMALIZATION.get(str(raw).strip().lower(), cls.NEW)

    @property
    def is_terminal(self) -> bool:
        return self in (VideoStatus.COMPLETED, VideoStatus.CANCELLED)


# Raw label -> canonical status. Exhaustive over every label the store has used.
STATUS_NORMALIZATION: dict[str, VideoStatus] = {
    "new": VideoStatus.NEW,
    "active": VideoStatus.ACTIVE,
    "in_progress": VideoStatus.ACTIVE,  # legacy
    "late": VideoStatus.LATE,
    "in_review": VideoStatus.REVIEW_ADMIN,  # legacy
    "review_admin": VideoStatus.REVIEW_ADMIN,
    "review_client": VideoStatus.REVIEW_CLIENT,
    "revision_requested": VideoStatus.REVISION_REQUESTED,
    "completed": VideoStatus.COMPLETED,
    "cancelled": VideoStatus.CANCELLED,
}

# Raw labels that mean "being worked on" in storage
ACTIVE_RAW_LABELS: tuple[str, ...] = ("active", "in_progress")


class Rank(StrEnum):
    """Editor rank ladder, lowest first."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"

    @property
    def order(self) -> int:
        return list(Rank).index(self)


class EditorStatus(StrEnum):
    """Computed editor health classification."""

    ACTIVE = "active"
    WARNING = "warning"
    AT_RISK = "at_risk"


class ClientFinanceStatus(StrEnum):
    """Payment health of a client contract."""

    ON_TRACK = "on_track"
    LATE = "late"
    CRITICAL = "critical"


class ExpenseType(StrEnum):
    """Shared monthly expense categories."""

    ADS = "ads"
    DAILY = "daily"
    FIXED = "fixed"

    @classmethod
    def from_raw(cls, raw: str | None) -> "ExpenseType":
        """Parse a stored expense type; anything unrecognised is a fixed cost."""
        try:
            return cls(raw) if raw else cls.FIXED
        except ValueError:
            return cls.FIXED


class DesignType(StrEnum):
    """Design deliverable types, detected from the delivery label."""

    MINIATURES = "miniatures"
    POSTS = "posts"
    LOGOS = "logos"
    CAROUSELS = "carousels"
    OTHER = "other"


class TeamRole(StrEnum):
    """Team member roles."""

    EDITOR = "editor"
    MOTION_DESIGNER = "motion_designer"
    COLORIST = "colorist"
    DESIGNER = "designer"
    COPYWRITER = "copywriter"
    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"


EDITOR_ROLES: frozenset[TeamRole] = frozenset(
    {TeamRole.EDITOR, TeamRole.MOTION_DESIGNER, TeamRole.COLORIST}
)


class Collection(StrEnum):
    """Record collections whose changes trigger recomputation."""

    PROJECTS = "projects"
    VIDEOS = "videos"
    VIDEO_DELIVERIES = "video_deliveries"
    EDITOR_STATS = "editor_stats"
    EDITOR_QUESTIONS = "editor_questions"
    TEAM_MEMBERS = "team_members"
    CLIENTS = "clients"
    PAYMENTS = "payments"
    EXPENSES = "expenses"
    DESIGN_TASKS = "design_tasks"
    DESIGN_DELIVERIES = "design_deliveries"
    DESIGN_FEEDBACK = "design_feedback"
