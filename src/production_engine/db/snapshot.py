"""Build engine snapshots from the database.

Each collection is fetched in its own session. A collection whose query
fails is logged, left empty and listed in `Snapshot.unavailable`, so the
views built from the snapshot are partial instead of failing outright.
"""

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from production_engine.db.models import (
    ClientPaymentModel,
    ClientProfileModel,
    DesignDeliveryModel,
    DesignFeedbackModel,
    DesignTaskModel,
    EditorQuestionModel,
    EditorStatModel,
    MonthlyExpenseModel,
    ProjectModel,
    TeamMemberModel,
    VideoDeliveryModel,
    VideoModel,
)
from production_engine.db.session import get_session_context
from production_engine.domain.enums import (
    Collection,
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
from production_engine.errors import CollectionUnavailableError
from production_engine.logging import get_logger

logger = get_logger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]


def aware(value: datetime | None) -> datetime | None:
    """Treat naive timestamps from the store as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _role(raw: str | None) -> TeamRole:
    try:
        return TeamRole(raw) if raw else TeamRole.EDITOR
    except ValueError:
        return TeamRole.ADMIN


def _rank(raw: str | None) -> Rank:
    try:
        return Rank(raw) if raw else Rank.BRONZE
    except ValueError:
        return Rank.BRONZE


# =============================================================================
# Row converters
# =============================================================================


def to_project(row: ProjectModel) -> Project:
    return Project(
        id=row.id,
        title=row.title,
        client_id=row.client_id,
        client_name=row.client_name,
        copywriter_id=row.copywriter_id,
        video_count=row.video_count or 0,
        deadline=aware(row.deadline),
        priority=row.priority,
        created_at=aware(row.created_at),
        updated_at=aware(row.updated_at),
    )


def to_video(row: VideoModel) -> Video:
    return Video(
        id=row.id,
        project_id=row.project_id,
        title=row.title,
        status=VideoStatus.normalize(row.status),
        assigned_to=row.assigned_to,
        description=row.description,
        started_at=aware(row.started_at),
        allowed_duration_minutes=row.allowed_duration_minutes or 0,
        deadline=aware(row.deadline),
        is_validated=bool(row.is_validated),
        validated_at=aware(row.validated_at),
        validation_rating=row.validation_rating,
        revision_count=row.revision_count or 0,
        completed_at=aware(row.completed_at),
        created_at=aware(row.created_at),
        updated_at=aware(row.updated_at),
    )


def to_video_delivery(row: VideoDeliveryModel) -> VideoDelivery:
    return VideoDelivery(
        id=row.id,
        video_id=row.video_id,
        editor_id=row.editor_id,
        version_number=row.version_number or 1,
        submitted_at=aware(row.submitted_at),
        external_link=row.external_link,
        link_type=row.link_type,
    )


def to_editor_stat(row: EditorStatModel) -> EditorStat:
    return EditorStat(
        user_id=row.user_id,
        total_videos_delivered=row.total_videos_delivered or 0,
        total_on_time=row.total_on_time or 0,
        total_late=row.total_late or 0,
        consecutive_late_count=row.consecutive_late_count or 0,
        streak_days=row.streak_days or 0,
        xp=row.xp or 0,
        level=row.level or 1,
        rank=_rank(row.rank),
        average_rating=row.average_rating,
    )


def to_editor_question(row: EditorQuestionModel) -> EditorQuestion:
    return EditorQuestion(
        id=row.id,
        video_id=row.video_id,
        sender_id=row.sender_id,
        is_answered=bool(row.is_answered),
        created_at=aware(row.created_at),
    )


def to_team_member(row: TeamMemberModel) -> TeamMember:
    return TeamMember(
        user_id=row.user_id,
        full_name=row.full_name,
        email=row.email,
        role=_role(row.role),
        status=row.status or "active",
        rate_per_video=row.rate_per_video or 0.0,
    )


def to_client(row: ClientProfileModel) -> ClientProfile:
    return ClientProfile(
        user_id=row.user_id,
        company_name=row.company_name,
        contact_name=row.contact_name,
        subscription_type=row.subscription_type,
        videos_per_month=row.videos_per_month or 0,
        design_miniatures_per_month=row.design_miniatures_per_month or 0,
        design_posts_per_month=row.design_posts_per_month or 0,
        design_logos_per_month=row.design_logos_per_month or 0,
        design_carousels_per_month=row.design_carousels_per_month or 0,
        has_thumbnail_design=bool(row.has_thumbnail_design),
        video_rate=row.video_rate,
        monthly_price=row.monthly_price or 0.0,
        total_contract=row.total_contract or 0.0,
        advance_received=row.advance_received or 0.0,
        contract_duration_months=row.contract_duration_months or 1,
        project_end_date=row.project_end_date,
        copywriter_id=row.copywriter_id,
        designer_id=row.designer_id,
        account_status=row.account_status or "active",
    )


def to_payment(row: ClientPaymentModel) -> Payment:
    return Payment(
        id=row.id,
        client_id=row.client_id,
        amount=row.amount,
        payment_date=row.payment_date,
        payment_method=row.payment_method or "cash",
        notes=row.notes,
    )


def to_expense(row: MonthlyExpenseModel) -> Expense:
    return Expense(
        id=row.id,
        month=row.month,
        amount=row.amount,
        expense_type=ExpenseType.from_raw(row.expense_type),
        category=row.category,
        expense_date=row.expense_date,
    )


def to_design_task(row: DesignTaskModel) -> DesignTask:
    return DesignTask(
        id=row.id,
        title=row.title,
        client_id=row.client_id,
        client_name=row.client_name,
        assigned_to=row.assigned_to,
    )


def to_design_delivery(row: DesignDeliveryModel) -> DesignDelivery:
    return DesignDelivery(
        id=row.id,
        design_task_id=row.design_task_id,
        designer_id=row.designer_id,
        notes=row.notes,
    )


def to_design_feedback(row: DesignFeedbackModel) -> DesignFeedback:
    return DesignFeedback(
        id=row.id,
        design_task_id=row.design_task_id,
        delivery_id=row.delivery_id,
        decision=row.decision,
        reviewed_at=aware(row.reviewed_at),
    )


# Collection -> (ORM model, converter)
COLLECTION_SOURCES: dict[Collection, tuple[type[Any], Callable[[Any], Any]]] = {
    Collection.PROJECTS: (ProjectModel, to_project),
    Collection.VIDEOS: (VideoModel, to_video),
    Collection.VIDEO_DELIVERIES: (VideoDeliveryModel, to_video_delivery),
    Collection.EDITOR_STATS: (EditorStatModel, to_editor_stat),
    Collection.EDITOR_QUESTIONS: (EditorQuestionModel, to_editor_question),
    Collection.TEAM_MEMBERS: (TeamMemberModel, to_team_member),
    Collection.CLIENTS: (ClientProfileModel, to_client),
    Collection.PAYMENTS: (ClientPaymentModel, to_payment),
    Collection.EXPENSES: (MonthlyExpenseModel, to_expense),
    Collection.DESIGN_TASKS: (DesignTaskModel, to_design_task),
    Collection.DESIGN_DELIVERIES: (DesignDeliveryModel, to_design_delivery),
    Collection.DESIGN_FEEDBACK: (DesignFeedbackModel, to_design_feedback),
}


class DatabaseSnapshotLoader:
    """Loads every collection into a `Snapshot`."""

    def __init__(self, session_factory: SessionFactory = get_session_context) -> None:
        self.session_factory = session_factory

    def fetch(self, collection: Collection) -> list[Any]:
        """Fetch one collection as domain objects.

        Raises:
            CollectionUnavailableError: If the query fails.
        """
        model, convert = COLLECTION_SOURCES[collection]
        try:
            with self.session_factory() as session:
                rows = session.execute(select(model)).scalars().all()
                return [convert(row) for row in rows]
        except SQLAlchemyError as e:
            raise CollectionUnavailableError(collection.value, e) from e

    def _collections(self, snapshot: Snapshot) -> Iterator[tuple[Collection, list[Any]]]:
        for collection in COLLECTION_SOURCES:
            try:
                yield collection, self.fetch(collection)
            except CollectionUnavailableError as e:
                logger.warning(
                    "collection_unavailable",
                    collection=e.collection,
                    error=str(e.cause),
                )
                snapshot.unavailable.add(collection)

    def load(self, now: datetime | None = None) -> Snapshot:
        """Take a snapshot at `now` (defaults to the current UTC time)."""
        snapshot = Snapshot(taken_at=aware(now) or datetime.now(UTC))
        for collection, records in self._collections(snapshot):
            setattr(snapshot, collection.value, records)

        logger.debug(
            "snapshot_loaded",
            videos=len(snapshot.videos),
            clients=len(snapshot.clients),
            unavailable=sorted(snapshot.unavailable),
        )
        return snapshot

    __call__ = load
