"""SQLAlchemy ORM models."""

from datetime import date, datetime
from uuid import UUID as PyUUID
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Production Models
# =============================================================================


class ProjectModel(Base):
    """Client engagement ORM model."""

    __tablename__ = "projects"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True, index=True)
    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    copywriter_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True)
    video_count: Mapped[int] = mapped_column(Integer, server_default="0")
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    priority: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    videos: Mapped[list["VideoModel"]] = relationship(
        "VideoModel", back_populates="project", cascade="all, delete-orphan"
    )


class VideoModel(Base):
    """Deliverable video ORM model.

    `status` holds the raw stored label; legacy labels are normalized when
    loaded into the domain.
    """

    __tablename__ = "videos"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), server_default="new", index=True)
    assigned_to: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True, index=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    allowed_duration_minutes: Mapped[int] = mapped_column(Integer, server_default="300")
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_validated: Mapped[bool] = mapped_column(Boolean, server_default="false")
    validated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    validation_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    revision_count: Mapped[int] = mapped_column(Integer, server_default="0")
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    project: Mapped["ProjectModel"] = relationship("ProjectModel", back_populates="videos")
    deliveries: Mapped[list["VideoDeliveryModel"]] = relationship(
        "VideoDeliveryModel", back_populates="video", cascade="all, delete-orphan"
    )


class VideoDeliveryModel(Base):
    """Submitted video version ORM model."""

    __tablename__ = "video_deliveries"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    video_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("videos.id", ondelete="CASCADE"), index=True
    )
    editor_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True)
    version_number: Mapped[int] = mapped_column(Integer, server_default="1")
    external_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    link_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    video: Mapped["VideoModel"] = relationship("VideoModel", back_populates="deliveries")


class EditorStatModel(Base):
    """Rolling editor performance ORM model."""

    __tablename__ = "editor_stats"

    user_id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True)
    total_videos_delivered: Mapped[int] = mapped_column(Integer, server_default="0")
    total_on_time: Mapped[int] = mapped_column(Integer, server_default="0")
    total_late: Mapped[int] = mapped_column(Integer, server_default="0")
    consecutive_late_count: Mapped[int] = mapped_column(Integer, server_default="0")
    streak_days: Mapped[int] = mapped_column(Integer, server_default="0")
    xp: Mapped[int] = mapped_column(Integer, server_default="0")
    level: Mapped[int] = mapped_column(Integer, server_default="1")
    rank: Mapped[str] = mapped_column(String(20), server_default="bronze")
    average_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )


class EditorQuestionModel(Base):
    """Editor question ORM model."""

    __tablename__ = "editor_questions"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    video_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True, index=True)
    sender_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True)
    question: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_answered: Mapped[bool] = mapped_column(Boolean, server_default="false", index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class TeamMemberModel(Base):
    """Team member ORM model."""

    __tablename__ = "team_members"

    user_id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), server_default="editor", index=True)
    status: Mapped[str] = mapped_column(String(20), server_default="active", index=True)
    rate_per_video: Mapped[float] = mapped_column(Float, server_default="0")


class ClientProfileModel(Base):
    """Client contract and monthly package ORM model."""

    __tablename__ = "client_profiles"

    user_id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subscription_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    videos_per_month: Mapped[int] = mapped_column(Integer, server_default="0")
    design_miniatures_per_month: Mapped[int] = mapped_column(Integer, server_default="0")
    design_posts_per_month: Mapped[int] = mapped_column(Integer, server_default="0")
    design_logos_per_month: Mapped[int] = mapped_column(Integer, server_default="0")
    design_carousels_per_month: Mapped[int] = mapped_column(Integer, server_default="0")
    has_thumbnail_design: Mapped[bool] = mapped_column(Boolean, server_default="false")
    video_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    monthly_price: Mapped[float] = mapped_column(Float, server_default="0")
    total_contract: Mapped[float] = mapped_column(Float, server_default="0")
    advance_received: Mapped[float] = mapped_column(Float, server_default="0")
    contract_duration_months: Mapped[int] = mapped_column(Integer, server_default="1")
    project_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    copywriter_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True, index=True)
    designer_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True)
    account_status: Mapped[str] = mapped_column(String(20), server_default="active", index=True)

    # Relationships
    payments: Mapped[list["ClientPaymentModel"]] = relationship(
        "ClientPaymentModel", back_populates="client", cascade="all, delete-orphan"
    )


class ClientPaymentModel(Base):
    """Client payment ORM model."""

    __tablename__ = "client_payments"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    client_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("client_profiles.user_id", ondelete="CASCADE"), index=True
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    payment_method: Mapped[str] = mapped_column(String(20), server_default="cash")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    client: Mapped["ClientProfileModel"] = relationship(
        "ClientProfileModel", back_populates="payments"
    )


class MonthlyExpenseModel(Base):
    """Shared monthly expense ORM model."""

    __tablename__ = "monthly_expenses"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    month: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    expense_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    expense_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class DesignTaskModel(Base):
    """Design request ORM model."""

    __tablename__ = "design_tasks"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True, index=True)
    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assigned_to: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class DesignDeliveryModel(Base):
    """Submitted design ORM model. `notes` starts with the `[Type]` label."""

    __tablename__ = "design_deliveries"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    design_task_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("design_tasks.id", ondelete="CASCADE"), index=True
    )
    designer_id: Mapped[PyUUID | None] = mapped_column(Uuid, nullable=True, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class DesignFeedbackModel(Base):
    """Design review decision ORM model."""

    __tablename__ = "design_feedback"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    design_task_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("design_tasks.id", ondelete="CASCADE"), index=True
    )
    delivery_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("design_deliveries.id", ondelete="CASCADE"), index=True
    )
    decision: Mapped[str] = mapped_column(String(20), nullable=False)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# =============================================================================
# Write-back Ledger
# =============================================================================


class LateVideoNotificationModel(Base):
    """One row per recorded late transition and the state of its notification.

    `delivered` is None until a worker has tried to notify. A worker owns the
    notification while `claimed_at` is within the lease.
    """

    __tablename__ = "late_video_notifications"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    idempotency_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    video_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("videos.id", ondelete="CASCADE"), index=True
    )
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    detected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    delivered: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
