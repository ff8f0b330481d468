"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Team members table
    op.create_table(
        "team_members",
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("role", sa.String(50), nullable=False, server_default="editor"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("rate_per_video", sa.Float(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("ix_team_members_role", "team_members", ["role"])
    op.create_index("ix_team_members_status", "team_members", ["status"])

    # Client profiles table
    op.create_table(
        "client_profiles",
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("subscription_type", sa.String(50), nullable=True),
        sa.Column("videos_per_month", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("design_miniatures_per_month", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("design_posts_per_month", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("design_logos_per_month", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("design_carousels_per_month", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("has_thumbnail_design", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("video_rate", sa.Float(), nullable=True),
        sa.Column("monthly_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_contract", sa.Float(), nullable=False, server_default="0"),
        sa.Column("advance_received", sa.Float(), nullable=False, server_default="0"),
        sa.Column("contract_duration_months", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("project_end_date", sa.Date(), nullable=True),
        sa.Column("copywriter_id", sa.UUID(), nullable=True),
        sa.Column("designer_id", sa.UUID(), nullable=True),
        sa.Column("account_status", sa.String(20), nullable=False, server_default="active"),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("ix_client_profiles_copywriter_id", "client_profiles", ["copywriter_id"])
    op.create_index("ix_client_profiles_account_status", "client_profiles", ["account_status"])

    # Client payments table
    op.create_table(
        "client_payments",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("client_id", sa.UUID(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="cash"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["client_id"], ["client_profiles.user_id"], ondelete="CASCADE"),
    )
    op.create_index("ix_client_payments_client_id", "client_payments", ["client_id"])
    op.create_index("ix_client_payments_payment_date", "client_payments", ["payment_date"])

    # Monthly expenses table
    op.create_table(
        "monthly_expenses",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("month", sa.Date(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("expense_type", sa.String(20), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("expense_date", sa.Date(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_monthly_expenses_month", "monthly_expenses", ["month"])

    # Projects table
    op.create_table(
        "projects",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("client_id", sa.UUID(), nullable=True),
        sa.Column("client_name", sa.String(255), nullable=True),
        sa.Column("copywriter_id", sa.UUID(), nullable=True),
        sa.Column("video_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("priority", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_client_id", "projects", ["client_id"])

    # Videos table
    op.create_table(
        "videos",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("project_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="new"),
        sa.Column("assigned_to", sa.UUID(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("allowed_duration_minutes", sa.Integer(), nullable=False, server_default="300"),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_validated", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("validation_rating", sa.Float(), nullable=True),
        sa.Column("revision_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_videos_project_id", "videos", ["project_id"])
    op.create_index("ix_videos_status", "videos", ["status"])
    op.create_index("ix_videos_assigned_to", "videos", ["assigned_to"])

    # Video deliveries table
    op.create_table(
        "video_deliveries",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("video_id", sa.UUID(), nullable=False),
        sa.Column("editor_id", sa.UUID(), nullable=True),
        sa.Column("version_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("external_link", sa.Text(), nullable=True),
        sa.Column("link_type", sa.String(20), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_video_deliveries_video_id", "video_deliveries", ["video_id"])

    # Editor stats table
    op.create_table(
        "editor_stats",
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("total_videos_delivered", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_on_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_late", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("consecutive_late_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("streak_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("rank", sa.String(20), nullable=False, server_default="bronze"),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("user_id"),
    )

    # Editor questions table
    op.create_table(
        "editor_questions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("video_id", sa.UUID(), nullable=True),
        sa.Column("sender_id", sa.UUID(), nullable=True),
        sa.Column("question", sa.Text(), nullable=True),
        sa.Column("is_answered", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_editor_questions_video_id", "editor_questions", ["video_id"])
    op.create_index("ix_editor_questions_is_answered", "editor_questions", ["is_answered"])

    # Design tasks table
    op.create_table(
        "design_tasks",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("client_id", sa.UUID(), nullable=True),
        sa.Column("client_name", sa.String(255), nullable=True),
        sa.Column("assigned_to", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_design_tasks_client_id", "design_tasks", ["client_id"])

    # Design deliveries table
    op.create_table(
        "design_deliveries",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("design_task_id", sa.UUID(), nullable=False),
        sa.Column("designer_id", sa.UUID(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["design_task_id"], ["design_tasks.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_design_deliveries_design_task_id", "design_deliveries", ["design_task_id"])
    op.create_index("ix_design_deliveries_designer_id", "design_deliveries", ["designer_id"])

    # Design feedback table
    op.create_table(
        "design_feedback",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("design_task_id", sa.UUID(), nullable=False),
        sa.Column("delivery_id", sa.UUID(), nullable=False),
        sa.Column("decision", sa.String(20), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["design_task_id"], ["design_tasks.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["delivery_id"], ["design_deliveries.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_design_feedback_design_task_id", "design_feedback", ["design_task_id"])
    op.create_index("ix_design_feedback_delivery_id", "design_feedback", ["delivery_id"])

    # Late video notification ledger
    op.create_table(
        "late_video_notifications",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("idempotency_key", sa.String(255), nullable=False),
        sa.Column("video_id", sa.UUID(), nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("detected_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("delivered", sa.Boolean(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notified_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key", name="uq_late_video_notifications_key"),
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_late_video_notifications_video_id", "late_video_notifications", ["video_id"]
    )


def downgrade() -> None:
    op.drop_table("late_video_notifications")
    op.drop_table("design_feedback")
    op.drop_table("design_deliveries")
    op.drop_table("design_tasks")
    op.drop_table("editor_questions")
    op.drop_table("editor_stats")
    op.drop_table("video_deliveries")
    op.drop_table("videos")
    op.drop_table("projects")
    op.drop_table("monthly_expenses")
    op.drop_table("client_payments")
    op.drop_table("client_profiles")
    op.drop_table("team_members")
