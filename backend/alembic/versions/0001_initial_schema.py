"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Creates all tables for Schedula:
profiles, events, rsvps, attendance, notifications, event_mutations.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- profiles ---
    op.create_table(
        "profiles",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="attendee"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("timezone", sa.String(50), nullable=False, server_default="UTC"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("organizer_id", sa.String(36), sa.ForeignKey("profiles.user_id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("location_text", sa.String(500), nullable=True),
        sa.Column("start_time_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("capacity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("pricing_type", sa.String(10), nullable=False, server_default="free"),
        sa.Column("price_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("requires_approval", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancel_reason", sa.String(500), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("capacity >= 0", name="ck_events_capacity_non_negative"),
    )
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])

    # --- rsvps ---
    op.create_table(
        "rsvps",
        sa.Column("rsvp_id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.user_id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("checked_in", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("checked_in_by", sa.String(36), sa.ForeignKey("profiles.user_id"), nullable=True),
        sa.Column("check_in_method", sa.String(10), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.CheckConstraint("NOT checked_in OR checked_in_at IS NOT NULL", name="ck_rsvps_checked_in_timestamp"),
    )
    op.create_index("ix_rsvps_user_id", "rsvps", ["user_id"])
    op.create_index("ix_rsvps_event_status_registered", "rsvps", ["event_id", "status", "registered_at"])
    op.create_index(
        "uq_rsvps_active_event_user",
        "rsvps",
        ["event_id", "user_id"],
        unique=True,
        sqlite_where=sa.text("status != 'cancelled'"),
        postgresql_where=sa.text("status != 'cancelled'"),
    )

    # --- attendance ---
    op.create_table(
        "attendance",
        sa.Column("attendance_id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.user_id"), nullable=False),
        sa.Column("rsvp_id", sa.String(36), sa.ForeignKey("rsvps.rsvp_id"), nullable=False, unique=True),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("checked_in_by", sa.String(36), sa.ForeignKey("profiles.user_id"), nullable=False),
        sa.Column("method", sa.String(10), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.UniqueConstraint("event_id", "user_id", name="uq_attendance_event_user"),
    )
    op.create_index("ix_attendance_event_id", "attendance", ["event_id"])
    op.create_index("ix_attendance_user_id", "attendance", ["user_id"])

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.user_id"), nullable=False),
        sa.Column("type", sa.String(10), nullable=False, server_default="info"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.String(1000), nullable=False),
        sa.Column("action_url", sa.String(500), nullable=True),
        sa.Column("read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    # --- event_mutations ---
    op.create_table(
        "event_mutations",
        sa.Column("mutation_id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("actor_user_id", sa.String(36), sa.ForeignKey("profiles.user_id"), nullable=False),
        sa.Column("action_type", sa.String(20), nullable=False),
        sa.Column("before_snapshot", sa.JSON, nullable=True),
        sa.Column("after_snapshot", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_event_mutations_event_id", "event_mutations", ["event_id"])


def downgrade() -> None:
    op.drop_table("event_mutations")
    op.drop_table("notifications")
    op.drop_table("attendance")
    op.drop_table("rsvps")
    op.drop_table("events")
    op.drop_table("profiles")
