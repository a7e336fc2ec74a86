"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for ClubHub:
users, clubs, club_members, membership_requests, events,
registrations, event_attendance, payments.
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
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("roll_number", sa.String(30), nullable=True, unique=True),
        sa.Column("role", sa.Enum("student", "leader", "admin", name="userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- clubs ---
    op.create_table(
        "clubs",
        sa.Column("club_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("leader_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- club_members ---
    op.create_table(
        "club_members",
        sa.Column("club_id", sa.String(36), sa.ForeignKey("clubs.club_id"), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- membership_requests ---
    op.create_table(
        "membership_requests",
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("club_id", sa.String(36), sa.ForeignKey("clubs.club_id"), nullable=False),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("reason", sa.String(500), nullable=True),
        sa.Column("status", sa.Enum("pending", "approved", "rejected", name="requeststatus"), nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.String(36), sa.ForeignKey("users.user_id"), nullable=True),
    )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("club_id", sa.String(36), sa.ForeignKey("clubs.club_id"), nullable=False),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("time", sa.String(50), nullable=False),
        sa.Column("venue", sa.String(255), nullable=True),
        sa.Column("visibility", sa.Enum("club_only", "open_to_all", name="eventvisibility"), nullable=False),
        sa.Column("status", sa.Enum("pending", "approved", "rejected", name="eventstatus"), nullable=False),
        sa.Column("is_paid", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("max_participants", sa.Integer, nullable=False, server_default="100"),
        sa.Column("registration_deadline", sa.Date, nullable=True),
        sa.Column("poster", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_events_club_status", "events", ["club_id", "status"])
    op.create_index("ix_events_date", "events", ["date"])

    # --- registrations ---
    op.create_table(
        "registrations",
        sa.Column("registration_id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("qr_token", sa.String(64), nullable=False, unique=True),
        sa.Column("qr_code", sa.String(500), nullable=False),
        sa.Column("registered_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("attended", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("attended_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("event_id", "student_id", name="uq_registrations_event_student"),
    )

    # --- event_attendance ---
    op.create_table(
        "event_attendance",
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), primary_key=True),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column("marked_by", sa.String(36), sa.ForeignKey("users.user_id"), nullable=True),
        sa.Column("marked_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- payments ---
    op.create_table(
        "payments",
        sa.Column("payment_id", sa.String(36), primary_key=True),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("gateway_order_id", sa.String(64), nullable=False, unique=True),
        sa.Column("gateway_payment_id", sa.String(64), nullable=True),
        sa.Column("gateway_signature", sa.String(128), nullable=True),
        sa.Column("status", sa.Enum("created", "paid", name="paymentstatus"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "uq_payments_paid_student_event",
        "payments",
        ["student_id", "event_id"],
        unique=True,
        sqlite_where=sa.text("status = 'paid'"),
        postgresql_where=sa.text("status = 'paid'"),
    )


def downgrade() -> None:
    op.drop_index("uq_payments_paid_student_event", table_name="payments")
    op.drop_table("payments")
    op.drop_table("event_attendance")
    op.drop_table("registrations")
    op.drop_index("ix_events_date", table_name="events")
    op.drop_index("ix_events_club_status", table_name="events")
    op.drop_table("events")
    op.drop_table("membership_requests")
    op.drop_table("club_members")
    op.drop_table("clubs")
    op.drop_table("users")
    for enum_name in ("paymentstatus", "eventstatus", "eventvisibility", "requeststatus", "userrole"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
