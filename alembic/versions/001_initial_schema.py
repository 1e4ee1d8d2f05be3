"""Initial schema: users, tickets, assignments, performance logs, settings.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

COUNTER_KEYS = ("auto-assign:class-cycle", "auto-assign:backbone", "auto-assign:partner")


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(200), unique=True, nullable=True),
        sa.Column("username", sa.String(100), unique=True, nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column(
            "is_backbone_specialist", sa.Boolean, nullable=False, server_default="false"
        ),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_users_role", "users", ["role"])

    # Tickets
    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("ticket_number", sa.String(30), unique=True, nullable=False),
        sa.Column("ticket_id_custom", sa.String(50), nullable=True),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="open"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("description_images", ARRAY(sa.Text), nullable=False, server_default="{}"),
        sa.Column("customer_name", sa.String(200), nullable=False),
        sa.Column("customer_phone", sa.String(50), nullable=False),
        sa.Column("customer_email", sa.String(200), nullable=True),
        sa.Column("customer_location_url", sa.Text, nullable=False),
        sa.Column("area", sa.String(200), nullable=True),
        sa.Column("odp_info", sa.Text, nullable=True),
        sa.Column("odp_location", sa.Text, nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("sla_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("action_description", sa.Text, nullable=True),
        sa.Column("proof_image_url", sa.Text, nullable=True),
        sa.Column("proof_image_urls", ARRAY(sa.Text), nullable=False, server_default="{}"),
        sa.Column("speedtest_result", sa.Text, nullable=True),
        sa.Column("speedtest_image_url", sa.Text, nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_minutes", sa.Integer, nullable=True),
        sa.Column("closed_reason", sa.String(30), nullable=True),
        sa.Column("closed_note", sa.Text, nullable=True),
        sa.Column("perform_status", sa.String(20), nullable=True),
        sa.Column("bonus", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("ticket_fee", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("transport_fee", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("reopen_reason", sa.Text, nullable=True),
        sa.Column("status_before_rejection", sa.String(30), nullable=True),
    )
    op.create_index("idx_tickets_status", "tickets", ["status"])
    op.create_index("idx_tickets_type_status", "tickets", ["type", "status"])
    op.create_index("idx_tickets_created_at", "tickets", ["created_at"])
    op.create_index("idx_tickets_closed_at", "tickets", ["closed_at"])

    # Ticket assignments (history is kept, only active rows count)
    op.create_table(
        "ticket_assignments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "ticket_id",
            sa.Integer,
            sa.ForeignKey("tickets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "assignment_type", sa.String(20), nullable=False, server_default="manual"
        ),
        sa.Column("active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column(
            "assigned_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_assignments_ticket_active", "ticket_assignments", ["ticket_id", "active"]
    )
    op.create_index(
        "idx_assignments_user_active", "ticket_assignments", ["user_id", "active"]
    )

    # Performance logs
    op.create_table(
        "performance_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "ticket_id",
            sa.Integer,
            sa.ForeignKey("tickets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("result", sa.String(20), nullable=False),
        sa.Column("completed_within_sla", sa.Boolean, nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False),
        sa.Column("ticket_fee", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("transport_fee", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("bonus", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("ticket_id", "user_id", name="uq_performance_ticket_user"),
    )
    op.create_index("idx_performance_user", "performance_logs", ["user_id"])
    op.create_index("idx_performance_created_at", "performance_logs", ["created_at"])

    # Settings
    op.create_table(
        "settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.Text, nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # Round Robin State
    rr_table = op.create_table(
        "round_robin_state",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("rr_key", sa.String(500), unique=True, nullable=False),
        sa.Column("counter", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    # Pre-create the auto-assign counters so the first increments lock an existing row
    op.bulk_insert(rr_table, [{"rr_key": key, "counter": 0} for key in COUNTER_KEYS])


def downgrade() -> None:
    op.drop_table("round_robin_state")
    op.drop_table("settings")
    op.drop_table("performance_logs")
    op.drop_table("ticket_assignments")
    op.drop_table("tickets")
    op.drop_table("users")
