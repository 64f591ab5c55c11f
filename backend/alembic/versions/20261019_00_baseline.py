"""Baseline schema: users, health readings and alerts.

Revision ID: 20261019_00
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "20261019_00"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notification_settings", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_created_at", "users", ["created_at"], unique=False)

    op.create_table(
        "health_readings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(length=40), nullable=False),
        sa.Column("numeric_value", sa.Float(), nullable=True),
        sa.Column("systolic", sa.Float(), nullable=True),
        sa.Column("diastolic", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(length=20), nullable=False),
        sa.Column("source", sa.String(length=100), nullable=True),
        sa.Column("observed_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["subject_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_health_readings_subject_id", "health_readings", ["subject_id"], unique=False
    )
    op.create_index(
        "ix_health_readings_created_at", "health_readings", ["created_at"], unique=False
    )
    op.create_index(
        "ix_health_readings_subject_kind_observed",
        "health_readings",
        ["subject_id", "kind", "observed_at"],
        unique=False,
    )
    op.create_index(
        "ix_health_readings_subject_observed",
        "health_readings",
        ["subject_id", "observed_at"],
        unique=False,
    )

    op.create_table(
        "alerts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False, comment="critical|warning|info"),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("source", sa.String(length=100), nullable=False),
        sa.Column("related_kind", sa.String(length=40), nullable=False),
        sa.Column("observed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fingerprint", sa.String(length=80), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["subject_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fingerprint", name="uq_alerts_fingerprint"),
    )
    op.create_index("ix_alerts_subject_id", "alerts", ["subject_id"], unique=False)
    op.create_index("ix_alerts_created_at", "alerts", ["created_at"], unique=False)
    op.create_index(
        "ix_alerts_subject_severity_created",
        "alerts",
        ["subject_id", "severity", "created_at"],
        unique=False,
    )
    op.create_index(
        "ix_alerts_subject_title_created",
        "alerts",
        ["subject_id", "title", "created_at"],
        unique=False,
    )
    op.create_index(
        "ix_alerts_subject_read_observed",
        "alerts",
        ["subject_id", "is_read", "observed_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_alerts_subject_read_observed", table_name="alerts")
    op.drop_index("ix_alerts_subject_title_created", table_name="alerts")
    op.drop_index("ix_alerts_subject_severity_created", table_name="alerts")
    op.drop_index("ix_alerts_created_at", table_name="alerts")
    op.drop_index("ix_alerts_subject_id", table_name="alerts")
    op.drop_table("alerts")

    op.drop_index("ix_health_readings_subject_observed", table_name="health_readings")
    op.drop_index("ix_health_readings_subject_kind_observed", table_name="health_readings")
    op.drop_index("ix_health_readings_created_at", table_name="health_readings")
    op.drop_index("ix_health_readings_subject_id", table_name="health_readings")
    op.drop_table("health_readings")

    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_table("users")
