"""initial membership schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00.000000

This migration:
1. Creates the user_role and application_status enum types
2. Creates the users table
3. Creates the applications table (one per user)
4. Creates the onboarding_responses table (one per user)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create users, applications and onboarding_responses."""
    bind = op.get_bind()

    user_role_enum = postgresql.ENUM("MEMBER", "ADMIN", name="user_role", create_type=False)
    user_role_enum.create(bind, checkfirst=True)

    application_status_enum = postgresql.ENUM(
        "DRAFT",
        "PENDING",
        "ACCEPTED",
        "REJECTED",
        name="application_status",
        create_type=False,
    )
    application_status_enum.create(bind, checkfirst=True)

    # Users
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("role", user_role_enum, nullable=False, server_default="MEMBER"),
        sa.Column("onboarding_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    # Applications
    op.create_table(
        "applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "answers",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("status", application_status_enum, nullable=False, server_default="DRAFT"),
        # Payment proof
        sa.Column("payment_proof_key", sa.String(length=512), nullable=True),
        sa.Column("payment_proof_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_verified_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        # Decision
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("decision_note", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_applications_user_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["payment_verified_by"],
            ["users.id"],
            name="fk_applications_payment_verified_by",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["reviewed_by"],
            ["users.id"],
            name="fk_applications_reviewed_by",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("user_id", name="uq_applications_user_id"),
    )
    op.create_index(
        "ix_applications_status_submitted_at",
        "applications",
        ["status", "submitted_at"],
        unique=False,
    )

    # Onboarding responses
    op.create_table(
        "onboarding_responses",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("answers", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_onboarding_responses_user_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", name="uq_onboarding_responses_user_id"),
    )


def downgrade() -> None:
    """Drop every membership table and enum type."""
    op.drop_table("onboarding_responses")

    op.drop_index("ix_applications_status_submitted_at", table_name="applications")
    op.drop_table("applications")

    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    postgresql.ENUM(name="application_status").drop(bind, checkfirst=True)
    postgresql.ENUM(name="user_role").drop(bind, checkfirst=True)
