"""Households, accounts, the point ledger and the chore/reward catalogs."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20260201_01_household_core"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "households",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("invite_code", sa.String(length=16), nullable=False),
        sa.UniqueConstraint("invite_code", name="uq_households_invite_code"),
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.UniqueConstraint("email", name="uq_accounts_email"),
    )
    op.create_index("ix_accounts_household", "accounts", ["household_id"])

    op.create_table(
        "chores",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("icon", sa.String(length=32), nullable=True),
        sa.Column("default_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("updated_by_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_chores_household", "chores", ["household_id"])

    op.create_table(
        "rewards",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("cost_points", sa.Integer(), nullable=False),
        sa.Column("image_ref", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_rewards_household", "rewards", ["household_id"])

    op.create_table(
        "point_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("learner_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text(), nullable=False, server_default=""),
        sa.Column("chore_id", sa.String(length=36), sa.ForeignKey("chores.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reward_id", sa.String(length=36), sa.ForeignKey("rewards.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_by_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    op.create_index("ix_point_entries_learner", "point_entries", ["learner_id"])
    op.create_index("ix_point_entries_household_created", "point_entries", ["household_id", "created_at"])

    op.create_table(
        "chore_badges",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("learner_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("chore_id", sa.String(length=36), sa.ForeignKey("chores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("first_earned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_level_up_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("learner_id", "chore_id", name="uq_chore_badge_learner_chore"),
    )

    op.create_table(
        "achievement_badges",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("learner_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("badge_id", sa.String(length=64), nullable=False),
        sa.Column("earned_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("learner_id", "badge_id", name="uq_achievement_learner_badge"),
    )

    op.create_table(
        "milestones",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("learner_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=32), nullable=True),
        sa.Column("achieved_on", sa.Date(), nullable=False),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_milestones_household_learner", "milestones", ["household_id", "learner_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=True),
        sa.Column("learner_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("actor", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    op.create_index("ix_audit_events_household_created", "audit_events", ["household_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_audit_events_household_created", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_milestones_household_learner", table_name="milestones")
    op.drop_table("milestones")
    op.drop_table("achievement_badges")
    op.drop_table("chore_badges")
    op.drop_index("ix_point_entries_household_created", table_name="point_entries")
    op.drop_index("ix_point_entries_learner", table_name="point_entries")
    op.drop_table("point_entries")
    op.drop_index("ix_rewards_household", table_name="rewards")
    op.drop_table("rewards")
    op.drop_index("ix_chores_household", table_name="chores")
    op.drop_table("chores")
    op.drop_index("ix_accounts_household", table_name="accounts")
    op.drop_table("accounts")
    op.drop_table("households")
