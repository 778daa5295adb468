"""Meal logs, daily meal journals, the custom math question bank and badge templates."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20260201_03_meal_logs_questions_badge_templates"
down_revision = "20260201_02_learning_and_meals"
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "meal_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("dish_id", sa.String(length=36), sa.ForeignKey("dishes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("meal_type", sa.String(length=16), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("logged_by_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("cooked_by_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_meal_logs_household_day", "meal_logs", ["household_id", "day"])

    op.create_table(
        "daily_meal_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("daily_items", sa.JSON(), nullable=False),
        sa.UniqueConstraint("household_id", "day", name="uq_daily_meal_log_household_day"),
    )

    op.create_table(
        "daily_meal_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("daily_log_id", sa.String(length=36), sa.ForeignKey("daily_meal_logs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("meal_type", sa.String(length=16), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_daily_meal_entries_log", "daily_meal_entries", ["daily_log_id"])

    op.create_table(
        "daily_meal_dishes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("entry_id", sa.String(length=36), sa.ForeignKey("daily_meal_entries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("dish_id", sa.String(length=36), sa.ForeignKey("dishes.id", ondelete="SET NULL"), nullable=True),
        sa.Column("dish_name", sa.String(length=200), nullable=False),
        sa.Column("is_free_form", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_daily_meal_dishes_entry", "daily_meal_dishes", ["entry_id"])

    op.create_table(
        "custom_math_questions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question", sa.String(length=200), nullable=False),
        sa.Column("answer", sa.Integer(), nullable=False),
        sa.Column("question_type", sa.String(length=32), nullable=False, server_default="custom"),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
    )
    op.create_index(
        "ix_custom_math_questions_household_order", "custom_math_questions", ["household_id", "sort_order"]
    )

    op.create_table(
        "badge_templates",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("built_in_badge_id", sa.String(length=64), nullable=True),
        sa.Column("chore_id", sa.String(length=36), sa.ForeignKey("chores.id", ondelete="CASCADE"), nullable=True),
        sa.Column("name", sa.String(length=128), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=32), nullable=True),
        sa.Column("image_ref", sa.Text(), nullable=True),
        sa.Column("translations", sa.JSON(), nullable=False),
        sa.Column("rule_config", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("updated_by_id", sa.String(length=36), nullable=True),
        sa.UniqueConstraint("household_id", "built_in_badge_id", name="uq_badge_template_household_builtin"),
        sa.UniqueConstraint("household_id", "chore_id", name="uq_badge_template_household_chore"),
    )


def downgrade() -> None:
    op.drop_table("badge_templates")
    op.drop_index("ix_custom_math_questions_household_order", table_name="custom_math_questions")
    op.drop_table("custom_math_questions")
    op.drop_index("ix_daily_meal_dishes_entry", table_name="daily_meal_dishes")
    op.drop_table("daily_meal_dishes")
    op.drop_index("ix_daily_meal_entries_log", table_name="daily_meal_entries")
    op.drop_table("daily_meal_entries")
    op.drop_table("daily_meal_logs")
    op.drop_index("ix_meal_logs_household_day", table_name="meal_logs")
    op.drop_table("meal_logs")
