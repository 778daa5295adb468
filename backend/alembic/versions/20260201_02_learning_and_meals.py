"""Sight words, daily math progress, attempt history, math settings and meal voting."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20260201_02_learning_and_meals"
down_revision = "20260201_01_household_core"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "sight_words",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("word", sa.String(length=64), nullable=False),
        sa.Column("image_ref", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("updated_by_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_sight_words_household_order", "sight_words", ["household_id", "sort_order"])

    op.create_table(
        "sight_word_progress",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("learner_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sight_word_id", sa.String(length=36), sa.ForeignKey("sight_words.id", ondelete="CASCADE"), nullable=False),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("quiz_passed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reward_granted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("presented_on", sa.String(length=10), nullable=True),
        sa.UniqueConstraint("learner_id", "sight_word_id", name="uq_sight_word_progress_learner_word"),
    )

    op.create_table(
        "math_progress",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("learner_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day", sa.String(length=10), nullable=False),
        sa.Column("addition_passed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subtraction_passed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reward_granted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint("learner_id", "day", name="uq_math_progress_learner_day"),
    )

    op.create_table(
        "math_attempts",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("learner_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question_type", sa.String(length=16), nullable=False),
        sa.Column("question", sa.String(length=64), nullable=False),
        sa.Column("correct_answer", sa.Integer(), nullable=False),
        sa.Column("given_answer", sa.Integer(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("response_time_ms", sa.Integer(), nullable=True),
        sa.Column("source", sa.String(length=32), nullable=False, server_default="daily"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    op.create_index("ix_math_attempts_learner_created", "math_attempts", ["learner_id", "created_at"])
    op.create_index("ix_math_attempts_household", "math_attempts", ["household_id"])

    op.create_table(
        "math_settings",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("daily_question_count", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("addition_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("subtraction_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("multiplication_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("division_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ranges", sa.JSON(), nullable=False),
        sa.Column("allow_carrying", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("allow_borrowing", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("adaptive_difficulty", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("focus_areas", sa.JSON(), nullable=False),
        sa.UniqueConstraint("household_id", name="uq_math_settings_household_id"),
    )

    op.create_table(
        "dishes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("photo_ref", sa.Text(), nullable=True),
        sa.Column("ingredients", sa.JSON(), nullable=False),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    op.create_index("ix_dishes_household", "dishes", ["household_id"])

    op.create_table(
        "dish_votes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("household_id", sa.String(length=36), sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False),
        sa.Column("voter_id", sa.String(length=36), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("dish_id", sa.String(length=36), sa.ForeignKey("dishes.id", ondelete="CASCADE"), nullable=True),
        sa.Column("suggested_dish_name", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("voter_id", "dish_id", name="uq_dish_vote_voter_dish"),
    )
    op.create_index("ix_dish_votes_household", "dish_votes", ["household_id"])


def downgrade() -> None:
    op.drop_index("ix_dish_votes_household", table_name="dish_votes")
    op.drop_table("dish_votes")
    op.drop_index("ix_dishes_household", table_name="dishes")
    op.drop_table("dishes")
    op.drop_table("math_settings")
    op.drop_index("ix_math_attempts_household", table_name="math_attempts")
    op.drop_index("ix_math_attempts_learner_created", table_name="math_attempts")
    op.drop_table("math_attempts")
    op.drop_table("math_progress")
    op.drop_table("sight_word_progress")
    op.drop_index("ix_sight_words_household_order", table_name="sight_words")
    op.drop_table("sight_words")
