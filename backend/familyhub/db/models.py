"""ORM models backing the household persistence layer."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin, utcnow

JSONType = JSON


def _uuid() -> str:
    return str(uuid.uuid4())


class HouseholdModel(TimestampMixin, Base):
    __tablename__ = "households"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    invite_code: Mapped[str] = mapped_column(String(16), nullable=False, unique=True)

    members: Mapped[list["AccountModel"]] = relationship(back_populates="household")


class AccountModel(TimestampMixin, Base):
    __tablename__ = "accounts"
    __table_args__ = (Index("ix_accounts_household", "household_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    household: Mapped[HouseholdModel | None] = relationship(back_populates="members")


class PointEntryModel(Base):
    __tablename__ = "point_entries"
    __table_args__ = (
        Index("ix_point_entries_learner", "learner_id"),
        Index("ix_point_entries_household_created", "household_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    learner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[str] = mapped_column(Text, default="", nullable=False)
    chore_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("chores.id", ondelete="SET NULL"), nullable=True
    )
    reward_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("rewards.id", ondelete="SET NULL"), nullable=True
    )
    created_by_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class ChoreModel(TimestampMixin, Base):
    __tablename__ = "chores"
    __table_args__ = (Index("ix_chores_household", "household_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    default_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    updated_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class ChoreBadgeModel(Base):
    __tablename__ = "chore_badges"
    __table_args__ = (UniqueConstraint("learner_id", "chore_id", name="uq_chore_badge_learner_chore"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    learner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    chore_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("chores.id", ondelete="CASCADE"), nullable=False
    )
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    first_earned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_level_up_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    chore: Mapped[ChoreModel] = relationship()


class AchievementBadgeModel(Base):
    __tablename__ = "achievement_badges"
    __table_args__ = (UniqueConstraint("learner_id", "badge_id", name="uq_achievement_learner_badge"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    learner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    badge_id: Mapped[str] = mapped_column(String(64), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class RewardModel(TimestampMixin, Base):
    __tablename__ = "rewards"
    __table_args__ = (Index("ix_rewards_household", "household_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    cost_points: Mapped[int] = mapped_column(Integer, nullable=False)
    image_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class MilestoneModel(TimestampMixin, Base):
    __tablename__ = "milestones"
    __table_args__ = (Index("ix_milestones_household_learner", "household_id", "learner_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    learner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    achieved_on: Mapped[date] = mapped_column(Date, nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class SightWordModel(TimestampMixin, Base):
    __tablename__ = "sight_words"
    __table_args__ = (Index("ix_sight_words_household_order", "household_id", "sort_order"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    word: Mapped[str] = mapped_column(String(64), nullable=False)
    image_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    updated_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class SightWordProgressModel(Base):
    __tablename__ = "sight_word_progress"
    __table_args__ = (
        UniqueConstraint("learner_id", "sight_word_id", name="uq_sight_word_progress_learner_word"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    learner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    sight_word_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sight_words.id", ondelete="CASCADE"), nullable=False
    )
    viewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    quiz_passed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reward_granted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    presented_on: Mapped[str | None] = mapped_column(String(10), nullable=True)


class MathProgressModel(TimestampMixin, Base):
    __tablename__ = "math_progress"
    __table_args__ = (UniqueConstraint("learner_id", "day", name="uq_math_progress_learner_day"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    learner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    day: Mapped[str] = mapped_column(String(10), nullable=False)
    addition_passed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    subtraction_passed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reward_granted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class MathAttemptModel(Base):
    __tablename__ = "math_attempts"
    __table_args__ = (
        Index("ix_math_attempts_learner_created", "learner_id", "created_at"),
        Index("ix_math_attempts_household", "household_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    learner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    question_type: Mapped[str] = mapped_column(String(16), nullable=False)
    question: Mapped[str] = mapped_column(String(64), nullable=False)
    correct_answer: Mapped[int] = mapped_column(Integer, nullable=False)
    given_answer: Mapped[int] = mapped_column(Integer, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    response_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    source: Mapped[str] = mapped_column(String(32), default="daily", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class MathSettingsModel(TimestampMixin, Base):
    __tablename__ = "math_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    daily_question_count: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    addition_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    subtraction_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    multiplication_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    division_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ranges: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    allow_carrying: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_borrowing: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    adaptive_difficulty: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    focus_areas: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)


class DishModel(Base):
    __tablename__ = "dishes"
    __table_args__ = (Index("ix_dishes_household", "household_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    photo_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    ingredients: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class DishVoteModel(Base):
    __tablename__ = "dish_votes"
    __table_args__ = (
        UniqueConstraint("voter_id", "dish_id", name="uq_dish_vote_voter_dish"),
        Index("ix_dish_votes_household", "household_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    voter_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    dish_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("dishes.id", ondelete="CASCADE"), nullable=True
    )
    suggested_dish_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class MealLogModel(TimestampMixin, Base):
    __tablename__ = "meal_logs"
    __table_args__ = (Index("ix_meal_logs_household_day", "household_id", "day"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    dish_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("dishes.id", ondelete="CASCADE"), nullable=False
    )
    meal_type: Mapped[str] = mapped_column(String(16), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    logged_by_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    cooked_by_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )

    dish: Mapped[DishModel] = relationship()


class DailyMealLogModel(TimestampMixin, Base):
    __tablename__ = "daily_meal_logs"
    __table_args__ = (UniqueConstraint("household_id", "day", name="uq_daily_meal_log_household_day"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    daily_items: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)

    meals: Mapped[list["DailyMealEntryModel"]] = relationship(
        back_populates="log",
        cascade="all, delete-orphan",
        order_by="DailyMealEntryModel.position",
    )


class DailyMealEntryModel(Base):
    __tablename__ = "daily_meal_entries"
    __table_args__ = (Index("ix_daily_meal_entries_log", "daily_log_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    daily_log_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("daily_meal_logs.id", ondelete="CASCADE"), nullable=False
    )
    meal_type: Mapped[str] = mapped_column(String(16), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    log: Mapped[DailyMealLogModel] = relationship(back_populates="meals")
    dishes: Mapped[list["DailyMealDishModel"]] = relationship(
        cascade="all, delete-orphan",
        order_by="DailyMealDishModel.position",
    )


class DailyMealDishModel(Base):
    __tablename__ = "daily_meal_dishes"
    __table_args__ = (Index("ix_daily_meal_dishes_entry", "entry_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    entry_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("daily_meal_entries.id", ondelete="CASCADE"), nullable=False
    )
    dish_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("dishes.id", ondelete="SET NULL"), nullable=True
    )
    dish_name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_free_form: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    dish: Mapped[DishModel | None] = relationship()


class CustomMathQuestionModel(TimestampMixin, Base):
    __tablename__ = "custom_math_questions"
    __table_args__ = (Index("ix_custom_math_questions_household_order", "household_id", "sort_order"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    question: Mapped[str] = mapped_column(String(200), nullable=False)
    answer: Mapped[int] = mapped_column(Integer, nullable=False)
    question_type: Mapped[str] = mapped_column(String(32), default="custom", nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class BadgeTemplateModel(TimestampMixin, Base):
    __tablename__ = "badge_templates"
    __table_args__ = (
        UniqueConstraint("household_id", "built_in_badge_id", name="uq_badge_template_household_builtin"),
        UniqueConstraint("household_id", "chore_id", name="uq_badge_template_household_chore"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    built_in_badge_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    chore_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("chores.id", ondelete="CASCADE"), nullable=True
    )
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    image_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    translations: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    rule_config: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    updated_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    chore: Mapped[ChoreModel | None] = relationship()


class AuditEventModel(Base):
    __tablename__ = "audit_events"
    __table_args__ = (Index("ix_audit_events_household_created", "household_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    household_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=True
    )
    learner_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    actor: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


__all__ = [
    "AccountModel",
    "AchievementBadgeModel",
    "AuditEventModel",
    "BadgeTemplateModel",
    "ChoreBadgeModel",
    "ChoreModel",
    "CustomMathQuestionModel",
    "DailyMealDishModel",
    "DailyMealEntryModel",
    "DailyMealLogModel",
    "DishModel",
    "DishVoteModel",
    "HouseholdModel",
    "MathAttemptModel",
    "MathProgressModel",
    "MathSettingsModel",
    "MealLogModel",
    "MilestoneModel",
    "PointEntryModel",
    "RewardModel",
    "SightWordModel",
    "SightWordProgressModel",
]
