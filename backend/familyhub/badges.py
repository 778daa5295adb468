"""Chore badge levels and one-time achievement badges."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from .db.base import utcnow
from .db.models import (
    AccountModel,
    AchievementBadgeModel,
    BadgeTemplateModel,
    ChoreBadgeModel,
    MathProgressModel,
    SightWordProgressModel,
)
from .identity import Actor, require_household, resolve_learner
from .telemetry import queue_event

logger = logging.getLogger(__name__)


class BadgeLevel(BaseModel):
    level: int
    name: str
    icon: str
    threshold: int


LEVELS: Tuple[BadgeLevel, ...] = (
    BadgeLevel(level=1, name="Sprout", icon="🌱", threshold=1),
    BadgeLevel(level=2, name="Bronze", icon="🥉", threshold=5),
    BadgeLevel(level=3, name="Silver", icon="🥈", threshold=10),
    BadgeLevel(level=4, name="Gold", icon="🥇", threshold=25),
    BadgeLevel(level=5, name="Diamond", icon="💎", threshold=50),
    BadgeLevel(level=6, name="Legend", icon="👑", threshold=100),
)


class AchievementDefinition(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    metric: str
    threshold: int


ACHIEVEMENTS: Tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        id="first_chore", name="First Chore", description="Completed a first chore.",
        icon="🧹", metric="chores", threshold=1,
    ),
    AchievementDefinition(
        id="hard_worker", name="Hard Worker", description="Completed 50 chores.",
        icon="💪", metric="chores", threshold=50,
    ),
    AchievementDefinition(
        id="first_word", name="First Word", description="Passed a first sight word quiz.",
        icon="📖", metric="words", threshold=1,
    ),
    AchievementDefinition(
        id="word_wizard", name="Word Wizard", description="Passed 25 sight words.",
        icon="🧙", metric="words", threshold=25,
    ),
    AchievementDefinition(
        id="math_starter", name="Math Starter", description="Finished a first day of math practice.",
        icon="➕", metric="math_days", threshold=1,
    ),
    AchievementDefinition(
        id="math_marathon", name="Math Marathon", description="Finished 30 days of math practice.",
        icon="🏃", metric="math_days", threshold=30,
    ),
)


class LevelUp(BaseModel):
    chore_id: str
    level: int
    level_name: str
    icon: str
    is_first_time: bool


class ChoreBadgeView(BaseModel):
    id: str
    learner_id: str
    chore_id: str
    chore_title: str
    count: int
    level: int
    level_name: Optional[str]
    level_icon: Optional[str]
    progress: float
    next_level_at: Optional[int]
    custom_icon: Optional[str] = None
    custom_image_ref: Optional[str] = None


class AchievementView(BaseModel):
    badge_id: str
    learner_id: str
    name: str
    description: str
    icon: str
    earned_at: datetime
    custom_image_ref: Optional[str] = None


class CustomBadgeView(BaseModel):
    id: str
    name: str
    description: Optional[str]
    icon: Optional[str]
    image_ref: Optional[str]


class BadgeBook(BaseModel):
    chore_badges: List[ChoreBadgeView]
    achievements: List[AchievementView]
    available_achievements: List[AchievementDefinition]
    custom_badges: List[CustomBadgeView]


def level_for_count(count: int) -> int:
    level = 0
    for info in LEVELS:
        if count >= info.threshold:
            level = info.level
    return level


def level_info(level: int) -> Optional[BadgeLevel]:
    for info in LEVELS:
        if info.level == level:
            return info
    return None


def progress_to_next_level(count: int) -> Dict[str, Any]:
    """Fraction of the way from the current level's threshold to the next one."""
    previous = 0
    for info in LEVELS:
        if count < info.threshold:
            span = info.threshold - previous
            return {"progress": max(count - previous, 0) / span, "next": info.threshold}
        previous = info.threshold
    return {"progress": 1.0, "next": None}


def advance_chore_badge(
    session: Session, learner: AccountModel, chore_id: str, *, now: Optional[datetime] = None
) -> Optional[LevelUp]:
    """Count one more completion of ``chore_id``; return the level-up, if any."""
    timestamp = now or utcnow()
    badge = _get_chore_badge(session, learner.id, chore_id)
    is_new = badge is None
    if badge is None:
        badge = ChoreBadgeModel(
            household_id=learner.household_id,
            learner_id=learner.id,
            chore_id=chore_id,
            count=0,
            level=0,
        )
        session.add(badge)
        session.flush([badge])

    badge.count += 1
    new_level = level_for_count(badge.count)
    if new_level <= badge.level:
        return None

    is_first_time = is_new or badge.first_earned_at is None
    if badge.first_earned_at is None:
        badge.first_earned_at = timestamp
    badge.level = new_level
    badge.last_level_up_at = timestamp
    info = level_info(new_level)
    assert info is not None
    queue_event(
        session,
        "badge_level_up",
        household_id=learner.household_id,
        learner_id=learner.id,
        chore_id=chore_id,
        level=new_level,
        level_name=info.name,
        is_first_time=is_first_time,
    )
    return LevelUp(
        chore_id=chore_id,
        level=new_level,
        level_name=info.name,
        icon=info.icon,
        is_first_time=is_first_time,
    )


def rollback_chore_badge(session: Session, learner_id: str, chore_id: str) -> None:
    badge = _get_chore_badge(session, learner_id, chore_id)
    if badge is None:
        return
    badge.count = max(badge.count - 1, 0)
    badge.level = level_for_count(badge.count)


def evaluate_achievements(session: Session, learner: AccountModel) -> List[str]:
    """Award any achievement whose threshold the learner has now reached."""
    session.flush()
    earned = set(
        session.execute(
            select(AchievementBadgeModel.badge_id).where(AchievementBadgeModel.learner_id == learner.id)
        ).scalars()
    )
    metrics: Dict[str, int] = {}
    awarded: List[str] = []
    for definition in ACHIEVEMENTS:
        if definition.id in earned:
            continue
        if definition.metric not in metrics:
            metrics[definition.metric] = _metric(session, learner.id, definition.metric)
        if metrics[definition.metric] < definition.threshold:
            continue
        session.add(
            AchievementBadgeModel(
                household_id=learner.household_id,
                learner_id=learner.id,
                badge_id=definition.id,
            )
        )
        awarded.append(definition.id)
        queue_event(
            session,
            "achievement_earned",
            household_id=learner.household_id,
            learner_id=learner.id,
            badge_id=definition.id,
        )
    if awarded:
        logger.info("Learner %s earned achievements %s", learner.id, awarded)
    return awarded


def list_badges(session: Session, actor: Actor, learner_id: Optional[str] = None) -> BadgeBook:
    household_id = require_household(actor)
    target: Optional[str] = None
    if actor.is_learner or learner_id:
        target = resolve_learner(session, actor, learner_id).id

    chore_stmt = (
        select(ChoreBadgeModel)
        .options(selectinload(ChoreBadgeModel.chore))
        .where(ChoreBadgeModel.household_id == household_id, ChoreBadgeModel.count > 0)
        .order_by(ChoreBadgeModel.level.desc(), ChoreBadgeModel.count.desc())
    )
    achievement_stmt = (
        select(AchievementBadgeModel)
        .where(AchievementBadgeModel.household_id == household_id)
        .order_by(AchievementBadgeModel.earned_at.desc())
    )
    if target is not None:
        chore_stmt = chore_stmt.where(ChoreBadgeModel.learner_id == target)
        achievement_stmt = achievement_stmt.where(AchievementBadgeModel.learner_id == target)

    templates = session.execute(
        select(BadgeTemplateModel).where(
            BadgeTemplateModel.household_id == household_id,
            BadgeTemplateModel.is_active.is_(True),
        ).order_by(BadgeTemplateModel.created_at)
    ).scalars().all()
    achievement_templates = {t.built_in_badge_id: t for t in templates if t.type == "achievement"}
    chore_templates = {t.chore_id: t for t in templates if t.type == "chore_level"}

    definitions = {
        definition.id: _styled(definition, achievement_templates.get(definition.id))
        for definition in ACHIEVEMENTS
    }
    chore_badges = []
    for badge in session.execute(chore_stmt).scalars():
        info = level_info(badge.level)
        progress = progress_to_next_level(badge.count)
        template = chore_templates.get(badge.chore_id)
        chore_badges.append(
            ChoreBadgeView(
                id=badge.id,
                learner_id=badge.learner_id,
                chore_id=badge.chore_id,
                chore_title=badge.chore.title,
                count=badge.count,
                level=badge.level,
                level_name=info.name if info else None,
                level_icon=info.icon if info else None,
                progress=progress["progress"],
                next_level_at=progress["next"],
                custom_icon=template.icon if template else None,
                custom_image_ref=template.image_ref if template else None,
            )
        )

    achievements = []
    for record in session.execute(achievement_stmt).scalars():
        definition = definitions.get(record.badge_id)
        template = achievement_templates.get(record.badge_id)
        achievements.append(
            AchievementView(
                badge_id=record.badge_id,
                learner_id=record.learner_id,
                name=definition.name if definition else record.badge_id,
                description=definition.description if definition else "",
                icon=definition.icon if definition else "🏅",
                earned_at=record.earned_at,
                custom_image_ref=template.image_ref if template else None,
            )
        )
    return BadgeBook(
        chore_badges=chore_badges,
        achievements=achievements,
        available_achievements=list(definitions.values()),
        custom_badges=[
            CustomBadgeView(
                id=t.id, name=t.name or "", description=t.description, icon=t.icon, image_ref=t.image_ref
            )
            for t in templates
            if t.type == "custom"
        ],
    )


def _styled(definition: AchievementDefinition, template: Optional[BadgeTemplateModel]) -> AchievementDefinition:
    if template is None:
        return definition
    overrides = {
        field: getattr(template, field)
        for field in ("name", "description", "icon")
        if getattr(template, field)
    }
    return definition.model_copy(update=overrides)


def _get_chore_badge(session: Session, learner_id: str, chore_id: str) -> Optional[ChoreBadgeModel]:
    stmt = select(ChoreBadgeModel).where(
        ChoreBadgeModel.learner_id == learner_id,
        ChoreBadgeModel.chore_id == chore_id,
    )
    return session.execute(stmt).scalar_one_or_none()


def _metric(session: Session, learner_id: str, metric: str) -> int:
    if metric == "chores":
        stmt = select(func.coalesce(func.sum(ChoreBadgeModel.count), 0)).where(
            ChoreBadgeModel.learner_id == learner_id
        )
    elif metric == "words":
        stmt = select(func.count(SightWordProgressModel.id)).where(
            SightWordProgressModel.learner_id == learner_id,
            SightWordProgressModel.quiz_passed_at.is_not(None),
        )
    elif metric == "math_days":
        stmt = select(func.count(MathProgressModel.id)).where(
            MathProgressModel.learner_id == learner_id,
            MathProgressModel.reward_granted.is_(True),
        )
    else:
        raise ValueError(f"Unknown achievement metric: {metric}")
    return int(session.execute(stmt).scalar_one())


__all__ = [
    "ACHIEVEMENTS",
    "AchievementDefinition",
    "BadgeBook",
    "CustomBadgeView",
    "LEVELS",
    "LevelUp",
    "advance_chore_badge",
    "evaluate_achievements",
    "level_for_count",
    "level_info",
    "list_badges",
    "progress_to_next_level",
    "rollback_chore_badge",
]
