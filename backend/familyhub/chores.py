"""Household chore catalog and chore logging."""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .badges import LevelUp, advance_chore_badge, evaluate_achievements
from .db.models import AccountModel, ChoreModel, PointEntryModel
from .errors import InvalidArgumentError, NotFoundError
from .identity import Actor, require_guardian, require_household
from .points import credit_points
from .telemetry import queue_event

logger = logging.getLogger(__name__)


class ChoreView(BaseModel):
    id: str
    title: str
    icon: Optional[str]
    default_points: int
    is_active: bool


class ChoreLogResult(BaseModel):
    entry_id: str
    chore_id: str
    learner_id: str
    points: int
    level_up: Optional[LevelUp] = None
    achievements: List[str] = []


def list_chores(session: Session, actor: Actor, *, include_inactive: bool = False) -> List[ChoreView]:
    household_id = require_household(actor)
    stmt = select(ChoreModel).where(ChoreModel.household_id == household_id)
    if not include_inactive:
        stmt = stmt.where(ChoreModel.is_active.is_(True))
    stmt = stmt.order_by(ChoreModel.title)
    return [_view(chore) for chore in session.execute(stmt).scalars()]


def create_chore(
    session: Session, actor: Actor, *, title: str, default_points: int, icon: Optional[str] = None
) -> ChoreView:
    household_id = require_guardian(actor)
    chore = ChoreModel(
        household_id=household_id,
        title=_clean_title(title),
        icon=icon,
        default_points=_check_points(default_points),
        is_active=True,
        created_by_id=actor.user_id,
        updated_by_id=actor.user_id,
    )
    session.add(chore)
    session.flush()
    return _view(chore)


def update_chore(
    session: Session,
    actor: Actor,
    chore_id: str,
    *,
    title: Optional[str] = None,
    default_points: Optional[int] = None,
    icon: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> ChoreView:
    chore = _require_chore(session, actor, chore_id)
    if title is not None:
        chore.title = _clean_title(title)
    if default_points is not None:
        chore.default_points = _check_points(default_points)
    if icon is not None:
        chore.icon = icon or None
    if is_active is not None:
        chore.is_active = is_active
    chore.updated_by_id = actor.user_id
    session.flush()
    return _view(chore)


def delete_chore(session: Session, actor: Actor, chore_id: str) -> bool:
    """Delete a chore; one with ledger history is deactivated instead. Returns True if removed."""
    chore = _require_chore(session, actor, chore_id)
    used = session.execute(
        select(func.count(PointEntryModel.id)).where(PointEntryModel.chore_id == chore.id)
    ).scalar_one()
    if used:
        chore.is_active = False
        chore.updated_by_id = actor.user_id
        session.flush()
        return False
    session.delete(chore)
    session.flush()
    return True


def log_chore(
    session: Session,
    actor: Actor,
    learner: AccountModel,
    chore_id: str,
    *,
    points: Optional[int] = None,
) -> ChoreLogResult:
    chore = _require_chore(session, actor, chore_id)
    if not chore.is_active:
        raise InvalidArgumentError("Chore is inactive.")
    amount = chore.default_points if points is None else _check_points(points)
    entry = credit_points(
        session,
        learner=learner,
        amount=amount,
        note=f"Chore: {chore.title}",
        granted_by=actor.user_id,
        chore_id=chore.id,
    )
    level_up = advance_chore_badge(session, learner, chore.id)
    achievements = evaluate_achievements(session, learner)
    queue_event(
        session,
        "chore_logged",
        household_id=learner.household_id,
        learner_id=learner.id,
        chore_id=chore.id,
        points=amount,
        actor=actor.user_id,
    )
    logger.info("Logged chore %s for learner=%s (+%s)", chore.id, learner.id, amount)
    return ChoreLogResult(
        entry_id=entry.id,
        chore_id=chore.id,
        learner_id=learner.id,
        points=amount,
        level_up=level_up,
        achievements=achievements,
    )


def _require_chore(session: Session, actor: Actor, chore_id: str) -> ChoreModel:
    household_id = require_guardian(actor)
    chore = session.get(ChoreModel, chore_id)
    if chore is None or chore.household_id != household_id:
        raise NotFoundError("Chore not found.")
    return chore


def _clean_title(title: str) -> str:
    text = (title or "").strip()
    if not text:
        raise InvalidArgumentError("title must not be blank")
    return text


def _check_points(points: int) -> int:
    if points < 0:
        raise InvalidArgumentError("points must not be negative")
    return points


def _view(chore: ChoreModel) -> ChoreView:
    return ChoreView(
        id=chore.id,
        title=chore.title,
        icon=chore.icon,
        default_points=chore.default_points,
        is_active=chore.is_active,
    )


__all__ = [
    "ChoreLogResult",
    "ChoreView",
    "create_chore",
    "delete_chore",
    "list_chores",
    "log_chore",
    "update_chore",
]
