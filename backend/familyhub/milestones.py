"""Life milestones recorded by guardians."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from .db.models import MilestoneModel
from .errors import InvalidArgumentError, NotFoundError
from .identity import Actor, require_guardian, require_household, resolve_learner


class MilestoneView(BaseModel):
    id: str
    learner_id: str
    title: str
    description: Optional[str]
    icon: Optional[str]
    achieved_on: date


def list_milestones(session: Session, actor: Actor, learner_id: Optional[str] = None) -> List[MilestoneView]:
    household_id = require_household(actor)
    stmt = select(MilestoneModel).where(MilestoneModel.household_id == household_id)
    if actor.is_learner or learner_id:
        stmt = stmt.where(MilestoneModel.learner_id == resolve_learner(session, actor, learner_id).id)
    stmt = stmt.order_by(MilestoneModel.achieved_on.desc(), MilestoneModel.created_at.desc())
    return [_view(milestone) for milestone in session.execute(stmt).scalars()]


def create_milestone(
    session: Session,
    actor: Actor,
    *,
    learner_id: str,
    title: str,
    achieved_on: date,
    description: Optional[str] = None,
    icon: Optional[str] = None,
) -> MilestoneView:
    household_id = require_guardian(actor)
    learner = resolve_learner(session, actor, learner_id)
    milestone = MilestoneModel(
        household_id=household_id,
        learner_id=learner.id,
        title=_clean_title(title),
        description=description,
        icon=icon,
        achieved_on=achieved_on,
        created_by_id=actor.user_id,
    )
    session.add(milestone)
    session.flush()
    return _view(milestone)


def update_milestone(
    session: Session,
    actor: Actor,
    milestone_id: str,
    *,
    title: Optional[str] = None,
    description: Optional[str] = None,
    icon: Optional[str] = None,
    achieved_on: Optional[date] = None,
) -> MilestoneView:
    milestone = _require_milestone(session, actor, milestone_id)
    if title is not None:
        milestone.title = _clean_title(title)
    if description is not None:
        milestone.description = description or None
    if icon is not None:
        milestone.icon = icon or None
    if achieved_on is not None:
        milestone.achieved_on = achieved_on
    session.flush()
    return _view(milestone)


def delete_milestone(session: Session, actor: Actor, milestone_id: str) -> None:
    session.delete(_require_milestone(session, actor, milestone_id))
    session.flush()


def _require_milestone(session: Session, actor: Actor, milestone_id: str) -> MilestoneModel:
    household_id = require_guardian(actor)
    milestone = session.get(MilestoneModel, milestone_id)
    if milestone is None or milestone.household_id != household_id:
        raise NotFoundError("Milestone not found.")
    return milestone


def _clean_title(title: str) -> str:
    text = (title or "").strip()
    if not text:
        raise InvalidArgumentError("title must not be blank")
    return text


def _view(milestone: MilestoneModel) -> MilestoneView:
    return MilestoneView(
        id=milestone.id,
        learner_id=milestone.learner_id,
        title=milestone.title,
        description=milestone.description,
        icon=milestone.icon,
        achieved_on=milestone.achieved_on,
    )


__all__ = [
    "MilestoneView",
    "create_milestone",
    "delete_milestone",
    "list_milestones",
    "update_milestone",
]
