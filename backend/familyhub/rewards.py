"""Reward catalog and redemptions."""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from .db.models import AccountModel, RewardModel
from .errors import InsufficientPointsError, InvalidArgumentError, NotFoundError
from .identity import Actor, require_guardian, require_household
from .points import balance, credit_points
from .telemetry import queue_event

logger = logging.getLogger(__name__)


class RewardView(BaseModel):
    id: str
    title: str
    cost_points: int
    image_ref: Optional[str]
    is_active: bool


class Redemption(BaseModel):
    entry_id: str
    reward_id: str
    learner_id: str
    cost_points: int
    balance: int


def list_rewards(session: Session, actor: Actor, *, include_inactive: bool = False) -> List[RewardView]:
    household_id = require_household(actor)
    stmt = select(RewardModel).where(RewardModel.household_id == household_id)
    if not include_inactive or not actor.is_guardian:
        stmt = stmt.where(RewardModel.is_active.is_(True))
    stmt = stmt.order_by(RewardModel.cost_points, RewardModel.title)
    return [_view(reward) for reward in session.execute(stmt).scalars()]


def create_reward(
    session: Session, actor: Actor, *, title: str, cost_points: int, image_ref: Optional[str] = None
) -> RewardView:
    household_id = require_guardian(actor)
    reward = RewardModel(
        household_id=household_id,
        title=_clean_title(title),
        cost_points=_check_cost(cost_points),
        image_ref=image_ref,
        is_active=True,
        created_by_id=actor.user_id,
    )
    session.add(reward)
    session.flush()
    return _view(reward)


def update_reward(
    session: Session,
    actor: Actor,
    reward_id: str,
    *,
    title: Optional[str] = None,
    cost_points: Optional[int] = None,
    image_ref: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> RewardView:
    reward = _require_reward(session, require_guardian(actor), reward_id)
    if title is not None:
        reward.title = _clean_title(title)
    if cost_points is not None:
        reward.cost_points = _check_cost(cost_points)
    if image_ref is not None:
        reward.image_ref = image_ref or None
    if is_active is not None:
        reward.is_active = is_active
    session.flush()
    return _view(reward)


def delete_reward(session: Session, actor: Actor, reward_id: str) -> None:
    reward = _require_reward(session, require_guardian(actor), reward_id)
    session.delete(reward)
    session.flush()


def redeem(session: Session, actor: Actor, learner: AccountModel, reward_id: str) -> Redemption:
    reward = _require_reward(session, require_household(actor), reward_id)
    if not reward.is_active:
        raise NotFoundError("Reward not found.")
    available = balance(session, learner)
    if available < reward.cost_points:
        raise InsufficientPointsError(
            f"Not enough points: {available} available, {reward.cost_points} needed."
        )
    entry = credit_points(
        session,
        learner=learner,
        amount=-reward.cost_points,
        note=f"Redeemed: {reward.title}",
        granted_by=actor.user_id,
        reward_id=reward.id,
    )
    queue_event(
        session,
        "reward_redeemed",
        household_id=learner.household_id,
        learner_id=learner.id,
        reward_id=reward.id,
        points=-reward.cost_points,
        actor=actor.user_id,
    )
    return Redemption(
        entry_id=entry.id,
        reward_id=reward.id,
        learner_id=learner.id,
        cost_points=reward.cost_points,
        balance=available - reward.cost_points,
    )


def _require_reward(session: Session, household_id: str, reward_id: str) -> RewardModel:
    reward = session.get(RewardModel, reward_id)
    if reward is None or reward.household_id != household_id:
        raise NotFoundError("Reward not found.")
    return reward


def _clean_title(title: str) -> str:
    text = (title or "").strip()
    if not text:
        raise InvalidArgumentError("title must not be blank")
    return text


def _check_cost(cost_points: int) -> int:
    if cost_points <= 0:
        raise InvalidArgumentError("cost_points must be positive")
    return cost_points


def _view(reward: RewardModel) -> RewardView:
    return RewardView(
        id=reward.id,
        title=reward.title,
        cost_points=reward.cost_points,
        image_ref=reward.image_ref,
        is_active=reward.is_active,
    )


__all__ = [
    "Redemption",
    "RewardView",
    "create_reward",
    "delete_reward",
    "list_rewards",
    "redeem",
    "update_reward",
]
