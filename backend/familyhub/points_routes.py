"""Point ledger and reward catalog endpoints."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from . import points, rewards
from .config import Settings
from .dependencies import get_actor, get_app_settings, get_session_dependency
from .identity import Actor, effective_timezone, resolve_learner
from .repositories.point_ledger import point_ledger

router = APIRouter(prefix="/api", tags=["points"])
logger = logging.getLogger(__name__)


class PointEntryPayload(BaseModel):
    id: str
    learner_id: str
    points: int
    note: str
    chore_id: Optional[str]
    reward_id: Optional[str]
    created_by_id: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class PointsSummary(BaseModel):
    learner_id: str
    balance: int
    entries: List[PointEntryPayload]


class PointsCalendar(BaseModel):
    learner_id: str
    year: int
    month: int
    timezone: str
    days: List[points.CalendarDay]


class AdjustmentRequest(BaseModel):
    learner_id: str = Field(..., min_length=1)
    points: int
    note: str = Field(default="", max_length=500)


class RewardCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    cost_points: int = Field(..., gt=0)
    image_ref: Optional[str] = None


class RewardUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    cost_points: Optional[int] = Field(default=None, gt=0)
    image_ref: Optional[str] = None
    is_active: Optional[bool] = None


class RedeemRequest(BaseModel):
    learner_id: Optional[str] = None


@router.get("/points", response_model=PointsSummary)
def get_points(
    learner_id: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=points.MAX_HISTORY),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> PointsSummary:
    learner = resolve_learner(session, actor, learner_id)
    entries = points.history(session, learner, limit=limit)
    return PointsSummary(
        learner_id=learner.id,
        balance=points.balance(session, learner),
        entries=[PointEntryPayload.model_validate(entry) for entry in entries],
    )


@router.get("/points/calendar", response_model=PointsCalendar)
def get_points_calendar(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    learner_id: Optional[str] = Query(default=None),
    timezone: Optional[str] = Query(default=None, max_length=64),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_app_settings),
) -> PointsCalendar:
    learner = resolve_learner(session, actor, learner_id)
    tz = effective_timezone(learner, timezone, settings.default_timezone)
    entries = point_ledger.entries(session, learner.id)
    return PointsCalendar(
        learner_id=learner.id,
        year=year,
        month=month,
        timezone=tz,
        days=points.month_calendar(entries, year, month, tz),
    )


@router.post("/points", response_model=PointEntryPayload, status_code=status.HTTP_201_CREATED)
def add_points(
    payload: AdjustmentRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> PointEntryPayload:
    learner = resolve_learner(session, actor, payload.learner_id)
    entry = points.add_adjustment(session, actor, learner, payload.points, payload.note)
    return PointEntryPayload.model_validate(entry)


@router.delete("/points/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_points(
    entry_id: str,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> Response:
    points.delete_entry(session, actor, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/rewards", response_model=List[rewards.RewardView])
def list_rewards(
    include_inactive: bool = Query(default=False),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[rewards.RewardView]:
    return rewards.list_rewards(session, actor, include_inactive=include_inactive)


@router.post("/rewards", response_model=rewards.RewardView, status_code=status.HTTP_201_CREATED)
def create_reward(
    payload: RewardCreateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> rewards.RewardView:
    return rewards.create_reward(
        session, actor, title=payload.title, cost_points=payload.cost_points, image_ref=payload.image_ref
    )


@router.patch("/rewards/{reward_id}", response_model=rewards.RewardView)
def update_reward(
    reward_id: str,
    payload: RewardUpdateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> rewards.RewardView:
    return rewards.update_reward(
        session,
        actor,
        reward_id,
        title=payload.title,
        cost_points=payload.cost_points,
        image_ref=payload.image_ref,
        is_active=payload.is_active,
    )


@router.delete("/rewards/{reward_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reward(
    reward_id: str,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> Response:
    rewards.delete_reward(session, actor, reward_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/rewards/{reward_id}/redeem", response_model=rewards.Redemption)
def redeem_reward(
    reward_id: str,
    payload: RedeemRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> rewards.Redemption:
    learner = resolve_learner(session, actor, payload.learner_id)
    return rewards.redeem(session, actor, learner, reward_id)


__all__ = ["router"]
