"""Account, household membership, activity and milestone endpoints."""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from . import households, milestones
from .dependencies import get_actor, get_session_dependency
from .identity import GUARDIAN, Actor

router = APIRouter(prefix="/api/household", tags=["household"])
logger = logging.getLogger(__name__)


class AccountCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    email: Optional[str] = Field(default=None, max_length=255)
    role: str = Field(default=GUARDIAN)
    timezone: Optional[str] = Field(default=None, max_length=64)


class HouseholdCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)


class JoinRequest(BaseModel):
    invite_code: str = Field(..., min_length=1, max_length=16)


class LearnerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    timezone: Optional[str] = Field(default=None, max_length=64)


class MilestoneCreateRequest(BaseModel):
    learner_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    achieved_on: date
    description: Optional[str] = None
    icon: Optional[str] = Field(default=None, max_length=32)


class MilestoneUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    achieved_on: Optional[date] = None
    description: Optional[str] = None
    icon: Optional[str] = Field(default=None, max_length=32)


@router.post("/accounts", response_model=households.AccountView, status_code=status.HTTP_201_CREATED)
def register_account(
    payload: AccountCreateRequest,
    session: Session = Depends(get_session_dependency),
) -> households.AccountView:
    return households.register_account(
        session, name=payload.name, role=payload.role, email=payload.email, timezone=payload.timezone
    )


@router.get("", response_model=households.HouseholdView)
def get_household(
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> households.HouseholdView:
    return households.list_members(session, actor)


@router.post("", response_model=households.HouseholdView, status_code=status.HTTP_201_CREATED)
def create_household(
    payload: HouseholdCreateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> households.HouseholdView:
    return households.create_household(session, actor, payload.name)


@router.post("/join", response_model=households.HouseholdView)
def join_household(
    payload: JoinRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> households.HouseholdView:
    return households.join_household(session, actor, payload.invite_code)


@router.post("/learners", response_model=households.AccountView, status_code=status.HTTP_201_CREATED)
def add_learner(
    payload: LearnerCreateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> households.AccountView:
    return households.add_learner(session, actor, name=payload.name, timezone=payload.timezone)


@router.post("/invite-code", response_model=households.HouseholdView)
def regenerate_invite_code(
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> households.HouseholdView:
    return households.regenerate_invite_code(session, actor)


@router.get("/activity", response_model=List[households.ActivityEvent])
def recent_activity(
    limit: int = Query(default=50, ge=1, le=households.MAX_ACTIVITY),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[households.ActivityEvent]:
    return households.recent_activity(session, actor, limit=limit)


@router.get("/milestones", response_model=List[milestones.MilestoneView])
def list_milestones(
    learner_id: Optional[str] = Query(default=None),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[milestones.MilestoneView]:
    return milestones.list_milestones(session, actor, learner_id)


@router.post("/milestones", response_model=milestones.MilestoneView, status_code=status.HTTP_201_CREATED)
def create_milestone(
    payload: MilestoneCreateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> milestones.MilestoneView:
    return milestones.create_milestone(
        session,
        actor,
        learner_id=payload.learner_id,
        title=payload.title,
        achieved_on=payload.achieved_on,
        description=payload.description,
        icon=payload.icon,
    )


@router.patch("/milestones/{milestone_id}", response_model=milestones.MilestoneView)
def update_milestone(
    milestone_id: str,
    payload: MilestoneUpdateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> milestones.MilestoneView:
    return milestones.update_milestone(
        session,
        actor,
        milestone_id,
        title=payload.title,
        description=payload.description,
        icon=payload.icon,
        achieved_on=payload.achieved_on,
    )


@router.delete("/milestones/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_milestone(
    milestone_id: str,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> Response:
    milestones.delete_milestone(session, actor, milestone_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
