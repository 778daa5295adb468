"""Chore catalog and badge endpoints, including household badge templates."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from . import badge_templates, badges, chores
from .dependencies import get_actor, get_session_dependency
from .identity import Actor, resolve_learner

router = APIRouter(prefix="/api", tags=["chores"])


class ChoreCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    default_points: int = Field(default=1, ge=0)
    icon: Optional[str] = Field(default=None, max_length=32)


class ChoreUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    default_points: Optional[int] = Field(default=None, ge=0)
    icon: Optional[str] = Field(default=None, max_length=32)
    is_active: Optional[bool] = None


class ChoreLogRequest(BaseModel):
    learner_id: str = Field(..., min_length=1)
    points: Optional[int] = Field(default=None, ge=0)


@router.get("/chores", response_model=List[chores.ChoreView])
def list_chores(
    include_inactive: bool = Query(default=False),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[chores.ChoreView]:
    return chores.list_chores(session, actor, include_inactive=include_inactive)


@router.post("/chores", response_model=chores.ChoreView, status_code=status.HTTP_201_CREATED)
def create_chore(
    payload: ChoreCreateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> chores.ChoreView:
    return chores.create_chore(
        session, actor, title=payload.title, default_points=payload.default_points, icon=payload.icon
    )


@router.patch("/chores/{chore_id}", response_model=chores.ChoreView)
def update_chore(
    chore_id: str,
    payload: ChoreUpdateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> chores.ChoreView:
    return chores.update_chore(
        session,
        actor,
        chore_id,
        title=payload.title,
        default_points=payload.default_points,
        icon=payload.icon,
        is_active=payload.is_active,
    )


@router.delete("/chores/{chore_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_chore(
    chore_id: str,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> Response:
    chores.delete_chore(session, actor, chore_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/chores/{chore_id}/log", response_model=chores.ChoreLogResult, status_code=status.HTTP_201_CREATED)
def log_chore(
    chore_id: str,
    payload: ChoreLogRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> chores.ChoreLogResult:
    learner = resolve_learner(session, actor, payload.learner_id)
    return chores.log_chore(session, actor, learner, chore_id, points=payload.points)


@router.get("/badges", response_model=badges.BadgeBook)
def list_badges(
    learner_id: Optional[str] = Query(default=None),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> badges.BadgeBook:
    return badges.list_badges(session, actor, learner_id)


@router.get("/badge-templates", response_model=List[badge_templates.BadgeTemplateView])
def list_badge_templates(
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[badge_templates.BadgeTemplateView]:
    return badge_templates.list_templates(session, actor)


@router.post(
    "/badge-templates",
    response_model=badge_templates.BadgeTemplateView,
    status_code=status.HTTP_201_CREATED,
)
def create_badge_template(
    payload: badge_templates.BadgeTemplateCreate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> badge_templates.BadgeTemplateView:
    return badge_templates.create_template(session, actor, payload)


@router.put("/badge-templates/{template_id}", response_model=badge_templates.BadgeTemplateView)
def update_badge_template(
    template_id: str,
    payload: badge_templates.BadgeTemplateUpdate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> badge_templates.BadgeTemplateView:
    return badge_templates.update_template(session, actor, template_id, payload)


@router.delete("/badge-templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_badge_template(
    template_id: str,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> Response:
    badge_templates.delete_template(session, actor, template_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
