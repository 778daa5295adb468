"""Math practice, question bank and sight-word endpoints."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Body, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from . import math_analytics, math_practice, math_questions, math_settings, sight_words
from .config import Settings
from .dependencies import get_actor, get_app_settings, get_session_dependency
from .identity import Actor, effective_timezone, require_guardian, resolve_learner
from .local_dates import today

router = APIRouter(prefix="/api/learning", tags=["learning"])
logger = logging.getLogger(__name__)


class MathTodayResponse(math_practice.MathToday):
    learner_id: str
    timezone: str


class MathSubmitRequest(BaseModel):
    learner_id: Optional[str] = None
    timezone: Optional[str] = Field(default=None, max_length=64)
    type: str = Field(..., min_length=1)
    answer: int
    response_time_ms: Optional[int] = Field(default=None, ge=0)


class SightWordQuizRequest(BaseModel):
    learner_id: Optional[str] = None
    timezone: Optional[str] = Field(default=None, max_length=64)
    word_id: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1, max_length=128)


class SightWordCreateRequest(BaseModel):
    word: str = Field(..., min_length=1, max_length=64)
    image_ref: Optional[str] = None


class SightWordUpdateRequest(BaseModel):
    word: Optional[str] = Field(default=None, max_length=64)
    image_ref: Optional[str] = None
    is_active: Optional[bool] = None


class SightWordReorderRequest(BaseModel):
    word_ids: List[str] = Field(..., min_length=1)


@router.get("/math/today", response_model=MathTodayResponse)
def math_today(
    learner_id: Optional[str] = Query(default=None),
    timezone: Optional[str] = Query(default=None, max_length=64),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_app_settings),
) -> MathTodayResponse:
    learner = resolve_learner(session, actor, learner_id)
    tz = effective_timezone(learner, timezone, settings.default_timezone)
    snapshot = math_practice.get_today(session, learner.id, today(tz))
    return MathTodayResponse(learner_id=learner.id, timezone=tz, **snapshot.model_dump())


@router.post(
    "/math/submit",
    response_model=math_practice.MathSubmitResult,
    response_model_exclude_none=True,
)
def math_submit(
    payload: MathSubmitRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_app_settings),
) -> math_practice.MathSubmitResult:
    learner = resolve_learner(session, actor, payload.learner_id)
    tz = effective_timezone(learner, payload.timezone, settings.default_timezone)
    return math_practice.submit_answer(
        session,
        learner=learner,
        day=today(tz),
        problem_type=payload.type,
        answer=payload.answer,
        granted_by=actor.user_id,
        reward_points=settings.math_reward_points,
        response_time_ms=payload.response_time_ms,
    )


@router.get("/math/settings", response_model=math_settings.MathSettings)
def get_math_settings(
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> math_settings.MathSettings:
    return math_settings.load_settings(session, require_guardian(actor))


@router.put("/math/settings", response_model=math_settings.MathSettings)
def put_math_settings(
    payload: math_settings.MathSettingsUpdate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> math_settings.MathSettings:
    return math_settings.update_settings(session, actor, payload)


@router.get("/math/attempts", response_model=math_analytics.AttemptPage)
def math_attempts(
    learner_id: Optional[str] = Query(default=None),
    from_: Optional[datetime] = Query(default=None, alias="from"),
    to: Optional[datetime] = Query(default=None),
    question_type: Optional[str] = Query(default=None, alias="type"),
    incorrect_only: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=math_analytics.MAX_ATTEMPT_PAGE),
    offset: int = Query(default=0, ge=0),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> math_analytics.AttemptPage:
    filters = math_analytics.AttemptFilters(
        learner_id=learner_id,
        from_=from_,
        to=to,
        problem_type=question_type,
        incorrect_only=incorrect_only,
        limit=limit,
        offset=offset,
    )
    return math_analytics.list_attempts(session, actor, filters)


@router.get("/math/stats", response_model=math_analytics.MathStats)
def math_stats(
    learner_id: Optional[str] = Query(default=None),
    days: int = Query(default=30, ge=1, le=365),
    timezone: Optional[str] = Query(default=None, max_length=64),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_app_settings),
) -> math_analytics.MathStats:
    learner = resolve_learner(session, actor, learner_id)
    tz = effective_timezone(learner, timezone, settings.default_timezone)
    return math_analytics.math_stats(session, learner, days=days, timezone_name=tz)


@router.get("/math/questions", response_model=List[math_questions.MathQuestionView])
def list_math_questions(
    tag: Optional[str] = Query(default=None, max_length=64),
    active_only: bool = Query(default=True),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[math_questions.MathQuestionView]:
    return math_questions.list_questions(session, actor, tag=tag, active_only=active_only)


@router.post(
    "/math/questions",
    response_model=math_questions.QuestionImportResult,
    status_code=status.HTTP_201_CREATED,
)
def create_math_questions(
    payload: Union[List[Any], Dict[str, Any]] = Body(...),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> math_questions.QuestionImportResult:
    return math_questions.create_questions(session, actor, payload)


@router.put("/math/questions/{question_id}", response_model=math_questions.MathQuestionView)
def update_math_question(
    question_id: str,
    payload: math_questions.MathQuestionUpdate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> math_questions.MathQuestionView:
    return math_questions.update_question(session, actor, question_id, payload)


@router.delete("/math/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_math_question(
    question_id: str,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> Response:
    math_questions.delete_question(session, actor, question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/sight-words/today", response_model=sight_words.TodaysSightWord)
def sight_word_today(
    learner_id: Optional[str] = Query(default=None),
    timezone: Optional[str] = Query(default=None, max_length=64),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_app_settings),
) -> sight_words.TodaysSightWord:
    learner = resolve_learner(session, actor, learner_id)
    tz = effective_timezone(learner, timezone, settings.default_timezone)
    return sight_words.todays_word(session, learner, timezone_name=tz)


@router.post(
    "/sight-words/quiz",
    response_model=sight_words.SightWordAnswerResult,
    response_model_exclude_none=True,
)
def sight_word_quiz(
    payload: SightWordQuizRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_app_settings),
) -> sight_words.SightWordAnswerResult:
    learner = resolve_learner(session, actor, payload.learner_id)
    tz = effective_timezone(learner, payload.timezone, settings.default_timezone)
    return sight_words.submit_answer(
        session,
        learner,
        word_id=payload.word_id,
        answer=payload.answer,
        timezone_name=tz,
        granted_by=actor.user_id,
        reward_points=settings.sight_word_reward_points,
    )


@router.get("/sight-words", response_model=List[sight_words.SightWordView])
def list_sight_words(
    include_inactive: bool = Query(default=False),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[sight_words.SightWordView]:
    return sight_words.list_words(session, actor, include_inactive=include_inactive)


@router.post("/sight-words", response_model=sight_words.SightWordView, status_code=status.HTTP_201_CREATED)
def create_sight_word(
    payload: SightWordCreateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> sight_words.SightWordView:
    return sight_words.create_word(session, actor, word=payload.word, image_ref=payload.image_ref)


@router.post("/sight-words/reorder", response_model=List[sight_words.SightWordView])
def reorder_sight_words(
    payload: SightWordReorderRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[sight_words.SightWordView]:
    return sight_words.reorder_words(session, actor, payload.word_ids)


@router.patch("/sight-words/{word_id}", response_model=sight_words.SightWordView)
def update_sight_word(
    word_id: str,
    payload: SightWordUpdateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> sight_words.SightWordView:
    return sight_words.update_word(
        session,
        actor,
        word_id,
        word=payload.word,
        image_ref=payload.image_ref,
        is_active=payload.is_active,
    )


@router.delete("/sight-words/{word_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sight_word(
    word_id: str,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> Response:
    sight_words.delete_word(session, actor, word_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
