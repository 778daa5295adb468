"""Attempt log and practice statistics for guardians."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .db.models import AccountModel, MathAttemptModel, MathProgressModel
from .errors import InvalidArgumentError
from .identity import Actor, require_guardian, resolve_learner
from .local_dates import day_start_utc, parse_day, to_utc, today
from .math_problems import validate_problem_type

MAX_ATTEMPT_PAGE = 500
TOP_MISTAKES = 5


class AttemptFilters(BaseModel):
    learner_id: Optional[str] = None
    from_: Optional[datetime] = Field(default=None, alias="from")
    to: Optional[datetime] = None
    problem_type: Optional[str] = None
    incorrect_only: bool = False
    limit: int = 100
    offset: int = 0

    model_config = {"populate_by_name": True}


class AttemptView(BaseModel):
    id: str
    learner_id: str
    learner_name: str
    question_type: str
    question: str
    correct_answer: int
    given_answer: int
    is_correct: bool
    response_time_ms: Optional[int]
    source: str
    created_at: datetime


class AttemptPage(BaseModel):
    attempts: List[AttemptView]
    total: int
    limit: int
    offset: int


class TypeStats(BaseModel):
    total: int
    correct: int
    accuracy: float


class Mistake(BaseModel):
    question: str
    count: int


class StatsPeriod(BaseModel):
    start: str
    end: str
    days: int


class MathStats(BaseModel):
    learner_id: str
    total_attempts: int
    correct_attempts: int
    accuracy: float
    average_response_time_ms: Optional[float]
    by_type: Dict[str, TypeStats]
    streak: int
    top_mistakes: List[Mistake]
    period: StatsPeriod


def record_attempt(
    session: Session,
    *,
    learner: AccountModel,
    problem_type: str,
    question: str,
    correct_answer: int,
    given_answer: int,
    response_time_ms: Optional[int] = None,
    source: str = "daily",
) -> MathAttemptModel:
    attempt = MathAttemptModel(
        household_id=learner.household_id,
        learner_id=learner.id,
        question_type=problem_type,
        question=question,
        correct_answer=correct_answer,
        given_answer=given_answer,
        is_correct=correct_answer == given_answer,
        response_time_ms=response_time_ms,
        source=source,
    )
    session.add(attempt)
    return attempt


def list_attempts(session: Session, actor: Actor, filters: AttemptFilters) -> AttemptPage:
    household_id = require_guardian(actor)
    if filters.limit < 1 or filters.limit > MAX_ATTEMPT_PAGE:
        raise InvalidArgumentError(f"limit must be between 1 and {MAX_ATTEMPT_PAGE}")
    if filters.offset < 0:
        raise InvalidArgumentError("offset must not be negative")

    conditions = [MathAttemptModel.household_id == household_id]
    if filters.learner_id:
        conditions.append(MathAttemptModel.learner_id == resolve_learner(session, actor, filters.learner_id).id)
    if filters.from_ is not None:
        conditions.append(MathAttemptModel.created_at >= to_utc(filters.from_))
    if filters.to is not None:
        conditions.append(MathAttemptModel.created_at <= to_utc(filters.to))
    if filters.problem_type:
        conditions.append(MathAttemptModel.question_type == validate_problem_type(filters.problem_type))
    if filters.incorrect_only:
        conditions.append(MathAttemptModel.is_correct.is_(False))

    total = session.execute(select(func.count(MathAttemptModel.id)).where(*conditions)).scalar_one()
    stmt = (
        select(MathAttemptModel, AccountModel.name)
        .join(AccountModel, AccountModel.id == MathAttemptModel.learner_id)
        .where(*conditions)
        .order_by(MathAttemptModel.created_at.desc(), MathAttemptModel.id)
        .limit(filters.limit)
        .offset(filters.offset)
    )
    attempts = [
        AttemptView(
            id=attempt.id,
            learner_id=attempt.learner_id,
            learner_name=name,
            question_type=attempt.question_type,
            question=attempt.question,
            correct_answer=attempt.correct_answer,
            given_answer=attempt.given_answer,
            is_correct=attempt.is_correct,
            response_time_ms=attempt.response_time_ms,
            source=attempt.source,
            created_at=attempt.created_at,
        )
        for attempt, name in session.execute(stmt).all()
    ]
    return AttemptPage(attempts=attempts, total=int(total), limit=filters.limit, offset=filters.offset)


def math_stats(
    session: Session,
    learner: AccountModel,
    *,
    days: int,
    timezone_name: str,
    now: Optional[datetime] = None,
) -> MathStats:
    if days < 1 or days > 365:
        raise InvalidArgumentError("days must be between 1 and 365")
    end = today(timezone_name, now=now)
    start = (parse_day(end) - timedelta(days=days - 1)).isoformat()
    since = day_start_utc(start, timezone_name)

    attempts = list(
        session.execute(
            select(MathAttemptModel).where(
                MathAttemptModel.learner_id == learner.id,
                MathAttemptModel.created_at >= since,
            )
        ).scalars()
    )

    by_type: Dict[str, TypeStats] = {}
    for kind in sorted({attempt.question_type for attempt in attempts}):
        subset = [attempt for attempt in attempts if attempt.question_type == kind]
        correct = sum(1 for attempt in subset if attempt.is_correct)
        by_type[kind] = TypeStats(total=len(subset), correct=correct, accuracy=_ratio(correct, len(subset)))

    correct_total = sum(1 for attempt in attempts if attempt.is_correct)
    timings = [attempt.response_time_ms for attempt in attempts if attempt.response_time_ms is not None]
    mistakes = Counter(attempt.question for attempt in attempts if not attempt.is_correct)
    top = sorted(mistakes.items(), key=lambda item: (-item[1], item[0]))[:TOP_MISTAKES]

    return MathStats(
        learner_id=learner.id,
        total_attempts=len(attempts),
        correct_attempts=correct_total,
        accuracy=_ratio(correct_total, len(attempts)),
        average_response_time_ms=(sum(timings) / len(timings)) if timings else None,
        by_type=by_type,
        streak=current_streak(session, learner.id, end),
        top_mistakes=[Mistake(question=question, count=count) for question, count in top],
        period=StatsPeriod(start=start, end=end, days=days),
    )


def current_streak(session: Session, learner_id: str, today_day: str) -> int:
    """Consecutive rewarded days ending today, or yesterday if today is not done yet."""
    rewarded = set(
        session.execute(
            select(MathProgressModel.day).where(
                MathProgressModel.learner_id == learner_id,
                MathProgressModel.reward_granted.is_(True),
            )
        ).scalars()
    )
    cursor = parse_day(today_day)
    if cursor.isoformat() not in rewarded:
        cursor -= timedelta(days=1)
    streak = 0
    while cursor.isoformat() in rewarded:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def _ratio(numerator: int, denominator: int) -> float:
    if denominator == 0:
        return 0.0
    return round(numerator / denominator, 4)


__all__ = [
    "AttemptFilters",
    "AttemptPage",
    "AttemptView",
    "MathStats",
    "current_streak",
    "list_attempts",
    "math_stats",
    "record_attempt",
]
