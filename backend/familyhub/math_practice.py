"""Daily math practice: today's problems and the per-day progress ledger.

The expected answer is always re-derived from (day, learner id); the
client never supplies it. Completing both daily problem types grants
exactly one reward per (learner, day). The grant is a compare-and-set on
``math_progress.reward_granted`` executed in the same transaction as the
ledger credit, so duplicate or concurrent completions cannot both pay.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from .badges import evaluate_achievements
from .db.base import utcnow
from .db.models import AccountModel, MathProgressModel
from .local_dates import parse_day, to_utc
from .math_analytics import record_attempt
from .math_problems import DAILY_PROBLEM_TYPES, generate_daily_problems, validate_problem_type
from .points import credit_points
from .telemetry import queue_event

logger = logging.getLogger(__name__)

REWARD_NOTE = "Math: daily practice"

_PASSED_COLUMNS = {
    "addition": "addition_passed_at",
    "subtraction": "subtraction_passed_at",
}


class Operands(BaseModel):
    a: int
    b: int


class MathToday(BaseModel):
    day: str
    addition: Operands
    subtraction: Operands
    addition_complete: bool
    subtraction_complete: bool
    reward_granted: bool


class MathSubmitResult(BaseModel):
    correct: bool
    reward_awarded: bool
    already_completed: Optional[bool] = None


def get_today(session: Session, learner_id: str, day: str) -> MathToday:
    """Operands for the day plus completion flags; a missing row means nothing is done yet."""
    parse_day(day)
    problems = generate_daily_problems(day, learner_id)
    progress = _load_progress(session, learner_id, day)
    return MathToday(
        day=day,
        addition=Operands(a=problems.addition.a, b=problems.addition.b),
        subtraction=Operands(a=problems.subtraction.a, b=problems.subtraction.b),
        addition_complete=bool(progress and progress.addition_passed_at),
        subtraction_complete=bool(progress and progress.subtraction_passed_at),
        reward_granted=bool(progress and progress.reward_granted),
    )


def submit_answer(
    session: Session,
    *,
    learner: AccountModel,
    day: str,
    problem_type: str,
    answer: int,
    granted_by: Optional[str],
    reward_points: int = 1,
    response_time_ms: Optional[int] = None,
    now: Optional[datetime] = None,
) -> MathSubmitResult:
    """Check one answer and update the day's ledger row.

    Runs inside the caller's transaction; nothing is committed here.
    """
    parse_day(day)
    validate_problem_type(problem_type)
    problem = generate_daily_problems(day, learner.id).for_type(problem_type)
    correct = answer == problem.answer

    record_attempt(
        session,
        learner=learner,
        problem_type=problem_type,
        question=problem.question,
        correct_answer=problem.answer,
        given_answer=answer,
        response_time_ms=response_time_ms,
    )

    if not correct:
        return MathSubmitResult(correct=False, reward_awarded=False)

    progress = _get_or_create_progress(session, learner.id, day)
    column = _PASSED_COLUMNS[problem_type]
    if getattr(progress, column) is not None:
        return MathSubmitResult(correct=True, reward_awarded=False, already_completed=True)

    setattr(progress, column, to_utc(now) if now else utcnow())
    session.flush()

    awarded = False
    if all(getattr(progress, _PASSED_COLUMNS[kind]) is not None for kind in DAILY_PROBLEM_TYPES):
        awarded = grant_daily_reward(session, progress)
        if awarded:
            if reward_points > 0:
                credit_points(
                    session,
                    learner=learner,
                    amount=reward_points,
                    note=REWARD_NOTE,
                    granted_by=granted_by,
                )
            queue_event(
                session,
                "math_reward_granted",
                household_id=learner.household_id,
                learner_id=learner.id,
                day=day,
                points=reward_points,
            )
            evaluate_achievements(session, learner)

    return MathSubmitResult(correct=True, reward_awarded=awarded)


def grant_daily_reward(session: Session, progress: MathProgressModel) -> bool:
    """Flip ``reward_granted`` false -> true; only the caller that flips it may pay."""
    result = session.execute(
        update(MathProgressModel)
        .where(
            MathProgressModel.id == progress.id,
            MathProgressModel.reward_granted.is_(False),
        )
        .values(reward_granted=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.info(
            "Math reward already granted for learner=%s day=%s", progress.learner_id, progress.day
        )
        return False
    set_committed_value(progress, "reward_granted", True)
    return True


def _load_progress(session: Session, learner_id: str, day: str) -> Optional[MathProgressModel]:
    stmt = select(MathProgressModel).where(
        MathProgressModel.learner_id == learner_id,
        MathProgressModel.day == day,
    )
    return session.execute(stmt).scalar_one_or_none()


def _get_or_create_progress(session: Session, learner_id: str, day: str) -> MathProgressModel:
    progress = _load_progress(session, learner_id, day)
    if progress is not None:
        return progress
    try:
        with session.begin_nested():
            progress = MathProgressModel(learner_id=learner_id, day=day, reward_granted=False)
            session.add(progress)
    except IntegrityError:
        # Another request created the row first.
        progress = _load_progress(session, learner_id, day)
        if progress is None:
            raise
    return progress


__all__ = [
    "MathSubmitResult",
    "MathToday",
    "Operands",
    "REWARD_NOTE",
    "get_today",
    "grant_daily_reward",
    "submit_answer",
]
