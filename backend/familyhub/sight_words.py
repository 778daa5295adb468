"""Sight-word rotation, quiz answers and household word administration.

Rotation walks the household word list in ``sort_order``. Each word is in
one of the :class:`WordState` states for a learner on a given local day.
Today's word is chosen by these rules, in priority order:

1. a word passed today is the current word, already completed;
2. the first word never passed is presented;
3. a word re-presented for review today and not yet passed stays current;
4. otherwise a recycle runs. The first word whose ``reward_granted``
   flag is still set has it cleared and is presented for review. When no
   flag is set, every flag is set again except the first word's, and the
   first word is presented, which starts a new cycle.

A first-ever pass pays and sets ``reward_granted``. A review pass pays
once, for the word presented that day, and leaves the flag cleared so the
next recycle moves on to the following word.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .badges import evaluate_achievements
from .db.base import utcnow
from .db.models import AccountModel, SightWordModel, SightWordProgressModel
from .errors import InvalidArgumentError, NotFoundError
from .identity import Actor, require_guardian, require_household
from .local_dates import day_start_utc, local_day, to_utc
from .points import credit_points
from .telemetry import queue_event

logger = logging.getLogger(__name__)

MAX_WORD_LENGTH = 64


class WordState(str, enum.Enum):
    UNSEEN = "unseen"
    PRESENTED = "presented"
    PASSED_TODAY = "passed_today"
    REVIEW_OPEN = "review_open"
    PASSED_STALE = "passed_stale"


class SightWordCard(BaseModel):
    id: str
    word: str
    image_ref: Optional[str] = None


class RotationProgress(BaseModel):
    current: int
    total: int


class TodaysSightWord(BaseModel):
    day: str
    word: Optional[SightWordCard]
    already_completed_today: bool = False
    is_review: bool = False
    message: Optional[str] = None
    progress: RotationProgress


class SightWordAnswerResult(BaseModel):
    correct: bool
    reward_awarded: bool
    already_completed: Optional[bool] = None


class SightWordView(BaseModel):
    id: str
    word: str
    image_ref: Optional[str]
    sort_order: int
    is_active: bool


def classify(progress: Optional[SightWordProgressModel], day: str, timezone_name: str) -> WordState:
    if progress is None or progress.quiz_passed_at is None:
        if progress is not None and progress.presented_on == day:
            return WordState.PRESENTED
        return WordState.UNSEEN
    if local_day(progress.quiz_passed_at, timezone_name) == day:
        return WordState.PASSED_TODAY
    if progress.presented_on == day:
        return WordState.REVIEW_OPEN
    return WordState.PASSED_STALE


def todays_word(
    session: Session,
    learner: AccountModel,
    *,
    timezone_name: str,
    now: Optional[datetime] = None,
) -> TodaysSightWord:
    timestamp = to_utc(now) if now else utcnow()
    day = local_day(timestamp, timezone_name)
    words = _active_words(session, learner.household_id)
    if not words:
        return TodaysSightWord(
            day=day, word=None, message="noWords", progress=RotationProgress(current=0, total=0)
        )

    progress_map = _progress_map(session, learner.id)
    states = [classify(progress_map.get(word.id), day, timezone_name) for word in words]
    passed = sum(1 for state in states if state not in (WordState.UNSEEN, WordState.PRESENTED))
    rotation = RotationProgress(current=passed, total=len(words))

    def _answer(word: SightWordModel, *, completed: bool, review: bool) -> TodaysSightWord:
        return TodaysSightWord(
            day=day,
            word=SightWordCard(id=word.id, word=word.word, image_ref=word.image_ref),
            already_completed_today=completed,
            is_review=review,
            progress=rotation,
        )

    for word, state in zip(words, states):
        if state is WordState.PASSED_TODAY:
            progress = progress_map[word.id]
            return _answer(word, completed=True, review=not progress.reward_granted)

    for word, state in zip(words, states):
        if state in (WordState.UNSEEN, WordState.PRESENTED):
            _present(session, learner.id, word.id, progress_map.get(word.id), day, timestamp)
            return _answer(word, completed=False, review=False)

    for word, state in zip(words, states):
        if state is WordState.REVIEW_OPEN:
            return _answer(word, completed=False, review=True)

    word = _recycle(session, learner.id, words, progress_map, day)
    return _answer(word, completed=False, review=True)


def submit_answer(
    session: Session,
    learner: AccountModel,
    *,
    word_id: str,
    answer: str,
    timezone_name: str,
    granted_by: Optional[str],
    reward_points: int = 1,
    now: Optional[datetime] = None,
) -> SightWordAnswerResult:
    word = session.get(SightWordModel, word_id)
    if word is None or word.household_id != learner.household_id:
        raise NotFoundError("Sight word not found.")
    if not answer or not answer.strip():
        raise InvalidArgumentError("answer is required")

    if answer.strip().lower() != word.word.strip().lower():
        return SightWordAnswerResult(correct=False, reward_awarded=False)

    timestamp = to_utc(now) if now else utcnow()
    day = local_day(timestamp, timezone_name)
    progress = _get_progress(session, learner.id, word.id)
    state = classify(progress, day, timezone_name)

    if state is WordState.PASSED_TODAY:
        return SightWordAnswerResult(correct=True, reward_awarded=False, already_completed=True)

    first_pass = state in (WordState.UNSEEN, WordState.PRESENTED)
    review_due = state is WordState.REVIEW_OPEN and progress is not None and not progress.reward_granted
    if not (first_pass or review_due):
        return SightWordAnswerResult(correct=True, reward_awarded=False)

    if progress is None:
        progress = _create_progress(session, learner.id, word.id, day, timestamp)

    # Claim the pass; a concurrent request that already passed today loses.
    claimed = session.execute(
        update(SightWordProgressModel)
        .where(
            SightWordProgressModel.id == progress.id,
            or_(
                SightWordProgressModel.quiz_passed_at.is_(None),
                SightWordProgressModel.quiz_passed_at < day_start_utc(day, timezone_name),
            ),
        )
        .values(quiz_passed_at=timestamp, reward_granted=first_pass)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        session.expire(progress)
        return SightWordAnswerResult(correct=True, reward_awarded=False, already_completed=True)
    session.expire(progress)

    if reward_points > 0:
        credit_points(
            session,
            learner=learner,
            amount=reward_points,
            note=f"Sight word: {word.word}",
            granted_by=granted_by,
        )
    queue_event(
        session,
        "sight_word_reward_granted",
        household_id=learner.household_id,
        learner_id=learner.id,
        sight_word_id=word.id,
        review=not first_pass,
        points=reward_points,
    )
    evaluate_achievements(session, learner)
    return SightWordAnswerResult(correct=True, reward_awarded=True)


# --- administration -------------------------------------------------------


def list_words(session: Session, actor: Actor, *, include_inactive: bool = False) -> List[SightWordView]:
    household_id = require_household(actor)
    stmt = select(SightWordModel).where(SightWordModel.household_id == household_id)
    if not include_inactive or not actor.is_guardian:
        stmt = stmt.where(SightWordModel.is_active.is_(True))
    stmt = stmt.order_by(SightWordModel.sort_order, SightWordModel.created_at)
    return [_view(word) for word in session.execute(stmt).scalars()]


def create_word(
    session: Session, actor: Actor, *, word: str, image_ref: Optional[str] = None
) -> SightWordView:
    household_id = require_guardian(actor)
    text = _clean_word(word)
    highest = session.execute(
        select(func.max(SightWordModel.sort_order)).where(SightWordModel.household_id == household_id)
    ).scalar_one()
    model = SightWordModel(
        household_id=household_id,
        word=text,
        image_ref=image_ref,
        sort_order=(highest if highest is not None else -1) + 1,
        is_active=True,
        created_by_id=actor.user_id,
        updated_by_id=actor.user_id,
    )
    session.add(model)
    session.flush()
    return _view(model)


def update_word(
    session: Session,
    actor: Actor,
    word_id: str,
    *,
    word: Optional[str] = None,
    image_ref: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> SightWordView:
    model = _require_word(session, actor, word_id)
    if word is not None:
        model.word = _clean_word(word)
    if image_ref is not None:
        model.image_ref = image_ref or None
    if is_active is not None:
        model.is_active = is_active
    model.updated_by_id = actor.user_id
    session.flush()
    return _view(model)


def delete_word(session: Session, actor: Actor, word_id: str) -> None:
    model = _require_word(session, actor, word_id)
    session.delete(model)
    session.flush()


def reorder_words(session: Session, actor: Actor, word_ids: Sequence[str]) -> List[SightWordView]:
    household_id = require_guardian(actor)
    if len(set(word_ids)) != len(word_ids):
        raise InvalidArgumentError("word_ids must not contain duplicates")
    models = {
        model.id: model
        for model in session.execute(
            select(SightWordModel).where(
                SightWordModel.household_id == household_id,
                SightWordModel.id.in_(list(word_ids)),
            )
        ).scalars()
    }
    missing = [word_id for word_id in word_ids if word_id not in models]
    if missing:
        raise InvalidArgumentError(f"Unknown sight word ids: {missing}")
    for index, word_id in enumerate(word_ids):
        models[word_id].sort_order = index
        models[word_id].updated_by_id = actor.user_id
    session.flush()
    return list_words(session, actor, include_inactive=True)


# --- internals ------------------------------------------------------------


def _recycle(
    session: Session,
    learner_id: str,
    words: Sequence[SightWordModel],
    progress_map: Dict[str, SightWordProgressModel],
    day: str,
) -> SightWordModel:
    for word in words:
        progress = progress_map[word.id]
        if progress.reward_granted:
            progress.reward_granted = False
            progress.presented_on = day
            session.flush()
            logger.debug("Recycled sight word %s for learner=%s", word.id, learner_id)
            return word

    first = words[0]
    session.execute(
        update(SightWordProgressModel)
        .where(
            SightWordProgressModel.learner_id == learner_id,
            SightWordProgressModel.sight_word_id.in_([word.id for word in words]),
        )
        .values(reward_granted=True)
        .execution_options(synchronize_session=False)
    )
    session.execute(
        update(SightWordProgressModel)
        .where(
            SightWordProgressModel.learner_id == learner_id,
            SightWordProgressModel.sight_word_id == first.id,
        )
        .values(reward_granted=False, presented_on=day)
        .execution_options(synchronize_session=False)
    )
    for progress in progress_map.values():
        session.expire(progress)
    logger.info("Restarted sight word cycle for learner=%s", learner_id)
    return first


def _present(
    session: Session,
    learner_id: str,
    word_id: str,
    progress: Optional[SightWordProgressModel],
    day: str,
    timestamp: datetime,
) -> None:
    if progress is None:
        _create_progress(session, learner_id, word_id, day, timestamp)
        return
    if progress.viewed_at is None:
        progress.viewed_at = timestamp
    progress.presented_on = day
    session.flush()


def _create_progress(
    session: Session, learner_id: str, word_id: str, day: str, timestamp: datetime
) -> SightWordProgressModel:
    try:
        with session.begin_nested():
            progress = SightWordProgressModel(
                learner_id=learner_id,
                sight_word_id=word_id,
                viewed_at=timestamp,
                presented_on=day,
                reward_granted=False,
            )
            session.add(progress)
    except IntegrityError:
        existing = _get_progress(session, learner_id, word_id)
        if existing is None:
            raise
        return existing
    return progress


def _active_words(session: Session, household_id: Optional[str]) -> List[SightWordModel]:
    stmt = (
        select(SightWordModel)
        .where(SightWordModel.household_id == household_id, SightWordModel.is_active.is_(True))
        .order_by(SightWordModel.sort_order, SightWordModel.created_at)
    )
    return list(session.execute(stmt).scalars())


def _progress_map(session: Session, learner_id: str) -> Dict[str, SightWordProgressModel]:
    stmt = select(SightWordProgressModel).where(SightWordProgressModel.learner_id == learner_id)
    return {progress.sight_word_id: progress for progress in session.execute(stmt).scalars()}


def _get_progress(session: Session, learner_id: str, word_id: str) -> Optional[SightWordProgressModel]:
    stmt = select(SightWordProgressModel).where(
        SightWordProgressModel.learner_id == learner_id,
        SightWordProgressModel.sight_word_id == word_id,
    )
    return session.execute(stmt).scalar_one_or_none()


def _require_word(session: Session, actor: Actor, word_id: str) -> SightWordModel:
    household_id = require_guardian(actor)
    model = session.get(SightWordModel, word_id)
    if model is None or model.household_id != household_id:
        raise NotFoundError("Sight word not found.")
    return model


def _clean_word(word: str) -> str:
    text = (word or "").strip()
    if not text:
        raise InvalidArgumentError("word must not be blank")
    if len(text) > MAX_WORD_LENGTH:
        raise InvalidArgumentError(f"word must be at most {MAX_WORD_LENGTH} characters")
    return text


def _view(model: SightWordModel) -> SightWordView:
    return SightWordView(
        id=model.id,
        word=model.word,
        image_ref=model.image_ref,
        sort_order=model.sort_order,
        is_active=model.is_active,
    )


__all__ = [
    "SightWordAnswerResult",
    "SightWordCard",
    "SightWordView",
    "TodaysSightWord",
    "WordState",
    "classify",
    "create_word",
    "delete_word",
    "list_words",
    "reorder_words",
    "submit_answer",
    "todays_word",
    "update_word",
]
