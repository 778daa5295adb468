"""Guardian-curated math questions kept alongside the generated daily set."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, StrictInt, ValidationError, field_validator
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .db.models import CustomMathQuestionModel
from .errors import InvalidArgumentError, NotFoundError
from .identity import Actor, require_guardian

logger = logging.getLogger(__name__)

MAX_IMPORT = 500


def _clean_tags(value: Optional[List[str]]) -> List[str]:
    if value is None:
        return []
    return list(dict.fromkeys(text for text in (str(tag).strip().lower() for tag in value) if text))


class QuestionInput(BaseModel):
    question: str = Field(min_length=1, max_length=200)
    answer: StrictInt
    question_type: str = Field(default="custom", min_length=1, max_length=32)
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True
    sort_order: Optional[int] = None

    @field_validator("question")
    @classmethod
    def _strip_question(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("question must not be blank")
        return text

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: List[str]) -> List[str]:
        return _clean_tags(value)


class MathQuestionUpdate(BaseModel):
    question: Optional[str] = Field(default=None, max_length=200)
    answer: Optional[StrictInt] = None
    question_type: Optional[str] = Field(default=None, max_length=32)
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class MathQuestionView(BaseModel):
    id: str
    question: str
    answer: int
    question_type: str
    tags: List[str]
    is_active: bool
    sort_order: int
    created_at: datetime

    model_config = {"from_attributes": True}


class QuestionImportResult(BaseModel):
    questions: List[MathQuestionView]
    count: int
    skipped: int


def list_questions(
    session: Session,
    actor: Actor,
    *,
    tag: Optional[str] = None,
    active_only: bool = True,
) -> List[MathQuestionView]:
    household_id = require_guardian(actor)
    stmt = select(CustomMathQuestionModel).where(CustomMathQuestionModel.household_id == household_id)
    if active_only:
        stmt = stmt.where(CustomMathQuestionModel.is_active.is_(True))
    stmt = stmt.order_by(CustomMathQuestionModel.sort_order, CustomMathQuestionModel.created_at)
    rows = session.execute(stmt).scalars().all()
    wanted = (tag or "").strip().lower()
    if wanted:
        rows = [row for row in rows if wanted in (row.tags or [])]
    return [MathQuestionView.model_validate(row) for row in rows]


def create_questions(session: Session, actor: Actor, payload: Any) -> QuestionImportResult:
    """Add one question or a batch; entries that do not validate are counted and skipped."""
    household_id = require_guardian(actor)
    items = payload if isinstance(payload, list) else [payload]
    if not items:
        raise InvalidArgumentError("At least one question is required")
    if len(items) > MAX_IMPORT:
        raise InvalidArgumentError(f"Import at most {MAX_IMPORT} questions at a time")

    next_order = _next_sort_order(session, household_id)
    created: List[CustomMathQuestionModel] = []
    skipped = 0
    for item in items:
        try:
            entry = QuestionInput.model_validate(item)
        except ValidationError:
            skipped += 1
            continue
        if entry.sort_order is None:
            sort_order, next_order = next_order, next_order + 1
        else:
            sort_order = entry.sort_order
        question = CustomMathQuestionModel(
            household_id=household_id,
            question=entry.question,
            answer=entry.answer,
            question_type=entry.question_type.strip(),
            tags=entry.tags,
            is_active=entry.is_active,
            sort_order=sort_order,
            created_by_id=actor.user_id,
        )
        session.add(question)
        created.append(question)
    if not created:
        raise InvalidArgumentError("No valid questions provided")
    session.flush()
    if skipped:
        logger.info("Skipped %s invalid question(s) during import household=%s", skipped, household_id)
    return QuestionImportResult(
        questions=[MathQuestionView.model_validate(question) for question in created],
        count=len(created),
        skipped=skipped,
    )


def update_question(
    session: Session, actor: Actor, question_id: str, changes: MathQuestionUpdate
) -> MathQuestionView:
    question = _require_question(session, actor, question_id)
    updates = changes.model_dump(exclude_none=True)
    if "question" in updates:
        text = updates["question"].strip()
        if not text:
            raise InvalidArgumentError("question must not be blank")
        updates["question"] = text
    if "question_type" in updates:
        kind = updates["question_type"].strip()
        if not kind:
            raise InvalidArgumentError("question_type must not be blank")
        updates["question_type"] = kind
    if "tags" in updates:
        updates["tags"] = _clean_tags(updates["tags"])
    for field, value in updates.items():
        setattr(question, field, value)
    session.flush()
    return MathQuestionView.model_validate(question)


def delete_question(session: Session, actor: Actor, question_id: str) -> None:
    question = _require_question(session, actor, question_id)
    session.delete(question)
    session.flush()


def _require_question(session: Session, actor: Actor, question_id: str) -> CustomMathQuestionModel:
    household_id = require_guardian(actor)
    question = session.get(CustomMathQuestionModel, question_id)
    if question is None or question.household_id != household_id:
        raise NotFoundError("Question not found.")
    return question


def _next_sort_order(session: Session, household_id: str) -> int:
    stmt = select(func.max(CustomMathQuestionModel.sort_order)).where(
        CustomMathQuestionModel.household_id == household_id
    )
    current = session.execute(stmt).scalar_one()
    return 0 if current is None else current + 1


__all__ = [
    "MathQuestionUpdate",
    "MathQuestionView",
    "QuestionImportResult",
    "QuestionInput",
    "create_questions",
    "delete_question",
    "list_questions",
    "update_question",
]
