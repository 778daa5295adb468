"""Household-level math practice preferences."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy import select
from sqlalchemy.orm import Session

from .db.models import MathSettingsModel
from .errors import InvalidArgumentError
from .identity import Actor, require_guardian
from .math_problems import PROBLEM_TYPES


class OperandRange(BaseModel):
    min_a: int = Field(ge=0)
    max_a: int = Field(ge=0)
    min_b: int = Field(ge=0)
    max_b: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "OperandRange":
        if self.min_a > self.max_a or self.min_b > self.max_b:
            raise ValueError("range minimum must not exceed its maximum")
        return self


def default_ranges() -> Dict[str, OperandRange]:
    # Division uses a for the dividend and b for the divisor.
    return {
        "addition": OperandRange(min_a=1, max_a=9, min_b=10, max_b=99),
        "subtraction": OperandRange(min_a=10, max_a=99, min_b=1, max_b=9),
        "multiplication": OperandRange(min_a=1, max_a=10, min_b=1, max_b=10),
        "division": OperandRange(min_a=1, max_a=100, min_b=1, max_b=10),
    }


class MathSettings(BaseModel):
    daily_question_count: int = Field(default=2, ge=1, le=20)
    addition_enabled: bool = True
    subtraction_enabled: bool = True
    multiplication_enabled: bool = False
    division_enabled: bool = False
    ranges: Dict[str, OperandRange] = Field(default_factory=default_ranges)
    allow_carrying: bool = True
    allow_borrowing: bool = True
    adaptive_difficulty: bool = False
    focus_areas: List[str] = Field(default_factory=list)

    @field_validator("ranges")
    @classmethod
    def _known_range_types(cls, value: Dict[str, OperandRange]) -> Dict[str, OperandRange]:
        unknown = set(value) - set(PROBLEM_TYPES)
        if unknown:
            raise ValueError(f"unknown problem types in ranges: {sorted(unknown)}")
        merged = default_ranges()
        merged.update(value)
        return merged

    @field_validator("focus_areas")
    @classmethod
    def _known_focus_areas(cls, value: List[str]) -> List[str]:
        for area in value:
            if area not in PROBLEM_TYPES:
                raise ValueError(f"unknown focus area: {area}")
        return list(dict.fromkeys(value))


class MathSettingsUpdate(BaseModel):
    daily_question_count: Optional[int] = None
    addition_enabled: Optional[bool] = None
    subtraction_enabled: Optional[bool] = None
    multiplication_enabled: Optional[bool] = None
    division_enabled: Optional[bool] = None
    ranges: Optional[Dict[str, OperandRange]] = None
    allow_carrying: Optional[bool] = None
    allow_borrowing: Optional[bool] = None
    adaptive_difficulty: Optional[bool] = None
    focus_areas: Optional[List[str]] = None


_FIELDS = tuple(MathSettings.model_fields)


def load_settings(session: Session, household_id: str) -> MathSettings:
    model = _get_model(session, household_id)
    if model is None:
        return MathSettings()
    return _to_domain(model)


def update_settings(session: Session, actor: Actor, changes: MathSettingsUpdate) -> MathSettings:
    household_id = require_guardian(actor)
    current = load_settings(session, household_id)
    merged = current.model_dump()
    updates = changes.model_dump(exclude_none=True)
    if "ranges" in updates:
        updates["ranges"] = {**merged["ranges"], **updates["ranges"]}
    merged.update(updates)
    if changes.daily_question_count is not None and not 1 <= changes.daily_question_count <= 20:
        raise InvalidArgumentError("daily_question_count must be between 1 and 20")
    try:
        settings = MathSettings.model_validate(merged)
    except ValueError as exc:
        raise InvalidArgumentError(str(exc)) from exc

    model = _get_model(session, household_id)
    if model is None:
        model = MathSettingsModel(household_id=household_id)
        session.add(model)
    for field in _FIELDS:
        value = getattr(settings, field)
        if field == "ranges":
            value = {key: item.model_dump() for key, item in value.items()}
        setattr(model, field, value)
    session.flush()
    return settings


def _get_model(session: Session, household_id: str) -> Optional[MathSettingsModel]:
    stmt = select(MathSettingsModel).where(MathSettingsModel.household_id == household_id)
    return session.execute(stmt).scalar_one_or_none()


def _to_domain(model: MathSettingsModel) -> MathSettings:
    return MathSettings.model_validate({field: getattr(model, field) for field in _FIELDS})


__all__ = [
    "MathSettings",
    "MathSettingsUpdate",
    "OperandRange",
    "default_ranges",
    "load_settings",
    "update_settings",
]
