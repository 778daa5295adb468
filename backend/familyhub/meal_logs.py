"""What the family actually ate: per-meal logs and the daily meal journal.

Two shapes live side by side. A meal log records one dish eaten at one
meal on one day, optionally crediting whoever cooked it. The daily journal
keeps a whole day in one record (notes, each meal with its dishes and the
loose items such as snacks) and is replaced wholesale on every save.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from .db.models import (
    DailyMealDishModel,
    DailyMealEntryModel,
    DailyMealLogModel,
    DishModel,
    MealLogModel,
)
from .errors import InvalidArgumentError, NotFoundError, PermissionDeniedError
from .identity import Actor, require_household
from .local_dates import parse_day
from .repositories.accounts import accounts

MEAL_TYPES = ("BREAKFAST", "LUNCH", "DINNER")
MAX_RANGE_DAYS = 366


class MealLogView(BaseModel):
    id: str
    day: str
    meal_type: str
    dish_id: str
    dish_name: str
    logged_by_id: Optional[str]
    cooked_by_id: Optional[str]
    created_at: datetime


class MealLogUpdate(BaseModel):
    meal_type: Optional[str] = None
    day: Optional[str] = None
    dish_id: Optional[str] = None
    cooked_by_id: Optional[str] = None


class DailyDishInput(BaseModel):
    dish_id: Optional[str] = None
    dish_name: Optional[str] = Field(default=None, max_length=200)


class DailyMealInput(BaseModel):
    meal_type: str
    notes: Optional[str] = None
    dishes: List[DailyDishInput] = Field(default_factory=list)


class DailyDishView(BaseModel):
    dish_id: Optional[str]
    dish_name: str
    is_free_form: bool


class DailyMealView(BaseModel):
    meal_type: str
    notes: Optional[str]
    dishes: List[DailyDishView]


class DailyMealLogView(BaseModel):
    id: str
    day: str
    notes: Optional[str]
    daily_items: List[str]
    meals: List[DailyMealView]
    updated_at: datetime


def normalize_meal_type(value: Optional[str]) -> str:
    meal_type = (value or "").strip().upper()
    if meal_type not in MEAL_TYPES:
        raise InvalidArgumentError("Valid meal type is required (BREAKFAST, LUNCH, or DINNER)")
    return meal_type


def list_meal_logs(
    session: Session,
    actor: Actor,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> List[MealLogView]:
    household_id = require_household(actor)
    stmt = select(MealLogModel).options(selectinload(MealLogModel.dish)).where(
        MealLogModel.household_id == household_id
    )
    if start:
        stmt = stmt.where(MealLogModel.day >= parse_day(start))
    if end:
        stmt = stmt.where(MealLogModel.day <= parse_day(end))
    stmt = stmt.order_by(MealLogModel.day.desc(), MealLogModel.created_at.desc())
    return [_log_view(log) for log in session.execute(stmt).scalars()]


def create_meal_log(
    session: Session,
    actor: Actor,
    *,
    meal_type: Optional[str],
    day: str,
    dish_id: Optional[str] = None,
    dish_name: Optional[str] = None,
    cooked_by_id: Optional[str] = None,
) -> MealLogView:
    """Log a dish for a meal; ``dish_name`` reuses or adds a library dish."""
    household_id = require_household(actor)
    normalized = normalize_meal_type(meal_type)
    parsed = parse_day(day)
    if dish_id:
        dish = _require_dish(session, household_id, dish_id)
    elif dish_name and dish_name.strip():
        dish = _dish_by_name(session, actor, household_id, dish_name.strip())
    else:
        raise InvalidArgumentError("Either dish_id or dish_name is required")
    log = MealLogModel(
        household_id=household_id,
        dish_id=dish.id,
        meal_type=normalized,
        day=parsed,
        logged_by_id=actor.user_id,
        cooked_by_id=_check_cook(session, household_id, cooked_by_id),
    )
    log.dish = dish
    session.add(log)
    session.flush()
    return _log_view(log)


def update_meal_log(session: Session, actor: Actor, log_id: str, changes: MealLogUpdate) -> MealLogView:
    household_id = require_household(actor)
    log = _require_log(session, actor, log_id)
    provided = changes.model_fields_set
    if "meal_type" in provided:
        log.meal_type = normalize_meal_type(changes.meal_type)
    if "day" in provided:
        log.day = parse_day(changes.day or "")
    if "dish_id" in provided:
        if not changes.dish_id:
            raise InvalidArgumentError("A meal log always needs a dish")
        log.dish = _require_dish(session, household_id, changes.dish_id)
    if "cooked_by_id" in provided:
        # An empty value clears the cook.
        log.cooked_by_id = _check_cook(session, household_id, changes.cooked_by_id or None)
    session.flush()
    return _log_view(log)


def delete_meal_log(session: Session, actor: Actor, log_id: str) -> None:
    log = _require_log(session, actor, log_id)
    session.delete(log)
    session.flush()


def daily_logs(
    session: Session,
    actor: Actor,
    start: Optional[str],
    end: Optional[str],
) -> List[DailyMealLogView]:
    household_id = require_household(actor)
    if not start or not end:
        raise InvalidArgumentError("start and end date parameters are required")
    first, last = parse_day(start), parse_day(end)
    if first > last:
        raise InvalidArgumentError("start must not be after end")
    if (last - first).days >= MAX_RANGE_DAYS:
        raise InvalidArgumentError(f"Date range is limited to {MAX_RANGE_DAYS} days")
    stmt = (
        select(DailyMealLogModel)
        .options(selectinload(DailyMealLogModel.meals).selectinload(DailyMealEntryModel.dishes))
        .where(
            DailyMealLogModel.household_id == household_id,
            DailyMealLogModel.day >= first,
            DailyMealLogModel.day <= last,
        )
        .order_by(DailyMealLogModel.day)
    )
    return [_daily_view(log) for log in session.execute(stmt).scalars()]


def save_daily_log(
    session: Session,
    actor: Actor,
    day: str,
    *,
    notes: Optional[str] = None,
    meals: Iterable[DailyMealInput] = (),
    daily_items: Iterable[str] = (),
) -> DailyMealLogView:
    """Replace the household's journal for ``day`` with the given content."""
    household_id = require_household(actor)
    parsed = parse_day(day)
    entries = [_build_entry(session, household_id, meal, position) for position, meal in enumerate(meals)]
    log = _daily_log(session, household_id, parsed) or _create_daily_log(session, household_id, parsed)
    log.notes = (notes or "").strip() or None
    log.daily_items = [text for text in (str(item).strip() for item in daily_items) if text]
    log.meals.clear()
    session.flush()
    log.meals.extend(entries)
    session.flush()
    return _daily_view(log)


def _build_entry(session: Session, household_id: str, meal: DailyMealInput, position: int) -> DailyMealEntryModel:
    entry = DailyMealEntryModel(
        meal_type=normalize_meal_type(meal.meal_type),
        notes=(meal.notes or "").strip() or None,
        position=position,
    )
    for index, item in enumerate(meal.dishes):
        if item.dish_id:
            dish = _require_dish(session, household_id, item.dish_id)
            entry.dishes.append(
                DailyMealDishModel(dish_id=dish.id, dish_name=dish.name, is_free_form=False, position=index)
            )
            continue
        name = (item.dish_name or "").strip()
        if not name:
            raise InvalidArgumentError("Each dish needs a dish_id or a dish_name")
        entry.dishes.append(DailyMealDishModel(dish_name=name, is_free_form=True, position=index))
    return entry


def _daily_log(session: Session, household_id: str, day: date) -> Optional[DailyMealLogModel]:
    stmt = select(DailyMealLogModel).where(
        DailyMealLogModel.household_id == household_id,
        DailyMealLogModel.day == day,
    )
    return session.execute(stmt).scalar_one_or_none()


def _create_daily_log(session: Session, household_id: str, day: date) -> DailyMealLogModel:
    try:
        with session.begin_nested():
            log = DailyMealLogModel(household_id=household_id, day=day, daily_items=[])
            session.add(log)
    except IntegrityError:
        log = _daily_log(session, household_id, day)
        if log is None:
            raise
    return log


def _require_log(session: Session, actor: Actor, log_id: str) -> MealLogModel:
    household_id = require_household(actor)
    log = session.get(MealLogModel, log_id)
    if log is None or log.household_id != household_id:
        raise NotFoundError("Meal log not found.")
    if not (actor.is_guardian or log.logged_by_id == actor.user_id):
        raise PermissionDeniedError("Only whoever logged the meal or a guardian can change it.")
    return log


def _require_dish(session: Session, household_id: str, dish_id: str) -> DishModel:
    dish = session.get(DishModel, dish_id) if dish_id else None
    if dish is None or dish.household_id != household_id:
        raise NotFoundError("Dish not found.")
    return dish


def _dish_by_name(session: Session, actor: Actor, household_id: str, name: str) -> DishModel:
    stmt = select(DishModel).where(
        DishModel.household_id == household_id,
        func.lower(DishModel.name) == name.lower(),
    )
    dish = session.execute(stmt.limit(1)).scalars().first()
    if dish is None:
        dish = DishModel(household_id=household_id, name=name, ingredients=[], created_by_id=actor.user_id)
        session.add(dish)
        session.flush()
    return dish


def _check_cook(session: Session, household_id: str, cooked_by_id: Optional[str]) -> Optional[str]:
    if not cooked_by_id:
        return None
    cook = accounts.get(session, cooked_by_id)
    if cook is None or cook.household_id != household_id:
        raise NotFoundError("Cook is not a member of your household.")
    return cook.id


def _log_view(log: MealLogModel) -> MealLogView:
    return MealLogView(
        id=log.id,
        day=log.day.isoformat(),
        meal_type=log.meal_type,
        dish_id=log.dish_id,
        dish_name=log.dish.name,
        logged_by_id=log.logged_by_id,
        cooked_by_id=log.cooked_by_id,
        created_at=log.created_at,
    )


def _daily_view(log: DailyMealLogModel) -> DailyMealLogView:
    return DailyMealLogView(
        id=log.id,
        day=log.day.isoformat(),
        notes=log.notes,
        daily_items=list(log.daily_items or []),
        meals=[
            DailyMealView(
                meal_type=entry.meal_type,
                notes=entry.notes,
                dishes=[
                    DailyDishView(dish_id=dish.dish_id, dish_name=dish.dish_name, is_free_form=dish.is_free_form)
                    for dish in entry.dishes
                ],
            )
            for entry in log.meals
        ],
        updated_at=log.updated_at,
    )


__all__ = [
    "DailyDishInput",
    "DailyMealInput",
    "DailyMealLogView",
    "MEAL_TYPES",
    "MealLogUpdate",
    "MealLogView",
    "create_meal_log",
    "daily_logs",
    "delete_meal_log",
    "list_meal_logs",
    "normalize_meal_type",
    "save_daily_log",
]
