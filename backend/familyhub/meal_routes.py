"""Dish library, meal voting and meal log endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from . import meal_logs, meals
from .config import Settings
from .dependencies import get_actor, get_app_settings, get_session_dependency
from .identity import Actor
from .local_dates import today

router = APIRouter(prefix="/api/meals", tags=["meals"])


class DishCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    photo_ref: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)


class VoteRequest(BaseModel):
    dish_id: Optional[str] = None
    suggested_dish_name: Optional[str] = Field(default=None, max_length=200)


class MealLogCreateRequest(BaseModel):
    meal_type: Optional[str] = None
    day: Optional[str] = None
    dish_id: Optional[str] = None
    dish_name: Optional[str] = Field(default=None, max_length=200)
    cooked_by_id: Optional[str] = None


class DailyMealLogRequest(BaseModel):
    notes: Optional[str] = None
    meals: List[meal_logs.DailyMealInput] = Field(default_factory=list)
    daily_items: List[str] = Field(default_factory=list)


@router.get("/dishes", response_model=List[meals.DishView])
def list_dishes(
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[meals.DishView]:
    return meals.list_dishes(session, actor)


@router.post("/dishes", response_model=meals.DishView, status_code=status.HTTP_201_CREATED)
def create_dish(
    payload: DishCreateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> meals.DishView:
    return meals.create_dish(
        session, actor, name=payload.name, photo_ref=payload.photo_ref, ingredients=payload.ingredients
    )


@router.delete("/dishes/{dish_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dish(
    dish_id: str,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> Response:
    meals.delete_dish(session, actor, dish_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/votes", response_model=List[meals.VoteView])
def my_votes(
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[meals.VoteView]:
    return meals.my_votes(session, actor)


@router.post("/votes", response_model=meals.VoteView, status_code=status.HTTP_201_CREATED)
def cast_vote(
    payload: VoteRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> meals.VoteView:
    return meals.cast_vote(
        session, actor, dish_id=payload.dish_id, suggested_dish_name=payload.suggested_dish_name
    )


@router.delete("/votes/{vote_id}", status_code=status.HTTP_204_NO_CONTENT)
def retract_vote(
    vote_id: str,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> Response:
    meals.retract_vote(session, actor, vote_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/results", response_model=meals.VoteResults)
def results(
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> meals.VoteResults:
    return meals.results(session, actor)


@router.get("/logs", response_model=List[meal_logs.MealLogView])
def list_meal_logs(
    start: Optional[str] = Query(default=None, max_length=10),
    end: Optional[str] = Query(default=None, max_length=10),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[meal_logs.MealLogView]:
    return meal_logs.list_meal_logs(session, actor, start, end)


@router.post("/logs", response_model=meal_logs.MealLogView, status_code=status.HTTP_201_CREATED)
def create_meal_log(
    payload: MealLogCreateRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_app_settings),
) -> meal_logs.MealLogView:
    return meal_logs.create_meal_log(
        session,
        actor,
        meal_type=payload.meal_type,
        day=payload.day or today(settings.default_timezone),
        dish_id=payload.dish_id,
        dish_name=payload.dish_name,
        cooked_by_id=payload.cooked_by_id,
    )


@router.patch("/logs/{log_id}", response_model=meal_logs.MealLogView)
def update_meal_log(
    log_id: str,
    payload: meal_logs.MealLogUpdate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> meal_logs.MealLogView:
    return meal_logs.update_meal_log(session, actor, log_id, payload)


@router.delete("/logs/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_meal_log(
    log_id: str,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> Response:
    meal_logs.delete_meal_log(session, actor, log_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/daily", response_model=List[meal_logs.DailyMealLogView])
def daily_logs(
    start: Optional[str] = Query(default=None, max_length=10),
    end: Optional[str] = Query(default=None, max_length=10),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> List[meal_logs.DailyMealLogView]:
    return meal_logs.daily_logs(session, actor, start, end)


@router.put("/daily/{day}", response_model=meal_logs.DailyMealLogView)
def save_daily_log(
    day: str,
    payload: DailyMealLogRequest,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session_dependency),
) -> meal_logs.DailyMealLogView:
    return meal_logs.save_daily_log(
        session,
        actor,
        day,
        notes=payload.notes,
        meals=payload.meals,
        daily_items=payload.daily_items,
    )


__all__ = ["router"]
