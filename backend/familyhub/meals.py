"""Dish library and family meal voting."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .db.models import DishModel, DishVoteModel
from .errors import ConflictError, InvalidArgumentError, NotFoundError, PermissionDeniedError
from .identity import Actor, require_household


class DishView(BaseModel):
    id: str
    name: str
    photo_ref: Optional[str]
    ingredients: List[str]
    created_by_id: Optional[str]
    created_at: datetime


class VoteView(BaseModel):
    id: str
    voter_id: str
    dish_id: Optional[str]
    suggested_dish_name: Optional[str]


class DishTally(BaseModel):
    dish_id: str
    name: str
    photo_ref: Optional[str]
    votes: int


class Suggestion(BaseModel):
    name: str
    voter_id: str


class VoteResults(BaseModel):
    dishes: List[DishTally]
    suggestions: List[Suggestion]


def list_dishes(session: Session, actor: Actor) -> List[DishView]:
    household_id = require_household(actor)
    stmt = (
        select(DishModel)
        .where(DishModel.household_id == household_id)
        .order_by(DishModel.created_at.desc())
    )
    return [_view(dish) for dish in session.execute(stmt).scalars()]


def create_dish(
    session: Session,
    actor: Actor,
    *,
    name: str,
    photo_ref: Optional[str] = None,
    ingredients: Optional[Iterable[str]] = None,
) -> DishView:
    household_id = require_household(actor)
    text = (name or "").strip()
    if not text:
        raise InvalidArgumentError("name is required")
    dish = DishModel(
        household_id=household_id,
        name=text,
        photo_ref=photo_ref,
        ingredients=clean_ingredients(ingredients or []),
        created_by_id=actor.user_id,
    )
    session.add(dish)
    session.flush()
    return _view(dish)


def delete_dish(session: Session, actor: Actor, dish_id: str) -> None:
    dish = _require_dish(session, actor, dish_id)
    if not (actor.is_guardian or dish.created_by_id == actor.user_id):
        raise PermissionDeniedError("Only the creator or a guardian can delete this dish.")
    session.delete(dish)
    session.flush()


def cast_vote(
    session: Session,
    actor: Actor,
    *,
    dish_id: Optional[str] = None,
    suggested_dish_name: Optional[str] = None,
) -> VoteView:
    household_id = require_household(actor)
    suggestion = (suggested_dish_name or "").strip() or None
    if (dish_id is None) == (suggestion is None):
        raise InvalidArgumentError("Vote for exactly one dish or suggest a dish name.")

    if dish_id is not None:
        _require_dish(session, actor, dish_id)
        existing = session.execute(
            select(DishVoteModel).where(
                DishVoteModel.voter_id == actor.user_id,
                DishVoteModel.dish_id == dish_id,
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise ConflictError("You already voted for this dish.")

    vote = DishVoteModel(
        household_id=household_id,
        voter_id=actor.user_id,
        dish_id=dish_id,
        suggested_dish_name=suggestion,
    )
    session.add(vote)
    session.flush()
    return _vote_view(vote)


def retract_vote(session: Session, actor: Actor, vote_id: str) -> None:
    household_id = require_household(actor)
    vote = session.get(DishVoteModel, vote_id)
    if vote is None or vote.household_id != household_id:
        raise NotFoundError("Vote not found.")
    if vote.voter_id != actor.user_id:
        raise PermissionDeniedError("Only the voter can retract a vote.")
    session.delete(vote)
    session.flush()


def my_votes(session: Session, actor: Actor) -> List[VoteView]:
    require_household(actor)
    stmt = select(DishVoteModel).where(DishVoteModel.voter_id == actor.user_id).order_by(DishVoteModel.created_at)
    return [_vote_view(vote) for vote in session.execute(stmt).scalars()]


def results(session: Session, actor: Actor) -> VoteResults:
    household_id = require_household(actor)
    vote_count = func.count(DishVoteModel.id)
    stmt = (
        select(DishModel, vote_count)
        .outerjoin(DishVoteModel, DishVoteModel.dish_id == DishModel.id)
        .where(DishModel.household_id == household_id)
        .group_by(DishModel.id)
        .order_by(vote_count.desc(), DishModel.name)
    )
    tallies = [
        DishTally(dish_id=dish.id, name=dish.name, photo_ref=dish.photo_ref, votes=int(votes))
        for dish, votes in session.execute(stmt).all()
    ]
    suggestions = [
        Suggestion(name=vote.suggested_dish_name, voter_id=vote.voter_id)
        for vote in session.execute(
            select(DishVoteModel)
            .where(
                DishVoteModel.household_id == household_id,
                DishVoteModel.dish_id.is_(None),
                DishVoteModel.suggested_dish_name.is_not(None),
            )
            .order_by(DishVoteModel.created_at)
        ).scalars()
    ]
    return VoteResults(dishes=tallies, suggestions=suggestions)


def clean_ingredients(ingredients: Iterable[str]) -> List[str]:
    return [text for text in (str(item).strip() for item in ingredients) if text]


def _require_dish(session: Session, actor: Actor, dish_id: str) -> DishModel:
    household_id = require_household(actor)
    dish = session.get(DishModel, dish_id)
    if dish is None or dish.household_id != household_id:
        raise NotFoundError("Dish not found.")
    return dish


def _view(dish: DishModel) -> DishView:
    return DishView(
        id=dish.id,
        name=dish.name,
        photo_ref=dish.photo_ref,
        ingredients=list(dish.ingredients or []),
        created_by_id=dish.created_by_id,
        created_at=dish.created_at,
    )


def _vote_view(vote: DishVoteModel) -> VoteView:
    return VoteView(
        id=vote.id,
        voter_id=vote.voter_id,
        dish_id=vote.dish_id,
        suggested_dish_name=vote.suggested_dish_name,
    )


__all__ = [
    "DishTally",
    "DishView",
    "VoteResults",
    "VoteView",
    "cast_vote",
    "clean_ingredients",
    "create_dish",
    "delete_dish",
    "list_dishes",
    "my_votes",
    "results",
    "retract_vote",
]
