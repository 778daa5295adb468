"""Identity and permission binding for household requests.

Authentication happens upstream; the gateway forwards the authenticated
account id in ``X-Actor-Id``. Everything here only resolves that id and
enforces the household rules on top of it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from .db.models import AccountModel
from .db.session import get_session_dependency
from .errors import (
    AuthenticationError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from .local_dates import resolve_timezone
from .repositories.accounts import accounts

logger = logging.getLogger(__name__)

GUARDIAN = "guardian"
LEARNER = "learner"
ROLES = (GUARDIAN, LEARNER)


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: str
    household_id: Optional[str]
    name: str = ""

    @property
    def is_guardian(self) -> bool:
        return self.role == GUARDIAN

    @property
    def is_learner(self) -> bool:
        return self.role == LEARNER


def actor_from_account(account: AccountModel) -> Actor:
    return Actor(
        user_id=account.id,
        role=account.role,
        household_id=account.household_id,
        name=account.name,
    )


def get_actor(
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
    session: Session = Depends(get_session_dependency),
) -> Actor:
    actor_id = (x_actor_id or "").strip()
    if not actor_id:
        raise AuthenticationError("Missing X-Actor-Id header.")
    account = accounts.get(session, actor_id)
    if account is None:
        logger.info("Rejected request for unknown actor id=%s", actor_id)
        raise AuthenticationError("Unknown account.")
    return actor_from_account(account)


def require_household(actor: Actor) -> str:
    if not actor.household_id:
        raise PermissionDeniedError("Join or create a household first.")
    return actor.household_id


def require_guardian(actor: Actor) -> str:
    household_id = require_household(actor)
    if not actor.is_guardian:
        raise PermissionDeniedError("Only guardians can do that.")
    return household_id


def resolve_learner(session: Session, actor: Actor, learner_id: Optional[str] = None) -> AccountModel:
    """Return the learner the actor is allowed to act for.

    Learners always act for themselves. Guardians must name a learner of
    their own household; anything else is reported as not found so that
    ids from other households are not confirmed to exist.
    """
    household_id = require_household(actor)
    if actor.is_learner:
        if learner_id and learner_id != actor.user_id:
            raise PermissionDeniedError("Learners can only act for themselves.")
        account = accounts.get(session, actor.user_id)
        if account is None:
            raise AuthenticationError("Unknown account.")
        return account

    if not learner_id:
        raise InvalidArgumentError("learner_id is required for guardians.")
    account = accounts.get(session, learner_id)
    if account is None or account.household_id != household_id or account.role != LEARNER:
        raise NotFoundError("Learner not found in your household.")
    return account


def effective_timezone(learner: AccountModel, requested: Optional[str], default: str) -> str:
    """Pick the request's timezone, else the learner's, else the configured default."""
    for candidate in (requested, learner.timezone, default):
        if candidate and candidate.strip():
            name = candidate.strip()
            resolve_timezone(name)
            return name
    raise InvalidArgumentError("No timezone available for this learner.")


__all__ = [
    "Actor",
    "GUARDIAN",
    "LEARNER",
    "ROLES",
    "actor_from_account",
    "effective_timezone",
    "get_actor",
    "require_guardian",
    "require_household",
    "resolve_learner",
]
