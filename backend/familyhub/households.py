"""Accounts, households and invite codes."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from .db.models import AccountModel, HouseholdModel
from .errors import ConflictError, InvalidArgumentError, NotFoundError, PermissionDeniedError
from .identity import GUARDIAN, LEARNER, ROLES, Actor, require_guardian
from .local_dates import resolve_timezone
from .repositories.accounts import accounts
from .repositories.audit_log import audit_log
from .telemetry import queue_event

logger = logging.getLogger(__name__)

INVITE_CODE_LENGTH = 8
# No 0/O, 1/I/L: codes are read aloud and typed by hand.
INVITE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
MAX_ACTIVITY = 200


class AccountView(BaseModel):
    id: str
    name: str
    email: Optional[str]
    role: str
    household_id: Optional[str]
    timezone: Optional[str]


class HouseholdView(BaseModel):
    id: str
    name: str
    invite_code: Optional[str] = None
    members: List[AccountView]


class ActivityEvent(BaseModel):
    id: str
    event_type: str
    learner_id: Optional[str]
    actor: Optional[str]
    payload: dict
    created_at: datetime


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def register_account(
    session: Session,
    *,
    name: str,
    role: str,
    email: Optional[str] = None,
    timezone: Optional[str] = None,
) -> AccountView:
    if role not in ROLES:
        raise InvalidArgumentError(f"role must be one of {list(ROLES)}")
    normalized_email = (email or "").strip().lower() or None
    if normalized_email is not None:
        taken = session.execute(
            select(AccountModel.id).where(AccountModel.email == normalized_email)
        ).scalar_one_or_none()
        if taken is not None:
            raise ConflictError("An account with that email already exists.")
    account = AccountModel(
        name=_clean_name(name),
        email=normalized_email,
        role=role,
        timezone=_check_timezone(timezone),
    )
    session.add(account)
    session.flush()
    return account_view(account)


def create_household(session: Session, actor: Actor, name: str) -> HouseholdView:
    if not actor.is_guardian:
        raise PermissionDeniedError("Only guardians can create a household.")
    if actor.household_id:
        raise ConflictError("You already belong to a household.")
    household = HouseholdModel(name=_clean_name(name), invite_code=_unique_invite_code(session))
    session.add(household)
    session.flush()
    account = accounts.get(session, actor.user_id)
    assert account is not None
    account.household_id = household.id
    session.flush()
    logger.info("Created household %s for guardian=%s", household.id, actor.user_id)
    return _household_view(session, household, include_code=True)


def join_household(session: Session, actor: Actor, invite_code: str) -> HouseholdView:
    if actor.household_id:
        raise ConflictError("You already belong to a household.")
    household = accounts.by_invite_code(session, invite_code or "")
    if household is None:
        raise NotFoundError("Invite code not found.")
    account = accounts.get(session, actor.user_id)
    assert account is not None
    account.household_id = household.id
    session.flush()
    queue_event(
        session,
        "household_joined",
        household_id=household.id,
        learner_id=account.id if account.role == LEARNER else None,
        actor=account.id,
        role=account.role,
    )
    return _household_view(session, household, include_code=account.role == GUARDIAN)


def add_learner(
    session: Session, actor: Actor, *, name: str, timezone: Optional[str] = None
) -> AccountView:
    household_id = require_guardian(actor)
    learner = AccountModel(
        name=_clean_name(name),
        role=LEARNER,
        household_id=household_id,
        timezone=_check_timezone(timezone),
    )
    session.add(learner)
    session.flush()
    queue_event(
        session,
        "learner_added",
        household_id=household_id,
        learner_id=learner.id,
        actor=actor.user_id,
    )
    return account_view(learner)


def list_members(session: Session, actor: Actor) -> HouseholdView:
    if not actor.household_id:
        raise NotFoundError("You do not belong to a household.")
    household = accounts.get_household(session, actor.household_id)
    if household is None:
        raise NotFoundError("Household not found.")
    return _household_view(session, household, include_code=actor.is_guardian)


def regenerate_invite_code(session: Session, actor: Actor) -> HouseholdView:
    household_id = require_guardian(actor)
    household = accounts.get_household(session, household_id)
    if household is None:
        raise NotFoundError("Household not found.")
    household.invite_code = _unique_invite_code(session)
    session.flush()
    return _household_view(session, household, include_code=True)


def recent_activity(session: Session, actor: Actor, limit: int = 50) -> List[ActivityEvent]:
    household_id = require_guardian(actor)
    if limit < 1 or limit > MAX_ACTIVITY:
        raise InvalidArgumentError(f"limit must be between 1 and {MAX_ACTIVITY}")
    return [
        ActivityEvent(
            id=event.id,
            event_type=event.event_type,
            learner_id=event.learner_id,
            actor=event.actor,
            payload=event.payload or {},
            created_at=event.created_at,
        )
        for event in audit_log.recent(session, household_id, limit=limit)
    ]


def account_view(account: AccountModel) -> AccountView:
    return AccountView(
        id=account.id,
        name=account.name,
        email=account.email,
        role=account.role,
        household_id=account.household_id,
        timezone=account.timezone,
    )


def _household_view(session: Session, household: HouseholdModel, *, include_code: bool) -> HouseholdView:
    return HouseholdView(
        id=household.id,
        name=household.name,
        invite_code=household.invite_code if include_code else None,
        members=[account_view(member) for member in accounts.members(session, household.id)],
    )


def _unique_invite_code(session: Session) -> str:
    for _ in range(20):
        code = generate_invite_code()
        if accounts.by_invite_code(session, code) is None:
            return code
    raise ConflictError("Could not allocate a unique invite code.")


def _clean_name(name: str) -> str:
    text = (name or "").strip()
    if not text:
        raise InvalidArgumentError("name must not be blank")
    return text


def _check_timezone(timezone: Optional[str]) -> Optional[str]:
    if timezone is None or not timezone.strip():
        return None
    resolve_timezone(timezone)
    return timezone.strip()


__all__ = [
    "AccountView",
    "ActivityEvent",
    "HouseholdView",
    "INVITE_ALPHABET",
    "INVITE_CODE_LENGTH",
    "account_view",
    "add_learner",
    "create_household",
    "generate_invite_code",
    "join_household",
    "list_members",
    "recent_activity",
    "regenerate_invite_code",
    "register_account",
]
