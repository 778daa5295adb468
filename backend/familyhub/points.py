"""Point ledger service: credits, balances and calendar summaries."""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from .badges import rollback_chore_badge
from .db.models import AccountModel, PointEntryModel
from .errors import InvalidArgumentError, NotFoundError
from .identity import Actor, require_guardian
from .local_dates import local_day, resolve_timezone
from .repositories.point_ledger import point_ledger
from .telemetry import queue_event

logger = logging.getLogger(__name__)

DayIndicator = Literal["fire", "star", "none"]

FIRE_THRESHOLD = 10
MAX_HISTORY = 500


class CalendarDay(BaseModel):
    day: str
    total: int
    indicator: DayIndicator


def credit_points(
    session: Session,
    *,
    learner: AccountModel,
    amount: int,
    note: str,
    granted_by: Optional[str],
    chore_id: Optional[str] = None,
    reward_id: Optional[str] = None,
) -> PointEntryModel:
    """Append one ledger entry for ``learner`` inside the caller's transaction."""
    if not learner.household_id:
        raise InvalidArgumentError("Learner does not belong to a household.")
    entry = point_ledger.credit(
        session,
        household_id=learner.household_id,
        learner_id=learner.id,
        points=amount,
        note=note,
        granted_by=granted_by,
        chore_id=chore_id,
        reward_id=reward_id,
    )
    logger.debug("Credited %s point(s) to learner=%s note=%r", amount, learner.id, note)
    return entry


def balance(session: Session, learner: AccountModel) -> int:
    return point_ledger.balance(session, learner.id)


def history(session: Session, learner: AccountModel, limit: int = 100) -> List[PointEntryModel]:
    if limit < 1 or limit > MAX_HISTORY:
        raise InvalidArgumentError(f"limit must be between 1 and {MAX_HISTORY}.")
    return point_ledger.entries(session, learner.id, limit=limit)


def daily_totals(entries: Iterable[PointEntryModel], timezone_name: str) -> Dict[str, int]:
    resolve_timezone(timezone_name)
    totals: Dict[str, int] = defaultdict(int)
    for entry in entries:
        totals[local_day(entry.created_at, timezone_name)] += entry.points
    return dict(totals)


def day_indicator(points: int) -> DayIndicator:
    if points > FIRE_THRESHOLD:
        return "fire"
    if points >= 1:
        return "star"
    return "none"


def month_calendar(
    entries: Iterable[PointEntryModel], year: int, month: int, timezone_name: str
) -> List[CalendarDay]:
    if month < 1 or month > 12:
        raise InvalidArgumentError("month must be between 1 and 12.")
    totals = daily_totals(entries, timezone_name)
    _, days_in_month = calendar.monthrange(year, month)
    result: List[CalendarDay] = []
    for day_number in range(1, days_in_month + 1):
        day = date(year, month, day_number).isoformat()
        total = totals.get(day, 0)
        result.append(CalendarDay(day=day, total=total, indicator=day_indicator(total)))
    return result


def add_adjustment(
    session: Session, actor: Actor, learner: AccountModel, amount: int, note: str
) -> PointEntryModel:
    require_guardian(actor)
    if amount == 0:
        raise InvalidArgumentError("Adjustment must be non-zero.")
    entry = credit_points(
        session,
        learner=learner,
        amount=amount,
        note=note.strip() or "Manual adjustment",
        granted_by=actor.user_id,
    )
    queue_event(
        session,
        "points_adjusted",
        household_id=learner.household_id,
        learner_id=learner.id,
        points=amount,
        actor=actor.user_id,
    )
    return entry


def delete_entry(session: Session, actor: Actor, entry_id: str) -> None:
    """Remove a ledger entry; chore entries also roll back the chore badge."""
    household_id = require_guardian(actor)
    entry = point_ledger.get(session, entry_id)
    if entry is None or entry.household_id != household_id:
        raise NotFoundError("Point entry not found.")
    if entry.chore_id:
        rollback_chore_badge(session, entry.learner_id, entry.chore_id)
    point_ledger.delete(session, entry)
    queue_event(
        session,
        "points_entry_deleted",
        household_id=household_id,
        learner_id=entry.learner_id,
        points=entry.points,
        actor=actor.user_id,
    )


__all__ = [
    "CalendarDay",
    "DayIndicator",
    "add_adjustment",
    "balance",
    "credit_points",
    "daily_totals",
    "day_indicator",
    "delete_entry",
    "history",
    "month_calendar",
]
