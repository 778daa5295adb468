from __future__ import annotations

from datetime import datetime, timezone

import pytest

from familyhub import points, rewards
from familyhub.db.models import AccountModel, PointEntryModel
from familyhub.errors import InsufficientPointsError, InvalidArgumentError, NotFoundError, PermissionDeniedError
from familyhub.identity import Actor


@pytest.fixture()
def guardian(family) -> Actor:
    return Actor(user_id=family.guardian_id, role="guardian", household_id=family.household_id)


@pytest.fixture()
def kid(family) -> Actor:
    return Actor(user_id=family.learner_id, role="learner", household_id=family.household_id)


def _entry(points_value: int, created_at: datetime) -> PointEntryModel:
    return PointEntryModel(points=points_value, note="", created_at=created_at)


def test_day_indicator_thresholds() -> None:
    assert points.day_indicator(0) == "none"
    assert points.day_indicator(-3) == "none"
    assert points.day_indicator(1) == "star"
    assert points.day_indicator(10) == "star"
    assert points.day_indicator(11) == "fire"


def test_month_calendar_groups_by_local_day() -> None:
    entries = [
        _entry(3, datetime(2026, 2, 3, 12, tzinfo=timezone.utc)),
        _entry(9, datetime(2026, 2, 10, 9, tzinfo=timezone.utc)),
        _entry(3, datetime(2026, 2, 10, 18, tzinfo=timezone.utc)),
        _entry(5, datetime(2026, 3, 1, 4, tzinfo=timezone.utc)),
    ]
    utc_days = points.month_calendar(entries, 2026, 2, "UTC")
    assert len(utc_days) == 28
    by_day = {day.day: day for day in utc_days}
    assert by_day["2026-02-03"].total == 3 and by_day["2026-02-03"].indicator == "star"
    assert by_day["2026-02-10"].total == 12 and by_day["2026-02-10"].indicator == "fire"
    assert by_day["2026-02-28"].indicator == "none"

    # 04:00 UTC on March 1 is still February 28 in Los Angeles.
    la_days = {day.day: day for day in points.month_calendar(entries, 2026, 2, "America/Los_Angeles")}
    assert la_days["2026-02-28"].total == 5


def test_month_calendar_rejects_bad_input() -> None:
    with pytest.raises(InvalidArgumentError):
        points.month_calendar([], 2026, 13, "UTC")
    with pytest.raises(InvalidArgumentError):
        points.month_calendar([], 2026, 2, "Nowhere/Special")


def test_adjustments_are_guardian_only_and_non_zero(database, family, guardian, kid) -> None:
    with database.session_scope() as session:
        learner = session.get(AccountModel, family.learner_id)
        entry = points.add_adjustment(session, guardian, learner, 5, "  ")
        assert entry.note == "Manual adjustment"
        points.add_adjustment(session, guardian, learner, -2, "Spilled juice")
        assert points.balance(session, learner) == 3

        with pytest.raises(InvalidArgumentError):
            points.add_adjustment(session, guardian, learner, 0, "nothing")
        with pytest.raises(PermissionDeniedError):
            points.add_adjustment(session, kid, learner, 10, "self-service")

        history = points.history(session, learner)
        assert sorted(item.points for item in history) == [-2, 5]
        with pytest.raises(InvalidArgumentError):
            points.history(session, learner, limit=0)


def test_delete_entry_is_scoped_to_household(database, family, guardian, outsider) -> None:
    with database.session_scope() as session:
        learner = session.get(AccountModel, family.learner_id)
        entry_id = points.add_adjustment(session, guardian, learner, 4, "bonus").id

    stranger = Actor(user_id=outsider, role="guardian", household_id="elsewhere")
    with database.session_scope() as session:
        with pytest.raises(NotFoundError):
            points.delete_entry(session, stranger, entry_id)

    with database.session_scope() as session:
        points.delete_entry(session, guardian, entry_id)
    with database.session_scope() as session:
        assert points.balance(session, session.get(AccountModel, family.learner_id)) == 0


def test_reward_redemption_debits_the_ledger(database, family, guardian, kid) -> None:
    with database.session_scope() as session:
        reward = rewards.create_reward(session, guardian, title="Movie night", cost_points=5)
        learner = session.get(AccountModel, family.learner_id)
        points.add_adjustment(session, guardian, learner, 7, "saved up")

    with database.session_scope() as session:
        learner = session.get(AccountModel, family.learner_id)
        redemption = rewards.redeem(session, kid, learner, reward.id)
    assert redemption.cost_points == 5
    assert redemption.balance == 2

    with database.session_scope() as session:
        learner = session.get(AccountModel, family.learner_id)
        with pytest.raises(InsufficientPointsError):
            rewards.redeem(session, kid, learner, reward.id)
        assert points.balance(session, learner) == 2
        latest = points.history(session, learner, limit=1)[0]
        assert latest.note == "Redeemed: Movie night"
        assert latest.reward_id == reward.id


def test_inactive_rewards_are_hidden_and_cannot_be_redeemed(database, family, guardian, kid) -> None:
    with database.session_scope() as session:
        reward = rewards.create_reward(session, guardian, title="Ice cream", cost_points=2)
        rewards.update_reward(session, guardian, reward.id, is_active=False)

    with database.session_scope() as session:
        assert rewards.list_rewards(session, kid, include_inactive=True) == []
        assert [item.title for item in rewards.list_rewards(session, guardian, include_inactive=True)] == ["Ice cream"]
        learner = session.get(AccountModel, family.learner_id)
        with pytest.raises(NotFoundError):
            rewards.redeem(session, kid, learner, reward.id)


def test_reward_cost_must_be_positive(database, guardian) -> None:
    with database.session_scope() as session:
        with pytest.raises(InvalidArgumentError):
            rewards.create_reward(session, guardian, title="Free hug", cost_points=0)
        with pytest.raises(PermissionDeniedError):
            rewards.create_reward(
                session,
                Actor(user_id="kid", role="learner", household_id=guardian.household_id),
                title="Candy",
                cost_points=1,
            )
