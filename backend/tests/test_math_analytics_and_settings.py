from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from familyhub import math_analytics, math_settings
from familyhub.db.models import AccountModel, MathAttemptModel, MathProgressModel
from familyhub.errors import InvalidArgumentError, PermissionDeniedError
from familyhub.identity import Actor

NOW = datetime(2026, 2, 10, 18, 0, tzinfo=timezone.utc)


@pytest.fixture()
def guardian(family) -> Actor:
    return Actor(user_id=family.guardian_id, role="guardian", household_id=family.household_id)


@pytest.fixture()
def kid(family) -> Actor:
    return Actor(user_id=family.learner_id, role="learner", household_id=family.household_id)


def _attempt(family, learner_id: str, question: str, given: int, correct: int, *, kind: str, when: datetime, ms=None):
    return MathAttemptModel(
        household_id=family.household_id,
        learner_id=learner_id,
        question_type=kind,
        question=question,
        correct_answer=correct,
        given_answer=given,
        is_correct=given == correct,
        response_time_ms=ms,
        created_at=when,
    )


@pytest.fixture()
def attempts(database, family):
    rows = [
        _attempt(family, family.learner_id, "3 + 4", 7, 7, kind="addition", when=NOW - timedelta(hours=1), ms=1200),
        _attempt(family, family.learner_id, "3 + 4", 8, 7, kind="addition", when=NOW - timedelta(hours=2), ms=800),
        _attempt(family, family.learner_id, "9 - 5", 3, 4, kind="subtraction", when=NOW - timedelta(days=1)),
        _attempt(family, family.learner_id, "9 - 5", 3, 4, kind="subtraction", when=NOW - timedelta(days=2)),
        _attempt(family, family.learner_id, "3 + 4", 6, 7, kind="addition", when=NOW - timedelta(days=3)),
        _attempt(family, family.learner_id, "1 + 1", 2, 2, kind="addition", when=NOW - timedelta(days=40)),
        _attempt(family, family.sibling_id, "5 + 5", 10, 10, kind="addition", when=NOW - timedelta(hours=3)),
    ]
    with database.session_scope() as session:
        session.add_all(rows)
    return rows


def test_attempt_log_filters_and_pages(database, guardian, family, attempts) -> None:
    with database.session_scope() as session:
        page = math_analytics.list_attempts(session, guardian, math_analytics.AttemptFilters())
        assert page.total == 7
        assert page.attempts[0].question == "3 + 4"
        assert page.attempts[0].learner_name == "Kai"

        wrong = math_analytics.list_attempts(
            session,
            guardian,
            math_analytics.AttemptFilters(learner_id=family.learner_id, incorrect_only=True),
        )
        assert wrong.total == 4
        assert all(not attempt.is_correct for attempt in wrong.attempts)

        windowed = math_analytics.list_attempts(
            session,
            guardian,
            math_analytics.AttemptFilters(**{"from": NOW - timedelta(days=1, hours=1)}, problem_type="subtraction"),
        )
        assert windowed.total == 1

        paged = math_analytics.list_attempts(session, guardian, math_analytics.AttemptFilters(limit=2, offset=2))
        assert paged.total == 7
        assert len(paged.attempts) == 2


def test_attempt_log_is_guardian_only_and_validated(database, guardian, kid, attempts) -> None:
    with database.session_scope() as session:
        with pytest.raises(PermissionDeniedError):
            math_analytics.list_attempts(session, kid, math_analytics.AttemptFilters())
        with pytest.raises(InvalidArgumentError):
            math_analytics.list_attempts(session, guardian, math_analytics.AttemptFilters(limit=501))
        with pytest.raises(InvalidArgumentError):
            math_analytics.list_attempts(session, guardian, math_analytics.AttemptFilters(problem_type="roots"))


def test_stats_summarise_the_window(database, family, attempts) -> None:
    with database.session_scope() as session:
        for offset in (0, 1, 2, 5):
            day = (NOW - timedelta(days=offset)).date().isoformat()
            session.add(MathProgressModel(learner_id=family.learner_id, day=day, reward_granted=True))

    with database.session_scope() as session:
        learner = session.get(AccountModel, family.learner_id)
        stats = math_analytics.math_stats(session, learner, days=30, timezone_name="UTC", now=NOW)

    assert stats.total_attempts == 5
    assert stats.correct_attempts == 1
    assert stats.accuracy == 0.2
    assert stats.average_response_time_ms == 1000
    assert stats.by_type["addition"].total == 3
    assert stats.by_type["subtraction"].accuracy == 0.0
    assert [(mistake.question, mistake.count) for mistake in stats.top_mistakes] == [("3 + 4", 2), ("9 - 5", 2)]
    assert stats.streak == 3
    assert stats.period.end == "2026-02-10"
    assert stats.period.start == "2026-01-12"


def test_streak_counts_from_yesterday_when_today_is_open(database, family) -> None:
    with database.session_scope() as session:
        for day in ("2026-02-08", "2026-02-09"):
            session.add(MathProgressModel(learner_id=family.learner_id, day=day, reward_granted=True))
        session.add(MathProgressModel(learner_id=family.learner_id, day="2026-02-10", reward_granted=False))

    with database.session_scope() as session:
        assert math_analytics.current_streak(session, family.learner_id, "2026-02-10") == 2
        assert math_analytics.current_streak(session, family.learner_id, "2026-02-12") == 0


def test_stats_reject_out_of_range_windows(database, family) -> None:
    with database.session_scope() as session:
        learner = session.get(AccountModel, family.learner_id)
        with pytest.raises(InvalidArgumentError):
            math_analytics.math_stats(session, learner, days=0, timezone_name="UTC")


def test_settings_default_when_nothing_saved(database, family) -> None:
    with database.session_scope() as session:
        settings = math_settings.load_settings(session, family.household_id)
    assert settings.daily_question_count == 2
    assert settings.multiplication_enabled is False
    assert settings.ranges["addition"].max_b == 99


def test_settings_update_merges_ranges(database, family, guardian, kid) -> None:
    with database.session_scope() as session:
        math_settings.update_settings(
            session,
            guardian,
            math_settings.MathSettingsUpdate(
                daily_question_count=5,
                ranges={"multiplication": math_settings.OperandRange(min_a=2, max_a=12, min_b=2, max_b=12)},
                focus_areas=["subtraction", "subtraction"],
            ),
        )
    with database.session_scope() as session:
        math_settings.update_settings(session, guardian, math_settings.MathSettingsUpdate(allow_borrowing=False))

    with database.session_scope() as session:
        saved = math_settings.load_settings(session, family.household_id)
        with pytest.raises(PermissionDeniedError):
            math_settings.update_settings(session, kid, math_settings.MathSettingsUpdate(division_enabled=True))
        with pytest.raises(InvalidArgumentError):
            math_settings.update_settings(session, guardian, math_settings.MathSettingsUpdate(daily_question_count=0))
        with pytest.raises(InvalidArgumentError):
            math_settings.update_settings(session, guardian, math_settings.MathSettingsUpdate(focus_areas=["algebra"]))

    assert saved.daily_question_count == 5
    assert saved.allow_borrowing is False
    assert saved.focus_areas == ["subtraction"]
    assert saved.ranges["multiplication"].max_a == 12
    assert saved.ranges["addition"].max_b == 99


def test_operand_range_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        math_settings.OperandRange(min_a=10, max_a=1, min_b=1, max_b=2)
