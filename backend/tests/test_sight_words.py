from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from familyhub.db.models import AccountModel, PointEntryModel, SightWordProgressModel
from familyhub.errors import InvalidArgumentError, NotFoundError, PermissionDeniedError
from familyhub.identity import Actor
from familyhub import sight_words

START = datetime(2026, 2, 3, 15, 0, tzinfo=timezone.utc)


def _day(offset: int) -> datetime:
    return START + timedelta(days=offset)


@pytest.fixture()
def guardian(family) -> Actor:
    return Actor(user_id=family.guardian_id, role="guardian", household_id=family.household_id, name="Pat")


@pytest.fixture()
def words(database, guardian):
    with database.session_scope() as session:
        return [sight_words.create_word(session, guardian, word=text) for text in ("the", "and", "cat")]


def _today(database, learner_id: str, offset: int, tz: str = "UTC"):
    with database.session_scope() as session:
        learner = session.get(AccountModel, learner_id)
        return sight_words.todays_word(session, learner, timezone_name=tz, now=_day(offset))


def _answer(database, learner_id: str, word_id: str, answer: str, offset: int, tz: str = "UTC"):
    with database.session_scope() as session:
        learner = session.get(AccountModel, learner_id)
        return sight_words.submit_answer(
            session,
            learner,
            word_id=word_id,
            answer=answer,
            timezone_name=tz,
            granted_by=learner_id,
            now=_day(offset),
        )


def _points(database, learner_id: str) -> int:
    with database.session_scope() as session:
        return sum(
            entry.points
            for entry in session.execute(
                select(PointEntryModel).where(PointEntryModel.learner_id == learner_id)
            ).scalars()
        )


def _pass_today(database, learner_id: str, offset: int) -> str:
    current = _today(database, learner_id, offset)
    assert current.word is not None
    result = _answer(database, learner_id, current.word.id, current.word.word, offset)
    assert result.reward_awarded
    return current.word.word


def test_empty_household_reports_no_words(database, family) -> None:
    today = _today(database, family.learner_id, 0)
    assert today.word is None
    assert today.message == "noWords"
    assert (today.progress.current, today.progress.total) == (0, 0)


def test_first_unseen_word_is_presented_and_stays_current(database, family, words) -> None:
    first = _today(database, family.learner_id, 0)
    again = _today(database, family.learner_id, 0)

    assert first.word.word == "the"
    assert again.word.id == first.word.id
    assert not first.already_completed_today and not first.is_review
    assert (first.progress.current, first.progress.total) == (0, 3)

    with database.session_scope() as session:
        progress = session.execute(select(SightWordProgressModel)).scalar_one()
    assert progress.viewed_at is not None
    assert progress.presented_on == "2026-02-03"
    assert progress.quiz_passed_at is None


def test_passing_a_word_rewards_once_and_completes_the_day(database, family, words) -> None:
    word = _today(database, family.learner_id, 0).word

    wrong = _answer(database, family.learner_id, word.id, "then", 0)
    assert wrong.correct is False and wrong.reward_awarded is False

    right = _answer(database, family.learner_id, word.id, "  THE ", 0)
    assert right.correct and right.reward_awarded

    repeat = _answer(database, family.learner_id, word.id, "the", 0)
    assert repeat.correct and not repeat.reward_awarded and repeat.already_completed

    after = _today(database, family.learner_id, 0)
    assert after.word.id == word.id
    assert after.already_completed_today and not after.is_review
    assert after.progress.current == 1
    assert _points(database, family.learner_id) == 1


def test_rotation_moves_forward_one_word_per_day(database, family, words) -> None:
    assert [_pass_today(database, family.learner_id, offset) for offset in range(3)] == ["the", "and", "cat"]
    assert _points(database, family.learner_id) == 3


def test_recycle_reviews_each_word_in_turn_then_restarts(database, family, words) -> None:
    for offset in range(3):
        _pass_today(database, family.learner_id, offset)

    reviewed = []
    for offset in range(3, 6):
        current = _today(database, family.learner_id, offset)
        assert current.is_review and not current.already_completed_today
        assert current.progress.current == 3
        assert _today(database, family.learner_id, offset).word.id == current.word.id
        result = _answer(database, family.learner_id, current.word.id, current.word.word, offset)
        assert result.reward_awarded
        reviewed.append(current.word.word)

        done = _today(database, family.learner_id, offset)
        assert done.already_completed_today and done.is_review

    assert reviewed == ["the", "and", "cat"]
    assert _points(database, family.learner_id) == 6

    restart = _today(database, family.learner_id, 6)
    assert restart.word.word == "the"
    assert restart.is_review

    with database.session_scope() as session:
        flags = {
            progress.sight_word_id: progress.reward_granted
            for progress in session.execute(select(SightWordProgressModel)).scalars()
        }
    assert flags[words[0].id] is False
    assert flags[words[1].id] is True
    assert flags[words[2].id] is True


def test_stale_word_that_is_not_under_review_pays_nothing(database, family, words) -> None:
    for offset in range(3):
        _pass_today(database, family.learner_id, offset)

    review = _today(database, family.learner_id, 3)
    assert review.word.word == "the"

    stale = _answer(database, family.learner_id, words[2].id, "cat", 3)
    assert stale.correct and not stale.reward_awarded and stale.already_completed is None
    assert _points(database, family.learner_id) == 3


def test_new_words_take_priority_over_review(database, family, guardian, words) -> None:
    for offset in range(3):
        _pass_today(database, family.learner_id, offset)
    with database.session_scope() as session:
        sight_words.create_word(session, guardian, word="dog")

    current = _today(database, family.learner_id, 3)
    assert current.word.word == "dog"
    assert not current.is_review
    assert current.progress.total == 4


def test_local_day_boundaries_follow_the_timezone(database, family, words) -> None:
    word = _today(database, family.learner_id, 0, tz="America/Los_Angeles").word
    late_evening = START.replace(hour=23)
    with database.session_scope() as session:
        learner = session.get(AccountModel, family.learner_id)
        result = sight_words.submit_answer(
            session,
            learner,
            word_id=word.id,
            answer=word.word,
            timezone_name="America/Los_Angeles",
            granted_by=None,
            now=late_evening,
        )
    assert result.reward_awarded

    # 09:00 UTC on Feb 4 is 01:00 in Los Angeles, already the next local day.
    with database.session_scope() as session:
        learner = session.get(AccountModel, family.learner_id)
        next_morning = sight_words.todays_word(
            session, learner, timezone_name="America/Los_Angeles", now=START + timedelta(hours=18)
        )
    assert next_morning.day == "2026-02-04"
    assert next_morning.word.word == "and"


def test_submit_validates_word_and_answer(database, family, words) -> None:
    with pytest.raises(NotFoundError):
        _answer(database, family.learner_id, "missing", "the", 0)
    with pytest.raises(InvalidArgumentError):
        _answer(database, family.learner_id, words[0].id, "   ", 0)


def test_inactive_words_leave_the_rotation(database, family, guardian, words) -> None:
    with database.session_scope() as session:
        sight_words.update_word(session, guardian, words[0].id, is_active=False)

    assert _today(database, family.learner_id, 0).word.word == "and"

    learner_actor = Actor(user_id=family.learner_id, role="learner", household_id=family.household_id)
    with database.session_scope() as session:
        visible = sight_words.list_words(session, learner_actor, include_inactive=True)
        everything = sight_words.list_words(session, guardian, include_inactive=True)
    assert [word.word for word in visible] == ["and", "cat"]
    assert [word.word for word in everything] == ["the", "and", "cat"]


def test_reorder_changes_rotation_order(database, family, guardian, words) -> None:
    with database.session_scope() as session:
        reordered = sight_words.reorder_words(session, guardian, [words[2].id, words[0].id, words[1].id])
    assert [word.word for word in reordered] == ["cat", "the", "and"]
    assert [word.sort_order for word in reordered] == [0, 1, 2]
    assert _today(database, family.learner_id, 0).word.word == "cat"


def test_reorder_rejects_duplicates_and_unknown_ids(database, guardian, words) -> None:
    with database.session_scope() as session:
        with pytest.raises(InvalidArgumentError):
            sight_words.reorder_words(session, guardian, [words[0].id, words[0].id])
        with pytest.raises(InvalidArgumentError):
            sight_words.reorder_words(session, guardian, [words[0].id, "nope"])


def test_word_administration_requires_a_guardian(database, family, words) -> None:
    learner_actor = Actor(user_id=family.learner_id, role="learner", household_id=family.household_id)
    with database.session_scope() as session:
        with pytest.raises(PermissionDeniedError):
            sight_words.create_word(session, learner_actor, word="sun")
        with pytest.raises(PermissionDeniedError):
            sight_words.delete_word(session, learner_actor, words[0].id)


def test_create_word_appends_and_validates(database, guardian, words) -> None:
    with database.session_scope() as session:
        created = sight_words.create_word(session, guardian, word="  sun ")
        assert created.word == "sun"
        assert created.sort_order == 3
        with pytest.raises(InvalidArgumentError):
            sight_words.create_word(session, guardian, word="   ")
        with pytest.raises(InvalidArgumentError):
            sight_words.create_word(session, guardian, word="x" * 65)
