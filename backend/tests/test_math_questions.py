from __future__ import annotations

import pytest

from familyhub import math_questions
from familyhub.db.models import AccountModel
from familyhub.errors import InvalidArgumentError, NotFoundError, PermissionDeniedError
from familyhub.identity import Actor
from familyhub.math_questions import MathQuestionUpdate


@pytest.fixture()
def guardian(family) -> Actor:
    return Actor(user_id=family.guardian_id, role="guardian", household_id=family.household_id)


@pytest.fixture()
def kid(family) -> Actor:
    return Actor(user_id=family.learner_id, role="learner", household_id=family.household_id)


@pytest.fixture()
def neighbour(database, outsider) -> Actor:
    with database.session_scope() as session:
        account = session.get(AccountModel, outsider)
        return Actor(user_id=account.id, role="guardian", household_id=account.household_id)


def test_bulk_import_skips_entries_that_do_not_validate(database, guardian) -> None:
    batch = [
        {"question": " 7 + 8 ", "answer": 15, "tags": ["Addition", " warmup ", "addition"]},
        {"question": "   ", "answer": 1},
        {"question": "9 - 4", "answer": "5"},
        {"question": "6 x 7", "answer": 42, "question_type": "multiplication", "is_active": False},
        "not a question",
    ]
    with database.session_scope() as session:
        result = math_questions.create_questions(session, guardian, batch)

    assert (result.count, result.skipped) == (2, 3)
    first, second = result.questions
    assert (first.question, first.answer, first.question_type) == ("7 + 8", 15, "custom")
    assert first.tags == ["addition", "warmup"]
    assert (first.sort_order, second.sort_order) == (0, 1)
    assert second.is_active is False


def test_single_questions_append_after_the_bank(database, guardian) -> None:
    with database.session_scope() as session:
        math_questions.create_questions(session, guardian, [{"question": "2 + 2", "answer": 4}])
        result = math_questions.create_questions(session, guardian, {"question": "3 + 3", "answer": 6})
        assert result.questions[0].sort_order == 1

        with pytest.raises(InvalidArgumentError):
            math_questions.create_questions(session, guardian, [])
        with pytest.raises(InvalidArgumentError):
            math_questions.create_questions(session, guardian, [{"question": "1 + 1"}])


def test_listing_filters_by_activity_and_tag(database, guardian, neighbour) -> None:
    with database.session_scope() as session:
        math_questions.create_questions(
            session,
            guardian,
            [
                {"question": "10 - 3", "answer": 7, "tags": ["subtraction"], "sort_order": 5},
                {"question": "4 + 5", "answer": 9, "tags": ["Addition"], "sort_order": 1},
                {"question": "8 + 8", "answer": 16, "tags": ["addition"], "is_active": False, "sort_order": 3},
            ],
        )
        active = math_questions.list_questions(session, guardian)
        everything = math_questions.list_questions(session, guardian, active_only=False)
        addition = math_questions.list_questions(session, guardian, tag=" ADDITION ", active_only=False)
        assert math_questions.list_questions(session, neighbour) == []

    assert [item.question for item in active] == ["4 + 5", "10 - 3"]
    assert [item.question for item in everything] == ["4 + 5", "8 + 8", "10 - 3"]
    assert [item.question for item in addition] == ["4 + 5", "8 + 8"]


def test_questions_are_managed_by_guardians_only(database, guardian, kid, neighbour) -> None:
    with database.session_scope() as session:
        created = math_questions.create_questions(session, guardian, {"question": "5 + 5", "answer": 10})
        question_id = created.questions[0].id

        with pytest.raises(PermissionDeniedError):
            math_questions.list_questions(session, kid)
        with pytest.raises(PermissionDeniedError):
            math_questions.create_questions(session, kid, {"question": "1 + 1", "answer": 2})
        with pytest.raises(NotFoundError):
            math_questions.update_question(session, neighbour, question_id, MathQuestionUpdate(answer=11))

        updated = math_questions.update_question(
            session, guardian, question_id, MathQuestionUpdate(answer=11, tags=[" Tricky "])
        )
        assert (updated.question, updated.answer, updated.tags) == ("5 + 5", 11, ["tricky"])
        with pytest.raises(InvalidArgumentError):
            math_questions.update_question(session, guardian, question_id, MathQuestionUpdate(question="  "))

        math_questions.delete_question(session, guardian, question_id)
        with pytest.raises(NotFoundError):
            math_questions.delete_question(session, guardian, question_id)
