from __future__ import annotations

import pytest

from familyhub import meal_logs, meals
from familyhub.db.models import AccountModel
from familyhub.errors import InvalidArgumentError, NotFoundError, PermissionDeniedError
from familyhub.identity import Actor
from familyhub.meal_logs import DailyDishInput, DailyMealInput, MealLogUpdate


@pytest.fixture()
def guardian(family) -> Actor:
    return Actor(user_id=family.guardian_id, role="guardian", household_id=family.household_id)


@pytest.fixture()
def kid(family) -> Actor:
    return Actor(user_id=family.learner_id, role="learner", household_id=family.household_id)


@pytest.fixture()
def sibling(family) -> Actor:
    return Actor(user_id=family.sibling_id, role="learner", household_id=family.household_id)


@pytest.fixture()
def neighbour(database, outsider) -> Actor:
    with database.session_scope() as session:
        account = session.get(AccountModel, outsider)
        return Actor(user_id=account.id, role="guardian", household_id=account.household_id)


def test_logging_meals_normalizes_types_and_reuses_dishes(database, family, guardian, kid, neighbour) -> None:
    with database.session_scope() as session:
        tacos = meals.create_dish(session, guardian, name="Tacos")
        dinner = meal_logs.create_meal_log(
            session, kid, meal_type=" dinner ", day="2026-03-02", dish_name=" TACOS ", cooked_by_id=family.guardian_id
        )
        lunch = meal_logs.create_meal_log(session, guardian, meal_type="Lunch", day="2026-03-01", dish_name="Ramen")

        assert dinner.meal_type == "DINNER"
        assert dinner.dish_id == tacos.id
        assert dinner.cooked_by_id == family.guardian_id
        assert dinner.logged_by_id == family.learner_id
        assert lunch.dish_name == "Ramen"
        assert sorted(dish.name for dish in meals.list_dishes(session, guardian)) == ["Ramen", "Tacos"]

        with pytest.raises(InvalidArgumentError, match="BREAKFAST, LUNCH, or DINNER"):
            meal_logs.create_meal_log(session, kid, meal_type="brunch", day="2026-03-02", dish_id=tacos.id)
        with pytest.raises(InvalidArgumentError):
            meal_logs.create_meal_log(session, kid, meal_type=None, day="2026-03-02", dish_id=tacos.id)
        with pytest.raises(InvalidArgumentError):
            meal_logs.create_meal_log(session, kid, meal_type="LUNCH", day="2026-03-02", dish_name="   ")
        with pytest.raises(NotFoundError):
            meal_logs.create_meal_log(
                session, kid, meal_type="LUNCH", day="2026-03-02", dish_id=tacos.id, cooked_by_id=neighbour.user_id
            )
        with pytest.raises(NotFoundError):
            meal_logs.create_meal_log(session, neighbour, meal_type="LUNCH", day="2026-03-02", dish_id=tacos.id)

        everything = meal_logs.list_meal_logs(session, guardian)
        recent = meal_logs.list_meal_logs(session, guardian, start="2026-03-02")

    assert [log.day for log in everything] == ["2026-03-02", "2026-03-01"]
    assert [log.id for log in recent] == [dinner.id]


def test_meal_logs_are_changed_by_their_logger_or_a_guardian(database, family, guardian, kid, sibling) -> None:
    with database.session_scope() as session:
        soup = meals.create_dish(session, guardian, name="Soup")
        log = meal_logs.create_meal_log(
            session, kid, meal_type="LUNCH", day="2026-03-03", dish_id=soup.id, cooked_by_id=family.guardian_id
        )

        with pytest.raises(PermissionDeniedError):
            meal_logs.update_meal_log(session, sibling, log.id, MealLogUpdate(meal_type="DINNER"))
        with pytest.raises(PermissionDeniedError):
            meal_logs.delete_meal_log(session, sibling, log.id)

        changed = meal_logs.update_meal_log(
            session, kid, log.id, MealLogUpdate(meal_type="breakfast", day="2026-03-04", cooked_by_id="")
        )
        assert changed.meal_type == "BREAKFAST"
        assert changed.day == "2026-03-04"
        assert changed.cooked_by_id is None
        assert changed.dish_id == soup.id

        with pytest.raises(InvalidArgumentError):
            meal_logs.update_meal_log(session, kid, log.id, MealLogUpdate(dish_id=None))

        meal_logs.delete_meal_log(session, guardian, log.id)
        assert meal_logs.list_meal_logs(session, guardian) == []
        with pytest.raises(NotFoundError):
            meal_logs.delete_meal_log(session, guardian, log.id)


def test_daily_journal_requires_a_bounded_range(database, guardian) -> None:
    with database.session_scope() as session:
        with pytest.raises(InvalidArgumentError, match="start and end"):
            meal_logs.daily_logs(session, guardian, "2026-03-01", None)
        with pytest.raises(InvalidArgumentError, match="start and end"):
            meal_logs.daily_logs(session, guardian, None, "2026-03-01")
        with pytest.raises(InvalidArgumentError):
            meal_logs.daily_logs(session, guardian, "2026-03-05", "2026-03-01")
        with pytest.raises(InvalidArgumentError):
            meal_logs.daily_logs(session, guardian, "2025-01-01", "2026-03-01")
        with pytest.raises(InvalidArgumentError):
            meal_logs.daily_logs(session, guardian, "March 1", "2026-03-01")


def test_saving_a_day_replaces_its_journal(database, guardian, kid, neighbour) -> None:
    with database.session_scope() as session:
        pasta = meals.create_dish(session, guardian, name="Pasta")
        meal_logs.save_daily_log(
            session,
            guardian,
            "2026-03-01",
            notes="Busy day",
            meals=[
                DailyMealInput(meal_type="breakfast", dishes=[DailyDishInput(dish_name="Porridge")]),
                DailyMealInput(meal_type="DINNER", dishes=[DailyDishInput(dish_id=pasta.id)]),
            ],
            daily_items=[" apple ", "", "yogurt"],
        )
        meal_logs.save_daily_log(
            session,
            kid,
            "2026-03-02",
            meals=[DailyMealInput(meal_type="LUNCH", dishes=[DailyDishInput(dish_name="Sandwich")])],
        )

        with pytest.raises(NotFoundError):
            meal_logs.save_daily_log(
                session,
                neighbour,
                "2026-03-01",
                meals=[DailyMealInput(meal_type="LUNCH", dishes=[DailyDishInput(dish_id=pasta.id)])],
            )
        with pytest.raises(InvalidArgumentError):
            meal_logs.save_daily_log(
                session, guardian, "2026-03-01", meals=[DailyMealInput(meal_type="LUNCH", dishes=[DailyDishInput()])]
            )

    with database.session_scope() as session:
        first = meal_logs.daily_logs(session, guardian, "2026-03-01", "2026-03-01")[0]
        assert first.notes == "Busy day"
        assert first.daily_items == ["apple", "yogurt"]
        assert [meal.meal_type for meal in first.meals] == ["BREAKFAST", "DINNER"]
        porridge, cooked = first.meals[0].dishes[0], first.meals[1].dishes[0]
        assert (porridge.dish_name, porridge.dish_id, porridge.is_free_form) == ("Porridge", None, True)
        assert (cooked.dish_name, cooked.dish_id, cooked.is_free_form) == ("Pasta", pasta.id, False)

        meal_logs.save_daily_log(
            session,
            guardian,
            "2026-03-01",
            meals=[DailyMealInput(meal_type="LUNCH", notes="leftovers", dishes=[DailyDishInput(dish_id=pasta.id)])],
        )

    with database.session_scope() as session:
        days = meal_logs.daily_logs(session, guardian, "2026-02-28", "2026-03-31")
        assert meal_logs.daily_logs(session, neighbour, "2026-02-28", "2026-03-31") == []

    assert [day.day for day in days] == ["2026-03-01", "2026-03-02"]
    replaced = days[0]
    assert replaced.notes is None
    assert replaced.daily_items == []
    assert [(meal.meal_type, meal.notes) for meal in replaced.meals] == [("LUNCH", "leftovers")]
    assert [dish.dish_name for dish in replaced.meals[0].dishes] == ["Pasta"]
