from __future__ import annotations

from datetime import datetime, timezone

from familyhub.local_dates import today


def _as(account_id: str) -> dict[str, str]:
    return {"X-Actor-Id": account_id}


def test_onboarding_a_new_family(client) -> None:
    guardian = client.post("/api/household/accounts", json={"name": "Noor", "email": "noor@example.com"})
    assert guardian.status_code == 201
    guardian_id = guardian.json()["id"]
    assert guardian.json()["role"] == "guardian"

    assert client.get("/api/household", headers=_as(guardian_id)).status_code == 404

    created = client.post("/api/household", json={"name": "Noor family"}, headers=_as(guardian_id))
    assert created.status_code == 201
    code = created.json()["invite_code"]

    teen = client.post("/api/household/accounts", json={"name": "Zed", "role": "learner"}).json()
    joined = client.post("/api/household/join", json={"invite_code": code}, headers=_as(teen["id"]))
    assert joined.status_code == 200
    assert joined.json()["invite_code"] is None

    kid = client.post(
        "/api/household/learners", json={"name": "Lu", "timezone": "Europe/Paris"}, headers=_as(guardian_id)
    )
    assert kid.status_code == 201

    members = client.get("/api/household", headers=_as(guardian_id)).json()["members"]
    assert sorted(member["name"] for member in members) == ["Lu", "Noor", "Zed"]

    duplicate = client.post("/api/household/accounts", json={"name": "Noor 2", "email": "NOOR@example.com"})
    assert duplicate.status_code == 409


def test_activity_feed_records_household_events(client, family) -> None:
    guardian = _as(family.guardian_id)
    chore = client.post("/api/chores", json={"title": "Feed the cat", "default_points": 3}, headers=guardian).json()
    logged = client.post(f"/api/chores/{chore['id']}/log", json={"learner_id": family.learner_id}, headers=guardian)
    assert logged.status_code == 201
    assert logged.json()["level_up"]["level_name"] == "Sprout"

    client.post("/api/points", json={"learner_id": family.learner_id, "points": 2, "note": "Helped"}, headers=guardian)

    events = client.get("/api/household/activity", headers=guardian).json()
    kinds = {event["event_type"] for event in events}
    assert {"chore_logged", "badge_level_up", "achievement_earned", "points_adjusted"} <= kinds
    assert client.get("/api/household/activity", headers=_as(family.learner_id)).status_code == 403


def test_points_rewards_and_calendar(client, family) -> None:
    guardian = _as(family.guardian_id)
    learner = _as(family.learner_id)

    added = client.post(
        "/api/points", json={"learner_id": family.learner_id, "points": 12, "note": "Great week"}, headers=guardian
    )
    assert added.status_code == 201
    assert client.post("/api/points", json={"learner_id": family.learner_id, "points": 5}, headers=learner).status_code == 403

    reward = client.post("/api/rewards", json={"title": "Zoo trip", "cost_points": 10}, headers=guardian).json()
    redeemed = client.post(f"/api/rewards/{reward['id']}/redeem", json={}, headers=learner)
    assert redeemed.status_code == 200
    assert redeemed.json()["balance"] == 2

    broke = client.post(f"/api/rewards/{reward['id']}/redeem", json={}, headers=learner)
    assert broke.status_code == 409

    now = datetime.now(timezone.utc)
    calendar = client.get(
        "/api/points/calendar",
        params={"year": now.year, "month": now.month, "timezone": "UTC"},
        headers=learner,
    ).json()
    today = next(day for day in calendar["days"] if day["day"] == now.date().isoformat())
    assert today["total"] == 2
    assert today["indicator"] == "star"

    summary = client.get("/api/points", headers=learner).json()
    entry_id = next(entry["id"] for entry in summary["entries"] if entry["points"] == 12)
    assert client.delete(f"/api/points/{entry_id}", headers=guardian).status_code == 204
    assert client.get("/api/points", headers=learner).json()["balance"] == -10


def test_chore_catalog_and_badges(client, family) -> None:
    guardian = _as(family.guardian_id)
    chore = client.post("/api/chores", json={"title": "Make bed", "default_points": 1}, headers=guardian).json()
    for _ in range(5):
        client.post(f"/api/chores/{chore['id']}/log", json={"learner_id": family.learner_id}, headers=guardian)

    book = client.get("/api/badges", headers=_as(family.learner_id)).json()
    assert book["chore_badges"][0]["level_name"] == "Bronze"
    assert book["chore_badges"][0]["count"] == 5

    assert client.delete(f"/api/chores/{chore['id']}", headers=guardian).status_code == 204
    listed = client.get("/api/chores", params={"include_inactive": "true"}, headers=guardian).json()
    assert [item["is_active"] for item in listed] == [False]


def test_meal_voting_endpoints(client, family) -> None:
    learner = _as(family.learner_id)
    dish = client.post("/api/meals/dishes", json={"name": "Lasagna", "ingredients": ["pasta"]}, headers=learner)
    assert dish.status_code == 201
    dish_id = dish.json()["id"]

    vote = client.post("/api/meals/votes", json={"dish_id": dish_id}, headers=learner)
    assert vote.status_code == 201
    assert client.post("/api/meals/votes", json={"dish_id": dish_id}, headers=learner).status_code == 409
    client.post("/api/meals/votes", json={"suggested_dish_name": "Ramen"}, headers=_as(family.guardian_id))

    results = client.get("/api/meals/results", headers=learner).json()
    assert results["dishes"][0] == {"dish_id": dish_id, "name": "Lasagna", "photo_ref": None, "votes": 1}
    assert results["suggestions"][0]["name"] == "Ramen"

    assert client.delete(f"/api/meals/votes/{vote.json()['id']}", headers=learner).status_code == 204
    assert client.get("/api/meals/votes", headers=learner).json() == []


def test_meal_log_endpoints(client, family) -> None:
    learner = _as(family.learner_id)
    guardian = _as(family.guardian_id)

    logged = client.post(
        "/api/meals/logs",
        json={"meal_type": "dinner", "dish_name": "Paella", "day": "2026-04-10", "cooked_by_id": family.guardian_id},
        headers=learner,
    )
    assert logged.status_code == 201
    log = logged.json()
    assert (log["meal_type"], log["dish_name"], log["cooked_by_id"]) == ("DINNER", "Paella", family.guardian_id)

    todays = client.post("/api/meals/logs", json={"meal_type": "LUNCH", "dish_id": log["dish_id"]}, headers=guardian)
    assert todays.json()["day"] == today("UTC")

    missing_type = client.post("/api/meals/logs", json={"dish_name": "Paella"}, headers=learner)
    assert missing_type.status_code == 400
    assert "BREAKFAST, LUNCH, or DINNER" in missing_type.json()["detail"]

    in_april = client.get("/api/meals/logs", params={"start": "2026-04-01", "end": "2026-04-30"}, headers=guardian)
    assert [item["id"] for item in in_april.json()] == [log["id"]]

    patched = client.patch(f"/api/meals/logs/{log['id']}", json={"cooked_by_id": ""}, headers=learner)
    assert patched.status_code == 200
    assert patched.json()["cooked_by_id"] is None
    assert client.delete(f"/api/meals/logs/{log['id']}", headers=_as(family.sibling_id)).status_code == 403
    assert client.delete(f"/api/meals/logs/{log['id']}", headers=guardian).status_code == 204


def test_daily_meal_journal_endpoints(client, family) -> None:
    guardian = _as(family.guardian_id)

    only_start = client.get("/api/meals/daily", params={"start": "2026-04-01"}, headers=guardian)
    assert only_start.status_code == 400
    assert only_start.json()["detail"] == "start and end date parameters are required"
    assert client.get("/api/meals/daily", params={"end": "2026-04-30"}, headers=guardian).status_code == 400
    assert client.get("/api/meals/daily", headers=guardian).status_code == 400

    saved = client.put(
        "/api/meals/daily/2026-04-12",
        json={
            "notes": "Picnic",
            "meals": [{"meal_type": "lunch", "dishes": [{"dish_name": "Sandwiches"}]}],
            "daily_items": ["lemonade"],
        },
        headers=_as(family.learner_id),
    )
    assert saved.status_code == 200
    assert saved.json()["meals"][0]["dishes"][0] == {"dish_id": None, "dish_name": "Sandwiches", "is_free_form": True}

    month = client.get("/api/meals/daily", params={"start": "2026-04-01", "end": "2026-04-30"}, headers=guardian)
    assert [(day["day"], day["notes"]) for day in month.json()] == [("2026-04-12", "Picnic")]
    assert client.put("/api/meals/daily/12-04-2026", json={}, headers=guardian).status_code == 400


def test_badge_template_endpoints(client, family) -> None:
    guardian = _as(family.guardian_id)
    chore = client.post("/api/chores", json={"title": "Feed cat", "default_points": 1}, headers=guardian).json()

    styled = client.post(
        "/api/badge-templates",
        json={"type": "chore_level", "chore_id": chore["id"], "icon": "🐈", "image_ref": "img://cat"},
        headers=guardian,
    )
    assert styled.status_code == 201
    assert styled.json()["chore_title"] == "Feed cat"
    duplicate = client.post(
        "/api/badge-templates", json={"type": "chore_level", "chore_id": chore["id"]}, headers=guardian
    )
    assert duplicate.status_code == 409
    assert client.post("/api/badge-templates", json={"type": "sticker"}, headers=guardian).status_code == 400
    assert client.post("/api/badge-templates", json={"type": "custom"}, headers=guardian).status_code == 400
    assert (
        client.post("/api/badge-templates", json={"type": "chore_level", "chore_id": "nope"}, headers=guardian)
        .status_code
        == 404
    )
    assert client.get("/api/badge-templates", headers=_as(family.learner_id)).status_code == 403

    client.post(f"/api/chores/{chore['id']}/log", json={"learner_id": family.learner_id}, headers=guardian)
    book = client.get("/api/badges", headers=_as(family.learner_id)).json()
    assert book["chore_badges"][0]["custom_icon"] == "🐈"
    assert book["chore_badges"][0]["custom_image_ref"] == "img://cat"

    template_id = styled.json()["id"]
    paused = client.put(f"/api/badge-templates/{template_id}", json={"is_active": False}, headers=guardian)
    assert paused.json()["is_active"] is False
    assert paused.json()["icon"] == "🐈"
    book = client.get("/api/badges", headers=_as(family.learner_id)).json()
    assert book["chore_badges"][0]["custom_icon"] is None

    assert client.delete(f"/api/badge-templates/{template_id}", headers=guardian).status_code == 204
    assert client.get("/api/badge-templates", headers=guardian).json() == []



def test_milestone_endpoints(client, family) -> None:
    guardian = _as(family.guardian_id)
    created = client.post(
        "/api/household/milestones",
        json={"learner_id": family.learner_id, "title": "Swam a length", "achieved_on": "2026-08-14"},
        headers=guardian,
    )
    assert created.status_code == 201
    milestone_id = created.json()["id"]

    own = client.get("/api/household/milestones", headers=_as(family.learner_id)).json()
    assert [item["title"] for item in own] == ["Swam a length"]
    sibling = client.get("/api/household/milestones", headers=_as(family.sibling_id)).json()
    assert sibling == []

    patched = client.patch(f"/api/household/milestones/{milestone_id}", json={"icon": "🏊"}, headers=guardian)
    assert patched.json()["icon"] == "🏊"
    assert client.delete(f"/api/household/milestones/{milestone_id}", headers=guardian).status_code == 204
