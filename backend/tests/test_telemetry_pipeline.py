from __future__ import annotations

from sqlalchemy import select

from familyhub.db.models import AuditEventModel
from familyhub.telemetry import emit_event, flush_queued_events, queue_event
from familyhub.telemetry_pipeline import _MONITORED_EVENTS, install_audit_pipeline, uninstall_audit_pipeline


def _audit_rows(database):
    with database.session_scope() as session:
        return list(session.execute(select(AuditEventModel).order_by(AuditEventModel.created_at)).scalars())


def test_monitored_events_persist(database, family) -> None:
    install_audit_pipeline(database)

    emit_event(
        "chore_logged",
        household_id=family.household_id,
        learner_id=family.learner_id,
        chore_id="chore-x",
        points=2,
        actor=family.guardian_id,
    )

    rows = _audit_rows(database)
    assert len(rows) == 1
    assert rows[0].event_type == "chore_logged"
    assert rows[0].payload["chore_id"] == "chore-x"
    assert rows[0].learner_id == family.learner_id
    assert rows[0].actor == family.guardian_id


def test_unmonitored_and_unscoped_events_are_ignored(database, family) -> None:
    install_audit_pipeline(database)
    assert "db_pool_status" not in _MONITORED_EVENTS

    emit_event("db_pool_status", household_id=family.household_id, connects=1)
    emit_event("reward_redeemed", learner_id=family.learner_id)

    assert _audit_rows(database) == []


def test_queued_events_wait_for_flush(database, family) -> None:
    install_audit_pipeline(database)
    with database.session_scope() as session:
        queue_event(session, "learner_added", household_id=family.household_id, learner_id=family.learner_id)
        assert _audit_rows(database) == []
    assert [row.event_type for row in _audit_rows(database)] == ["learner_added"]
    assert _audit_rows(database)[0].actor == "system"


def test_rolled_back_work_emits_nothing(database, family) -> None:
    install_audit_pipeline(database)
    try:
        with database.session_scope() as session:
            queue_event(session, "points_adjusted", household_id=family.household_id, points=3)
            raise RuntimeError("abort")
    except RuntimeError:
        pass
    assert _audit_rows(database) == []


def test_uninstall_stops_persistence(database, family) -> None:
    install_audit_pipeline(database)
    uninstall_audit_pipeline()
    emit_event("chore_logged", household_id=family.household_id)
    assert _audit_rows(database) == []


def test_flush_without_queue_is_a_no_op(database) -> None:
    with database.session_scope() as session:
        flush_queued_events(session)
