"""Telemetry listener that persists household events for the activity feed."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Set

from .db.session import Database
from .repositories.audit_log import audit_log
from .telemetry import TelemetryEvent, register_listener, unregister_listener

logger = logging.getLogger(__name__)

_MONITORED_EVENTS: Set[str] = {
    "math_reward_granted",
    "sight_word_reward_granted",
    "chore_logged",
    "badge_level_up",
    "achievement_earned",
    "reward_redeemed",
    "points_adjusted",
    "points_entry_deleted",
    "household_joined",
    "learner_added",
}

_installed: Optional[Callable[[TelemetryEvent], None]] = None


def _persist_event(database: Database, event: TelemetryEvent) -> None:
    if event.name not in _MONITORED_EVENTS:
        return
    household_id = event.payload.get("household_id")
    if not isinstance(household_id, str) or not household_id.strip():
        return
    learner_id = event.payload.get("learner_id")
    actor = event.payload.get("actor")
    try:
        with database.session_scope() as session:
            audit_log.record(
                session,
                event_type=event.name,
                payload=event.payload,
                household_id=household_id,
                learner_id=learner_id if isinstance(learner_id, str) else None,
                actor=actor if isinstance(actor, str) else None,
            )
    except Exception:  # noqa: BLE001
        logger.exception("Failed to persist telemetry event %s for household=%s", event.name, household_id)


def install_audit_pipeline(database: Database) -> Callable[[TelemetryEvent], None]:
    """Route monitored events into ``audit_events`` of ``database``.

    Only one pipeline is active per process; installing again replaces it.
    """
    global _installed
    if _installed is not None:
        unregister_listener(_installed)

    def listener(event: TelemetryEvent) -> None:
        _persist_event(database, event)

    register_listener(listener)
    _installed = listener
    return listener


def uninstall_audit_pipeline() -> None:
    global _installed
    if _installed is not None:
        unregister_listener(_installed)
        _installed = None


__all__ = ["_MONITORED_EVENTS", "install_audit_pipeline", "uninstall_audit_pipeline"]
