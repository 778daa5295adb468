"""Lightweight telemetry helpers for backend instrumentation."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import Any, Callable, Dict, List

from sqlalchemy.orm import Session

logger = logging.getLogger("familyhub.telemetry")

_PENDING_KEY = "familyhub.pending_events"


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]


_listeners: List[Callable[[TelemetryEvent], None]] = []
_lock = RLock()


def register_listener(listener: Callable[[TelemetryEvent], None]) -> None:
    """Register an in-process listener (used by the audit pipeline and tests)."""
    with _lock:
        _listeners.append(listener)


def unregister_listener(listener: Callable[[TelemetryEvent], None]) -> None:
    with _lock:
        if listener in _listeners:
            _listeners.remove(listener)


def clear_listeners() -> None:
    """Remove all registered listeners. Mainly used to reset test state."""
    with _lock:
        _listeners.clear()


def emit_event(name: str, **fields: Any) -> None:
    """Emit a structured telemetry event and fan it out to listeners."""
    payload = _sanitize(fields)
    event = TelemetryEvent(name=name, payload=payload)

    with _lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    structured = {"event": name, **payload}
    logger.info("TELEMETRY %s", json.dumps(structured, default=_json_default))


def queue_event(session: Session, name: str, **fields: Any) -> None:
    """Hold an event until the session's transaction commits.

    Listeners may open their own transactions, so events describing
    uncommitted writes are never fanned out early.
    """
    session.info.setdefault(_PENDING_KEY, []).append((name, fields))


def flush_queued_events(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, [])
    for name, fields in pending:
        emit_event(name, **fields)


def discard_queued_events(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)


def _sanitize(fields: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, datetime):
            sanitized[key] = value.isoformat()
        else:
            sanitized[key] = value
    return sanitized


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


__all__ = [
    "TelemetryEvent",
    "clear_listeners",
    "discard_queued_events",
    "emit_event",
    "flush_queued_events",
    "queue_event",
    "register_listener",
    "unregister_listener",
]
