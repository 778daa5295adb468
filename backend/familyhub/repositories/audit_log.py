"""Audit trail of notable household events."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import AuditEventModel


class AuditLogRepository:
    def record(
        self,
        session: Session,
        *,
        event_type: str,
        payload: Dict[str, Any],
        household_id: Optional[str] = None,
        learner_id: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> AuditEventModel:
        event = AuditEventModel(
            household_id=household_id,
            learner_id=learner_id,
            event_type=event_type,
            payload=payload,
            actor=actor or "system",
        )
        session.add(event)
        return event

    def recent(self, session: Session, household_id: str, *, limit: int = 50) -> List[AuditEventModel]:
        stmt = (
            select(AuditEventModel)
            .where(AuditEventModel.household_id == household_id)
            .order_by(AuditEventModel.created_at.desc())
            .limit(limit)
        )
        return list(session.execute(stmt).scalars())


audit_log = AuditLogRepository()

__all__ = ["AuditLogRepository", "audit_log"]
