"""Append-only point ledger shared by every reward path."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db.models import PointEntryModel


class PointLedgerRepository:
    """Writes and aggregates ``point_entries`` rows inside the caller's transaction."""

    def credit(
        self,
        session: Session,
        *,
        household_id: str,
        learner_id: str,
        points: int,
        note: str,
        granted_by: Optional[str],
        chore_id: Optional[str] = None,
        reward_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> PointEntryModel:
        entry = PointEntryModel(
            household_id=household_id,
            learner_id=learner_id,
            points=points,
            note=note,
            chore_id=chore_id,
            reward_id=reward_id,
            created_by_id=granted_by,
        )
        if created_at is not None:
            entry.created_at = created_at
        session.add(entry)
        session.flush([entry])
        return entry

    def balance(self, session: Session, learner_id: str) -> int:
        stmt = select(func.coalesce(func.sum(PointEntryModel.points), 0)).where(
            PointEntryModel.learner_id == learner_id
        )
        return int(session.execute(stmt).scalar_one())

    def entries(
        self,
        session: Session,
        learner_id: str,
        *,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[PointEntryModel]:
        stmt = select(PointEntryModel).where(PointEntryModel.learner_id == learner_id)
        if since is not None:
            stmt = stmt.where(PointEntryModel.created_at >= since)
        stmt = stmt.order_by(PointEntryModel.created_at.desc(), PointEntryModel.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(session.execute(stmt).scalars().all())

    def household_entries(self, session: Session, household_id: str, *, limit: int = 100) -> Sequence[PointEntryModel]:
        stmt = (
            select(PointEntryModel)
            .where(PointEntryModel.household_id == household_id)
            .order_by(PointEntryModel.created_at.desc())
            .limit(limit)
        )
        return session.execute(stmt).scalars().all()

    def get(self, session: Session, entry_id: str) -> PointEntryModel | None:
        return session.get(PointEntryModel, entry_id)

    def delete(self, session: Session, entry: PointEntryModel) -> None:
        session.delete(entry)
        session.flush()


point_ledger = PointLedgerRepository()

__all__ = ["PointLedgerRepository", "point_ledger"]
