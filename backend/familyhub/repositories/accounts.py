"""Account and household lookups."""

from __future__ import annotations

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import AccountModel, HouseholdModel


class AccountRepository:
    def get(self, session: Session, account_id: str) -> AccountModel | None:
        if not account_id:
            return None
        return session.get(AccountModel, account_id)

    def get_household(self, session: Session, household_id: str) -> HouseholdModel | None:
        return session.get(HouseholdModel, household_id)

    def by_invite_code(self, session: Session, invite_code: str) -> HouseholdModel | None:
        normalized = invite_code.strip().upper()
        if not normalized:
            return None
        stmt = select(HouseholdModel).where(HouseholdModel.invite_code == normalized)
        return session.execute(stmt).scalar_one_or_none()

    def members(self, session: Session, household_id: str) -> List[AccountModel]:
        stmt = (
            select(AccountModel)
            .where(AccountModel.household_id == household_id)
            .order_by(AccountModel.role, AccountModel.name)
        )
        return list(session.execute(stmt).scalars().all())

    def learners(self, session: Session, household_id: str) -> List[AccountModel]:
        return [member for member in self.members(session, household_id) if member.role == "learner"]


accounts = AccountRepository()

__all__ = ["AccountRepository", "accounts"]
