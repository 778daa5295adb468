from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from familyhub.config import Settings
from familyhub.db.models import AccountModel, HouseholdModel
from familyhub.db.session import Database
from familyhub.main import create_app
from familyhub.telemetry_pipeline import uninstall_audit_pipeline


@dataclass(frozen=True)
class Family:
    household_id: str
    guardian_id: str
    learner_id: str
    sibling_id: str
    invite_code: str


@pytest.fixture(autouse=True)
def _reset_audit_pipeline() -> Iterator[None]:
    uninstall_audit_pipeline()
    yield
    uninstall_audit_pipeline()


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        FAMILYHUB_DATABASE_URL=f"sqlite:///{tmp_path / 'familyhub.sqlite'}",
        FAMILYHUB_DEFAULT_TIMEZONE="UTC",
    )


@pytest.fixture()
def database(settings: Settings) -> Iterator[Database]:
    db = Database(settings)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def family(database: Database) -> Family:
    with database.session_scope() as session:
        household = HouseholdModel(name="Rivera", invite_code="TESTCODE")
        session.add(household)
        session.flush()
        guardian = AccountModel(name="Pat", role="guardian", household_id=household.id, email="pat@example.com")
        learner = AccountModel(name="Kai", role="learner", household_id=household.id, timezone="UTC")
        sibling = AccountModel(name="Mia", role="learner", household_id=household.id, timezone="UTC")
        session.add_all([guardian, learner, sibling])
        session.flush()
        return Family(
            household_id=household.id,
            guardian_id=guardian.id,
            learner_id=learner.id,
            sibling_id=sibling.id,
            invite_code=household.invite_code,
        )


@pytest.fixture()
def outsider(database: Database) -> str:
    with database.session_scope() as session:
        household = HouseholdModel(name="Okafor", invite_code="OTHERHH2")
        session.add(household)
        session.flush()
        guardian = AccountModel(name="Ada", role="guardian", household_id=household.id)
        session.add(guardian)
        session.flush()
        return guardian.id


@pytest.fixture()
def client(settings: Settings, database: Database) -> Iterator[TestClient]:
    app = create_app(settings, database)
    with TestClient(app) as test_client:
        yield test_client
