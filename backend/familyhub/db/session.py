"""Engine and session helpers for the relational persistence layer."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

from fastapi import Depends, Request
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings
from ..telemetry import discard_queued_events, flush_queued_events
from .monitoring import instrument_engine


def _build_engine(settings: Settings) -> Engine:
    database_url = settings.database_url
    if not database_url:
        raise RuntimeError("FAMILYHUB_DATABASE_URL must be configured before using the database.")

    kwargs: dict[str, object] = {
        "echo": settings.database_echo,
        "future": True,
        "pool_pre_ping": True,
    }

    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"] = settings.database_pool_size
        kwargs["max_overflow"] = settings.database_max_overflow

    engine = create_engine(database_url, **kwargs)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_savepoints(engine)
    return engine


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy issue BEGIN itself so SAVEPOINTs nest inside the real transaction."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(connection) -> None:  # type: ignore[no-untyped-def]
        connection.exec_driver_sql("BEGIN")


class Database:
    """Storage handle owned by the application's composition root.

    The engine is created lazily so an app can be assembled before the
    database is reachable; health checks report the failure instead.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker[Session]] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = _build_engine(self._settings)
            if self._settings.database_telemetry:
                instrument_engine(self._engine)
            self._session_factory = sessionmaker(
                bind=self._engine,
                autoflush=False,
                autocommit=False,
                expire_on_commit=False,
                future=True,
            )
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            self.engine
        assert self._session_factory is not None
        return self._session_factory

    @contextmanager
    def session_scope(self, *, commit: bool = True) -> Generator[Session, None, None]:
        session = self.session_factory()
        try:
            yield session
            if commit:
                session.commit()
                flush_queued_events(session)
        except Exception:  # noqa: BLE001
            session.rollback()
            discard_queued_events(session)
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        from .base import Base
        from . import models  # noqa: F401  register tables

        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_session_dependency(database: Database = Depends(get_database)) -> Generator[Session, None, None]:
    with database.session_scope() as session:
        yield session


__all__ = [
    "Database",
    "get_database",
    "get_session_dependency",
]
