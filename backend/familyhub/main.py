import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import JSONResponse

from . import chore_routes, household_routes, learning_routes, meal_routes, points_routes
from .config import Settings, get_settings
from .db.monitoring import get_pool_snapshot
from .db.session import Database, get_database
from .errors import FamilyHubError
from .logging_config import configure_logging
from .telemetry_pipeline import install_audit_pipeline


logger = logging.getLogger(__name__)


async def _handle_domain_error(request: Request, exc: FamilyHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled domain error on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def _handle_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Storage error on %s", request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage temporarily unavailable; retry the request."},
    )


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Assemble the application around one explicitly owned storage handle."""
    settings = settings or get_settings()
    configure_logging(settings)
    database = database or Database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        database.dispose()

    app = FastAPI(title="FamilyHub Backend", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.database = database
    install_audit_pipeline(database)

    app.add_exception_handler(FamilyHubError, _handle_domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _handle_storage_error)  # type: ignore[arg-type]

    @app.get("/healthz")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/healthz/database")
    def database_health(database: Database = Depends(get_database)) -> Dict[str, Any]:
        try:
            engine = database.engine
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except (RuntimeError, SQLAlchemyError) as exc:
            logger.warning("Database health check failed: %s", exc)
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
        return {
            "status": "ok",
            "dialect": engine.dialect.name,
            "pool": get_pool_snapshot(engine),
        }

    app.include_router(household_routes.router)
    app.include_router(learning_routes.router)
    app.include_router(points_routes.router)
    app.include_router(chore_routes.router)
    app.include_router(meal_routes.router)

    logger.info("Backend configured (default timezone %s)", settings.default_timezone)
    return app


app = create_app()
