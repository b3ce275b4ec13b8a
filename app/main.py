from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from pydantic import BaseModel

from edd.parser import PARSER_VERSION


class HealthResponse(BaseModel):
    status: str
    parser_version: str


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.
    """

    from db.config import has_database_url

    errors: list[str] = []

    if not has_database_url():
        errors.append(
            "No database URL configured. Set DATABASE_URL, LOCAL_DATABASE_URL or CLOUD_DATABASE_URL. "
            "Lab data import requires PostgreSQL."
        )

    storage_root = os.getenv("EDD_STORAGE_ROOT")
    if storage_root is not None and not storage_root.strip():
        errors.append("EDD_STORAGE_ROOT is set but empty. Unset it or point it at the upload directory.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_database() -> None:
    """
    Abort startup when PostgreSQL is unreachable or a lab data table is missing.

    Does NOT auto-migrate; run 'alembic upgrade head' first. An empty
    parameters table only warns, since every row would then parse without a
    parameter_id.
    """
    from sqlalchemy import func, inspect as sa_inspect, select

    import db.models  # noqa: F401
    from db.base import Base
    from db.models.reference import Parameter
    from db.session import session_scope

    logger = logging.getLogger(__name__)
    try:
        with session_scope() as db:
            present = set(sa_inspect(db.get_bind()).get_table_names())
            missing = sorted(set(Base.metadata.tables) - present)
            parameter_count = 0 if missing else db.scalar(select(func.count()).select_from(Parameter))
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc

    if missing:
        logger.critical("Schema mismatch missing_tables=%s. Run 'alembic upgrade head' and restart.", missing)
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(missing)}). Run migrations and restart."
        )
    if not parameter_count:
        logger.warning("parameters table is empty; EDD rows will import without parameter ids")
    logger.info("Database schema validated parameters=%s", parameter_count)


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _check_database()
    logging.getLogger(__name__).info("Lab EDD API ready parser_version=%s", PARSER_VERSION)
    yield



def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Lab EDD Ingestion API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import lab_data_router

    application.include_router(lab_data_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        return HealthResponse(status="ok", parser_version=PARSER_VERSION)

    return application


app = create_app()
