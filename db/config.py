"""
db/config.py

Database URL resolution for the API process, background tasks and Alembic.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})


class DatabaseConfigError(RuntimeError):
    """Raised when no PostgreSQL URL can be resolved from the environment."""


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    if line.startswith("export "):
        line = line[len("export "):]
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files(project_root: Path | None = None) -> None:
    """
    Load KEY=VALUE pairs from `.env` then `.env.local` under the project root.

    Variables already present in the process environment win.
    """

    root = project_root or PROJECT_ROOT
    for filename in ENV_FILES:
        env_path = root / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_postgres_url(url: str) -> str:
    """
    Point bare postgres URLs at the psycopg 3 driver.
    """

    url = url.strip()
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def _database_url_from_env() -> str | None:
    direct_url = os.getenv("DATABASE_URL", "").strip()
    if direct_url:
        return direct_url

    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    cloud_url = os.getenv("CLOUD_DATABASE_URL", "").strip()
    if environment in CLOUD_ENVIRONMENTS and cloud_url:
        return cloud_url

    return os.getenv("LOCAL_DATABASE_URL", "").strip() or None


def has_database_url() -> bool:
    load_env_files()
    return _database_url_from_env() is not None


def resolve_database_url() -> str:
    """
    Resolve the lab data database URL.

    Priority:
    1) DATABASE_URL
    2) CLOUD_DATABASE_URL when ENVIRONMENT is prod/production/staging/cloud
    3) LOCAL_DATABASE_URL
    """

    load_env_files()
    url = _database_url_from_env()
    if url is None:
        raise DatabaseConfigError(
            "No database URL configured. Set DATABASE_URL, or configure "
            "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
        )
    return normalize_postgres_url(url)


def _env_int(name: str, default: int) -> int:
    raw_value = os.getenv(name, "").strip()
    try:
        return int(raw_value) if raw_value else default
    except ValueError:
        return default


@dataclass(frozen=True)
class EngineSettings:
    """
    Pool and driver options for the lab data engine.
    """

    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle_seconds: int = 1800
    statement_timeout_ms: int = 60_000
    application_name: str = "lab-edd-ingestion"

    def connect_args(self) -> dict[str, str]:
        # libpq startup options; 0 disables the timeout.
        options = f"-c statement_timeout={self.statement_timeout_ms}"
        return {"application_name": self.application_name, "options": options}


def load_engine_settings() -> EngineSettings:
    url = resolve_database_url()
    if not url.startswith("postgresql"):
        raise DatabaseConfigError("Only PostgreSQL URLs are supported.")
    return EngineSettings(
        url=url,
        echo=os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
        pool_size=max(1, _env_int("DB_POOL_SIZE", 5)),
        max_overflow=max(0, _env_int("DB_MAX_OVERFLOW", 10)),
        pool_recycle_seconds=_env_int("DB_POOL_RECYCLE", 1800),
        statement_timeout_ms=max(0, _env_int("DB_STATEMENT_TIMEOUT_MS", 60_000)),
    )
