import logging
import os
from pathlib import Path

from sqlalchemy import DateTime, create_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.sql.expression import FunctionElement

logger = logging.getLogger(__name__)


def _build_database_url() -> str:
    """
    Determine the database URL.

    - Prefer DATABASE_URL from the environment (production).
    - Fallback to a local SQLite file for development.
    - Normalize legacy postgres:// URLs to SQLAlchemy's postgresql+psycopg2://.
    """
    url = os.getenv("DATABASE_URL", "sqlite:///./local.db").strip()

    if url.startswith("postgres://"):
        # SQLAlchemy 2.x expects a driver-qualified URL
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)

    return url


DATABASE_URL = _build_database_url()

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # Needed for SQLite when used with FastAPI in a single process
    connect_args = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, connect_args=connect_args, future=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class utcnow(FunctionElement):
    """
    Store-assigned UTC timestamp with sub-second precision.

    SQLite's CURRENT_TIMESTAMP only has whole seconds, which is too coarse
    for the audit log ordering; there we ask strftime for milliseconds.
    """
    type = DateTime(timezone=True)
    inherit_cache = True


@compiles(utcnow)
def _utcnow_default(element, compiler, **kw):
    return "CURRENT_TIMESTAMP"


@compiles(utcnow, "sqlite")
def _utcnow_sqlite(element, compiler, **kw):
    # padded to six fractional digits so the DateTime type reads microseconds
    return "strftime('%Y-%m-%d %H:%M:%f000', 'now')"


def log_diagnostics() -> None:
    """Helpful DB diagnostics logged once at startup."""
    try:
        url_safe = engine.url.render_as_string(hide_password=True)
        backend = engine.url.get_backend_name()
        logger.info("[DB] Using database backend=%s url=%s", backend, url_safe)

        if backend == "sqlite":
            db_path = Path(engine.url.database or "").resolve()
            exists = db_path.exists()
            size = db_path.stat().st_size if exists else 0
            logger.info("[DB] SQLite path=%s exists=%s size_bytes=%s", db_path, exists, size)
    except Exception as exc:
        # Never crash app on logging
        logger.warning("[DB] Failed to log DB diagnostics: %r", exc)
