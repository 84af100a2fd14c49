from pathlib import Path

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from bingo.auth.models import User
from bingo.core import config
from bingo.db.base import engine
from bingo.db.session import get_db
from bingo.progress.models import ProgressLog
from bingo.submissions.models import ProofSubmission

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/diagnostics/db")
def db_diagnostics(db: Session = Depends(get_db)):
    """
    Lightweight DB diagnostics for debugging deployments.

    Only mounted when ENABLE_DEBUG_ROUTES=1. Avoids leaking secrets while
    still being useful.
    """
    url = engine.url
    backend = url.get_backend_name()

    info = {
        "backend": backend,
        "url": url.render_as_string(hide_password=True),
        "users": db.query(func.count(User.id)).scalar(),
        "progress_logs": db.query(func.count(ProgressLog.id)).scalar(),
        "submissions_by_status": dict(
            db.query(ProofSubmission.status, func.count(ProofSubmission.id))
            .group_by(ProofSubmission.status)
            .all()
        ),
    }

    if backend == "sqlite":
        db_path = Path(url.database or "").resolve()
        exists = db_path.exists()
        info.update(
            {
                "sqlite_path": str(db_path),
                "sqlite_exists": exists,
                "sqlite_size_bytes": db_path.stat().st_size if exists else 0,
            }
        )
    else:
        info.update({"database": url.database, "host": url.host})

    return info


@router.get("/diagnostics/storage")
def storage_diagnostics():
    upload_dir = Path(config.UPLOAD_DIR)
    files = [p for p in upload_dir.rglob("*") if p.is_file()] if upload_dir.exists() else []
    return {
        "upload_dir": str(upload_dir.resolve()),
        "exists": upload_dir.exists(),
        "files": len(files),
        "bytes": sum(p.stat().st_size for p in files),
    }
