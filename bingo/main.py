import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from bingo.core import config
from bingo.core.errors import register_error_handlers
from bingo.db.base import Base, engine, log_diagnostics

# Import models so create_all picks them up
from bingo.auth.models import User  # noqa: F401
from bingo.progress.models import Progress, ProgressLog  # noqa: F401
from bingo.submissions.models import ProofSubmission  # noqa: F401

from bingo.auth.routes import router as auth_router
from bingo.board.routes import router as board_router
from bingo.progress.routes import router as progress_router
from bingo.submissions.routes import router as submission_router
from bingo.web.debug_routes import router as debug_router

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Bingo Promo", version="0.1.0")

register_error_handlers(app)

# Proof images from LocalBlobStorage are served from here
config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount(config.PUBLIC_UPLOAD_URL, StaticFiles(directory=str(config.UPLOAD_DIR)), name="uploads")

if config.ENABLE_DEBUG_ROUTES:
    app.include_router(debug_router)

log_diagnostics()

# Create database tables (still useful in dev; in production prefer Alembic)
Base.metadata.create_all(bind=engine)

app.include_router(auth_router)
app.include_router(board_router)
app.include_router(submission_router)
app.include_router(progress_router)


@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok"}
