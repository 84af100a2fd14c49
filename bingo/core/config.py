"""
Configuration constants for the application.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Load environment variables from .env file if it exists
load_dotenv(dotenv_path=BASE_DIR / ".env")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").strip().lower()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

# Only expose debug routes (including diagnostics) when explicitly enabled.
ENABLE_DEBUG_ROUTES = os.getenv("ENABLE_DEBUG_ROUTES", "0") == "1"

# ======================
# PROOF UPLOADS
# ======================

# Where LocalBlobStorage writes proof images, and the URL prefix they are served under.
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(BASE_DIR / "static" / "uploads")))
PUBLIC_UPLOAD_URL = os.getenv("PUBLIC_UPLOAD_URL", "/static/uploads").rstrip("/")

# Fixed business rule, not configurable.
MAX_UPLOAD_BYTES = 5 * 1024 * 1024

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

# ======================
# MANAGERS
# ======================

# Accounts signing up with one of these emails are created as managers.
# Existing accounts can be promoted with scripts/promote_manager.py.
MANAGER_EMAILS = {
    e.strip().lower()
    for e in os.getenv("MANAGER_EMAILS", "").split(",")
    if e.strip()
}

# Default size of the audit log shown to managers.
PROGRESS_LOG_LIMIT = 50
