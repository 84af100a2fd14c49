"""
Board mutations and the one-tile-per-visit throttle.

Core rules:
  - Every board write (review approval or manager toggle) goes through
    apply_board_mutation: throttle check, field update and audit entry live
    in one place and one transaction.
  - Visit lock is derived, never stored: the newest log entry for the
    participant is a "check" -> locked.
  - Checking a tile (False -> True) while locked raises ThrottleError.
    Unchecking is always allowed and unlocks.
  - The progress row is read FOR UPDATE and carries a version counter, so two
    concurrent writers for the same participant cannot both pass the check.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from bingo.auth.models import User
from bingo.board.squares import Square, parse_square
from bingo.core import config
from bingo.core.errors import ConflictError, NotFoundError, ThrottleError, ValidationError
from bingo.progress.models import CHECK, UNCHECK, Progress, ProgressLog

logger = logging.getLogger(__name__)

SOURCE_REVIEW = "review"
SOURCE_MANUAL = "manual"

THROTTLE_MESSAGE = 'Limit 1 tile per visit. Tap "Start Next Visit" once the guest returns.'


# ---------------------------------------------------------------------------
# READ helpers
# ---------------------------------------------------------------------------

def get_or_create_progress(db: Session, user_id: int) -> Progress:
    """Get the participant's progress row, creating an empty board if missing."""
    progress = db.query(Progress).filter(Progress.user_id == user_id).first()
    if not progress:
        progress = Progress(user_id=user_id)
        db.add(progress)
        db.commit()
        db.refresh(progress)
    return progress


def _locked_progress(db: Session, user_id: int) -> Progress:
    progress = (
        db.query(Progress)
        .filter(Progress.user_id == user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if progress:
        return progress

    # Accounts that were managers at signup (and later demoted) have no board yet.
    if not db.query(User.id).filter(User.id == user_id).first():
        raise NotFoundError("Participant not found")

    progress = Progress(user_id=user_id)
    db.add(progress)
    try:
        db.flush()
    except IntegrityError as e:
        raise ConflictError("This board was just changed by someone else. Please refresh and try again.") from e
    logger.info("[BOARD] created missing progress row user=%s", user_id)
    return progress


def list_logs(db: Session, user_id: int, limit: int = config.PROGRESS_LOG_LIMIT) -> list[ProgressLog]:
    """Audit trail, newest first."""
    return (
        db.query(ProgressLog)
        .filter(ProgressLog.user_id == user_id)
        .order_by(ProgressLog.created_at.desc(), ProgressLog.id.desc())
        .limit(limit)
        .all()
    )


# ---------------------------------------------------------------------------
# VISIT THROTTLE
# ---------------------------------------------------------------------------

def latest_log_entry(db: Session, user_id: int) -> Optional[ProgressLog]:
    return (
        db.query(ProgressLog)
        .filter(ProgressLog.user_id == user_id)
        .order_by(ProgressLog.created_at.desc(), ProgressLog.id.desc())
        .limit(1)
        .first()
    )


def is_locked(db: Session, user_id: int) -> bool:
    latest = latest_log_entry(db, user_id)
    return latest is not None and latest.action == CHECK


def visit_status(db: Session, user_id: int) -> dict:
    latest = latest_log_entry(db, user_id)
    locked = latest is not None and latest.action == CHECK
    return {
        "locked": locked,
        "last_visit_at": latest.created_at if locked else None,
    }


def release_lock(db: Session, user_id: int) -> dict:
    """
    "Start next visit". Writes nothing: the durable lock is whatever the log
    says. The caller opts into the new visit by sending new_visit=True with
    its next check.
    """
    status = visit_status(db, user_id)
    logger.info("[VISIT] release requested user=%s durable_locked=%s", user_id, status["locked"])
    return {**status, "locked": False, "durable_locked": status["locked"]}


# ---------------------------------------------------------------------------
# MUTATIONS
# ---------------------------------------------------------------------------

def apply_board_mutation(
    db: Session,
    user_id: int,
    square: Square,
    value: bool,
    manager_id: Optional[int],
    source: str,
    new_visit: bool = False,
) -> Progress:
    """
    Set one field and append the matching audit entry. Does not commit: the
    caller owns the transaction so it can bundle other writes with this one.
    """
    progress = _locked_progress(db, user_id)
    current = progress.get(square)

    if value and not current and not new_visit and is_locked(db, user_id):
        logger.info("[THROTTLE] refused user=%s field=%s source=%s", user_id, square.value, source)
        raise ThrottleError(THROTTLE_MESSAGE)

    progress.set(square, value)
    progress.updated_at = datetime.now(timezone.utc)
    db.add(ProgressLog(
        user_id=user_id,
        manager_id=manager_id,
        square_field=square.value,
        action=CHECK if value else UNCHECK,
    ))

    try:
        db.flush()
    except StaleDataError as e:
        raise ConflictError("This board was just changed by someone else. Please refresh and try again.") from e

    logger.info(
        "[BOARD] user=%s field=%s %s -> %s by manager=%s source=%s new_visit=%s",
        user_id, square.value, current, value, manager_id, source, new_visit,
    )
    return progress


def toggle_square(
    db: Session,
    user_id: int,
    field,
    manager_id: int,
    new_visit: bool = False,
) -> Progress:
    """Manager flips one tile directly, bypassing submissions."""
    square = parse_square(field)
    if square is None:
        raise ValidationError(f"Unknown square: {field}")

    try:
        progress = _locked_progress(db, user_id)
        progress = apply_board_mutation(
            db, user_id, square, not progress.get(square), manager_id, SOURCE_MANUAL, new_visit=new_visit,
        )
        db.commit()
    except StaleDataError as e:
        db.rollback()
        raise ConflictError("This board was just changed by someone else. Please refresh and try again.") from e
    except Exception:
        db.rollback()
        raise

    db.refresh(progress)
    return progress


def progress_to_dict(progress: Progress) -> dict:
    data = {square.value: progress.get(square) for square in Square}
    data["participant_id"] = progress.user_id
    data["updated_at"] = progress.updated_at
    return data


def log_to_dict(entry: ProgressLog, manager_email: Optional[str] = None) -> dict:
    return {
        "id": entry.id,
        "participant_id": entry.user_id,
        "manager_id": entry.manager_id,
        "manager_email": manager_email,
        "square_field": entry.square_field,
        "action": entry.action,
        "created_at": entry.created_at,
    }
