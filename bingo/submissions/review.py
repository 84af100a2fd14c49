"""
Review engine: pending -> approved | rejected, exactly once.

Approval marks the tile and appends one "check" audit entry in the same
transaction as the status change. If the board write fails (throttle,
concurrent change, database error) everything is rolled back and the
submission stays pending.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from bingo.board.squares import parse_square
from bingo.core.errors import ConflictError, InvalidStateError, ValidationError
from bingo.progress.service import SOURCE_REVIEW, apply_board_mutation
from bingo.storage.blob import BlobStorage
from bingo.submissions.models import APPROVED, DECISIONS, PENDING, ProofSubmission
from bingo.submissions.store import get_submission

logger = logging.getLogger(__name__)


def review_submission(
    db: Session,
    storage: BlobStorage,
    submission_id: int,
    decision: str,
    manager_id: int,
    new_visit: bool = False,
) -> ProofSubmission:
    if decision not in DECISIONS:
        raise ValidationError('Invalid status. Must be "approved" or "rejected".')

    submission = get_submission(db, submission_id)
    if submission.status != PENDING:
        raise InvalidStateError(f"Submission has already been {submission.status}.")

    square = parse_square(submission.task_field)
    if square is None:
        raise ValidationError(f"Submission refers to an unknown square: {submission.task_field}")

    try:
        # Board first: its reads happen before this transaction takes a write lock.
        if decision == APPROVED:
            apply_board_mutation(
                db, submission.user_id, square, True, manager_id, SOURCE_REVIEW, new_visit=new_visit,
            )

        # Compare-and-set on status closes the double-review race.
        updated = (
            db.query(ProofSubmission)
            .filter(ProofSubmission.id == submission_id, ProofSubmission.status == PENDING)
            .update(
                {
                    ProofSubmission.status: decision,
                    ProofSubmission.reviewed_by: manager_id,
                    ProofSubmission.reviewed_at: datetime.now(timezone.utc),
                },
                synchronize_session=False,
            )
        )
        if updated != 1:
            raise InvalidStateError("Submission has already been reviewed.")

        db.commit()
    except StaleDataError as e:
        db.rollback()
        raise ConflictError("This board was just changed by someone else. Please refresh and try again.") from e
    except Exception:
        db.rollback()
        raise

    db.refresh(submission)
    logger.info("[REVIEW] id=%s user=%s task=%s -> %s by manager=%s",
                submission.id, submission.user_id, submission.task_field, decision, manager_id)

    if decision == APPROVED:
        # Free storage; the approval stands even if this fails.
        try:
            if not storage.delete(submission.image_path):
                logger.warning("[REVIEW] image not deleted for submission=%s path=%s",
                               submission.id, submission.image_path)
        except Exception as e:
            logger.warning("[REVIEW] image delete raised for submission=%s: %r", submission.id, e)

    return submission
