"""
Proof submissions: create, look up, list.

At most one pending/approved submission per (participant, task). Callers
check has_active_submission first to give a friendly message, but the
unique index on proof_submissions is what actually enforces it.
"""
import io
import logging
import time
import uuid
from typing import Optional

from PIL import Image, UnidentifiedImageError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bingo.board.squares import label_for, parse_square
from bingo.core import config
from bingo.core.errors import ConflictError, NotFoundError, ValidationError
from bingo.storage.blob import BlobStorage
from bingo.submissions.models import ACTIVE_STATUSES, APPROVED, PENDING, ProofSubmission

logger = logging.getLogger(__name__)

# Pillow format name for each accepted content type
_PIL_FORMATS = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}


def validate_image(data: Optional[bytes], content_type: Optional[str]) -> str:
    """Check type, size and that the bytes really are that kind of image. Returns the normalized type."""
    if not data:
        raise ValidationError("Please select a task and upload an image.")

    ctype = (content_type or "").split(";")[0].strip().lower()
    if ctype == "image/jpg":
        ctype = "image/jpeg"
    if ctype not in config.ALLOWED_IMAGE_TYPES:
        raise ValidationError("Invalid file type. Please upload a JPEG, PNG, or WebP image.")

    if len(data) > config.MAX_UPLOAD_BYTES:
        raise ValidationError("File size too large. Please upload an image smaller than 5MB.")

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValidationError("The uploaded file is not a readable image.") from e

    if fmt != _PIL_FORMATS[ctype]:
        raise ValidationError("Invalid file type. Please upload a JPEG, PNG, or WebP image.")

    return ctype


def has_active_submission(db: Session, user_id: int, task_field) -> Optional[ProofSubmission]:
    square = parse_square(task_field)
    if square is None:
        return None
    return (
        db.query(ProofSubmission)
        .filter(
            ProofSubmission.user_id == user_id,
            ProofSubmission.task_field == square.value,
            ProofSubmission.status.in_(ACTIVE_STATUSES),
        )
        .order_by(ProofSubmission.created_at.asc(), ProofSubmission.id.asc())
        .first()
    )


def duplicate_message(existing: ProofSubmission) -> str:
    if existing.status == APPROVED:
        return "You have already completed this challenge."
    return "You already have a pending submission for this challenge."


def _discard(storage: BlobStorage, path: str) -> None:
    """Best-effort removal of an uploaded blob whose row was never written."""
    try:
        if not storage.delete(path):
            logger.warning("[SUBMIT] orphaned upload not deleted path=%s", path)
    except Exception as e:
        logger.warning("[SUBMIT] orphaned upload delete raised path=%s: %r", path, e)


def create_submission(
    db: Session,
    storage: BlobStorage,
    user_id: int,
    task_field,
    image_bytes: Optional[bytes],
    content_type: Optional[str],
    message: Optional[str] = None,
    receipt_number: Optional[str] = None,
) -> ProofSubmission:
    """
    Upload the proof image, then write the submission row.

    Everything that can be validated is validated before the upload. If the
    row cannot be written the uploaded image is removed again (best-effort);
    a row without an image is never written.
    """
    square = parse_square(task_field) if task_field else None
    if square is None:
        raise ValidationError("Please select a task and upload an image.")

    ctype = validate_image(image_bytes, content_type)

    existing = has_active_submission(db, user_id, square)
    if existing:
        raise ConflictError(duplicate_message(existing))

    ext = config.ALLOWED_IMAGE_TYPES[ctype]
    path_hint = f"{user_id}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{ext}"
    blob = storage.store(image_bytes, ctype, path_hint)

    submission = ProofSubmission(
        user_id=user_id,
        task_field=square.value,
        task_label=label_for(square),
        message=(message or "").strip() or None,
        receipt_number=(receipt_number or "").strip() or None,
        image_url=blob.public_url,
        image_path=blob.path,
        status=PENDING,
    )

    try:
        db.add(submission)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        _discard(storage, blob.path)
        logger.info("[SUBMIT] duplicate rejected by index user=%s task=%s", user_id, square.value)
        raise ConflictError("You already have a submission for this challenge.") from e
    except Exception:
        db.rollback()
        _discard(storage, blob.path)
        raise

    db.refresh(submission)
    logger.info("[SUBMIT] id=%s user=%s task=%s", submission.id, user_id, square.value)
    return submission


def get_submission(db: Session, submission_id: int) -> ProofSubmission:
    submission = db.query(ProofSubmission).filter(ProofSubmission.id == submission_id).first()
    if not submission:
        raise NotFoundError("Submission not found")
    return submission


def list_pending(db: Session) -> list[ProofSubmission]:
    """Review queue, oldest first."""
    return (
        db.query(ProofSubmission)
        .filter(ProofSubmission.status == PENDING)
        .order_by(ProofSubmission.created_at.asc(), ProofSubmission.id.asc())
        .all()
    )


def list_for_participant(db: Session, user_id: int) -> list[ProofSubmission]:
    """A participant's own history, newest first."""
    return (
        db.query(ProofSubmission)
        .filter(ProofSubmission.user_id == user_id)
        .order_by(ProofSubmission.created_at.desc(), ProofSubmission.id.desc())
        .all()
    )
