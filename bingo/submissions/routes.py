from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from bingo.auth.models import User
from bingo.core.deps import get_current_user, get_manager, is_manager
from bingo.core.errors import AuthorizationError, ConflictError, ValidationError
from bingo.db.session import get_db
from bingo.notifications.notices import (
    SUBMISSION_CREATED,
    SUBMISSION_REVIEWED,
    NotificationSender,
    build_notice,
    deliver,
    get_sender,
)
from bingo.storage.blob import BlobStorage, get_storage
from bingo.submissions import store
from bingo.submissions.models import PENDING, ProofSubmission
from bingo.submissions.review import review_submission

router = APIRouter(prefix="/submissions", tags=["submissions"])


def _emails(db: Session, ids) -> dict:
    ids = {i for i in ids if i is not None}
    if not ids:
        return {}
    return {u.id: u.email for u in db.query(User).filter(User.id.in_(ids)).all()}


def _with_emails(db: Session, submissions: list[ProofSubmission]) -> list[dict]:
    emails = _emails(db, [s.user_id for s in submissions] + [s.reviewed_by for s in submissions])
    result = []
    for s in submissions:
        data = s.to_dict()
        data["participant_email"] = emails.get(s.user_id)
        data["reviewed_by_email"] = emails.get(s.reviewed_by)
        result.append(data)
    return result


# ======================================================
# SUBMIT PROOF
# ======================================================
@router.post("", status_code=201)
def submit_proof(
    background_tasks: BackgroundTasks,
    task_field: str = Form(...),
    message: Optional[str] = Form(None),
    receipt_number: Optional[str] = Form(None),
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
    sender: NotificationSender = Depends(get_sender),
    user: User = Depends(get_current_user),
):
    # Friendly message first; the unique index still has the final say.
    existing = store.has_active_submission(db, user.id, task_field)
    if existing:
        raise ConflictError(store.duplicate_message(existing))

    data = image.file.read()
    submission = store.create_submission(
        db,
        storage,
        user.id,
        task_field,
        data,
        image.content_type,
        message=message,
        receipt_number=receipt_number,
    )

    background_tasks.add_task(deliver, sender, build_notice(submission, user.email, SUBMISSION_CREATED))
    return submission.to_dict()


# ======================================================
# REVIEW QUEUE (MANAGERS)
# ======================================================
@router.get("")
def list_submissions(
    status: str = Query(PENDING),
    db: Session = Depends(get_db),
    manager: User = Depends(get_manager),
):
    if status != PENDING:
        raise ValidationError("Only the pending review queue can be listed.")
    return {"submissions": _with_emails(db, store.list_pending(db))}


@router.get("/mine")
def my_submissions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {"submissions": _with_emails(db, store.list_for_participant(db, user.id))}


@router.get("/active/{task_field}")
def active_submission(
    task_field: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    existing = store.has_active_submission(db, user.id, task_field)
    return {"submission": existing.to_dict() if existing else None}


@router.get("/{submission_id}")
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    submission = store.get_submission(db, submission_id)
    if submission.user_id != user.id and not is_manager(user):
        raise AuthorizationError("You can only view your own submissions.")
    return _with_emails(db, [submission])[0]


@router.post("/{submission_id}/review")
def review(
    submission_id: int,
    background_tasks: BackgroundTasks,
    decision: str = Form(...),
    new_visit: bool = Form(False),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
    sender: NotificationSender = Depends(get_sender),
    manager: User = Depends(get_manager),
):
    submission = review_submission(db, storage, submission_id, decision, manager.id, new_visit=new_visit)

    participant = db.query(User).filter(User.id == submission.user_id).first()
    if participant:
        background_tasks.add_task(deliver, sender, build_notice(submission, participant.email, SUBMISSION_REVIEWED))

    return submission.to_dict()
