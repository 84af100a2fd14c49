"""
Board progress routes.

Participants read their own board; managers look participants up, flip
tiles, start a new visit and read the audit log.
"""
from fastapi import APIRouter, Depends, Form, Query
from sqlalchemy.orm import Session

from bingo.auth.models import User
from bingo.board.layout import build_board
from bingo.core import config
from bingo.core.deps import get_current_user, get_manager
from bingo.core.errors import NotFoundError
from bingo.db.session import get_db
from bingo.progress import service
from bingo.progress.models import Progress
from bingo.submissions.store import list_for_participant

router = APIRouter(tags=["progress"])


def _progress_payload(progress: Progress) -> dict:
    return {
        "progress": service.progress_to_dict(progress),
        "board": [cell.to_dict() for cell in build_board(progress.as_dict())],
    }


def _logs_payload(db: Session, user_id: int, limit: int) -> list[dict]:
    logs = service.list_logs(db, user_id, limit=limit)
    manager_ids = {entry.manager_id for entry in logs if entry.manager_id is not None}
    emails = {}
    if manager_ids:
        emails = {u.id: u.email for u in db.query(User).filter(User.id.in_(manager_ids)).all()}
    return [service.log_to_dict(entry, emails.get(entry.manager_id)) for entry in logs]


def _participant_or_404(db: Session, participant_id: int) -> User:
    participant = (
        db.query(User)
        .filter(User.id == participant_id, User.is_manager.is_(False))
        .first()
    )
    if not participant:
        raise NotFoundError("User not found")
    return participant


@router.get("/progress/me")
def my_progress(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    progress = db.query(Progress).filter(Progress.user_id == user.id).first()
    if not progress:
        return {"progress": None, "board": [cell.to_dict() for cell in build_board(None)]}
    return _progress_payload(progress)


@router.get("/participants")
def find_participant(
    email: str = Query(...),
    db: Session = Depends(get_db),
    manager: User = Depends(get_manager),
):
    """Manager lookup by email: board, visit state, recent log and submission history."""
    participant = (
        db.query(User)
        .filter(User.email == email.strip().lower(), User.is_manager.is_(False))
        .first()
    )
    if not participant:
        raise NotFoundError("User not found")

    progress = service.get_or_create_progress(db, participant.id)
    submissions = list_for_participant(db, participant.id)
    reviewer_ids = {s.reviewed_by for s in submissions if s.reviewed_by is not None}
    reviewers = {}
    if reviewer_ids:
        reviewers = {u.id: u.email for u in db.query(User).filter(User.id.in_(reviewer_ids)).all()}

    history = []
    for s in submissions:
        data = s.to_dict()
        data["reviewed_by_email"] = reviewers.get(s.reviewed_by)
        history.append(data)

    return {
        "participant": {"id": participant.id, "email": participant.email},
        **_progress_payload(progress),
        "visit": service.visit_status(db, participant.id),
        "logs": _logs_payload(db, participant.id, config.PROGRESS_LOG_LIMIT),
        "submissions": history,
    }


@router.get("/progress/{participant_id}")
def participant_progress(
    participant_id: int,
    db: Session = Depends(get_db),
    manager: User = Depends(get_manager),
):
    _participant_or_404(db, participant_id)
    progress = service.get_or_create_progress(db, participant_id)
    return {**_progress_payload(progress), "visit": service.visit_status(db, participant_id)}


@router.post("/progress/{participant_id}/toggle")
def toggle(
    participant_id: int,
    field: str = Form(...),
    new_visit: bool = Form(False),
    db: Session = Depends(get_db),
    manager: User = Depends(get_manager),
):
    _participant_or_404(db, participant_id)
    progress = service.toggle_square(db, participant_id, field, manager.id, new_visit=new_visit)
    return {**_progress_payload(progress), "visit": service.visit_status(db, participant_id)}


@router.post("/progress/{participant_id}/release-lock")
def release_lock(
    participant_id: int,
    db: Session = Depends(get_db),
    manager: User = Depends(get_manager),
):
    _participant_or_404(db, participant_id)
    return service.release_lock(db, participant_id)


@router.get("/progress-log/{participant_id}")
def progress_log(
    participant_id: int,
    limit: int = Query(config.PROGRESS_LOG_LIMIT, ge=1, le=500),
    db: Session = Depends(get_db),
    manager: User = Depends(get_manager),
):
    _participant_or_404(db, participant_id)
    return {"logs": _logs_payload(db, participant_id, limit)}
