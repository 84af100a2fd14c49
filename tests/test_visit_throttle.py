import pytest

from bingo.core.errors import NotFoundError, ThrottleError, ValidationError
from bingo.db.base import SessionLocal
from bingo.progress import service
from bingo.progress.models import CHECK, UNCHECK, Progress, ProgressLog


def _progress(db, user):
    db.expire_all()
    return db.query(Progress).filter(Progress.user_id == user.id).one()


def test_fresh_participant_is_unlocked(db, participant):
    assert service.is_locked(db, participant.id) is False
    assert service.visit_status(db, participant.id) == {"locked": False, "last_visit_at": None}


def test_check_locks_and_uncheck_unlocks(db, participant, manager):
    service.toggle_square(db, participant.id, "square_1", manager.id)
    status = service.visit_status(db, participant.id)
    assert status["locked"] is True
    assert status["last_visit_at"] is not None

    service.toggle_square(db, participant.id, "square_1", manager.id)
    assert service.is_locked(db, participant.id) is False
    assert _progress(db, participant).square_1 is False


def test_locked_participant_cannot_get_second_tile(db, participant, manager):
    """square_1 checked this visit: checking square_2 fails and nothing changes."""
    service.toggle_square(db, participant.id, "square_1", manager.id)

    with pytest.raises(ThrottleError):
        service.toggle_square(db, participant.id, "square_2", manager.id)

    progress = _progress(db, participant)
    assert progress.square_1 is True
    assert progress.square_2 is False
    assert db.query(ProgressLog).filter(ProgressLog.user_id == participant.id).count() == 1


def test_uncheck_then_check_another(db, participant, manager):
    service.toggle_square(db, participant.id, "square_1", manager.id)

    service.toggle_square(db, participant.id, "square_1", manager.id)
    service.toggle_square(db, participant.id, "square_2", manager.id)

    logs = service.list_logs(db, participant.id)
    assert [(entry.action, entry.square_field) for entry in logs] == [
        (CHECK, "square_2"),
        (UNCHECK, "square_1"),
        (CHECK, "square_1"),
    ]
    assert service.latest_log_entry(db, participant.id).action == CHECK
    progress = _progress(db, participant)
    assert progress.square_1 is False
    assert progress.square_2 is True


def test_unchecking_is_allowed_while_locked(db, participant, manager):
    service.toggle_square(db, participant.id, "square_1", manager.id)
    service.toggle_square(db, participant.id, "square_4", manager.id, new_visit=True)

    # locked by square_4, but taking square_1 away is always fine
    service.toggle_square(db, participant.id, "square_1", manager.id)

    assert service.is_locked(db, participant.id) is False


def test_release_lock_is_advisory_only(db, participant, manager):
    service.toggle_square(db, participant.id, "square_1", manager.id)

    released = service.release_lock(db, participant.id)

    assert released["locked"] is False
    assert released["durable_locked"] is True
    # nothing written: the log still says locked
    assert service.is_locked(db, participant.id) is True
    assert db.query(ProgressLog).count() == 1
    with pytest.raises(ThrottleError):
        service.toggle_square(db, participant.id, "square_2", manager.id)


def test_new_visit_allows_exactly_one_more_tile(db, participant, manager):
    service.toggle_square(db, participant.id, "square_1", manager.id)

    service.toggle_square(db, participant.id, "square_2", manager.id, new_visit=True)

    with pytest.raises(ThrottleError):
        service.toggle_square(db, participant.id, "square_3", manager.id)


def test_toggle_rejects_unknown_square(db, participant, manager):
    with pytest.raises(ValidationError):
        service.toggle_square(db, participant.id, "square_0", manager.id)


def test_toggle_unknown_participant(db, manager):
    with pytest.raises(NotFoundError):
        service.toggle_square(db, 4242, "square_1", manager.id)
    assert db.query(Progress).count() == 0


def test_toggle_creates_missing_board(db, make_user, manager):
    """Accounts without a progress row (e.g. demoted managers) get an empty board on first write."""
    former = make_user("former@example.com", manager=True)
    former.is_manager = False
    db.commit()

    service.toggle_square(db, former.id, "square_2", manager.id)

    progress = _progress(db, former)
    assert progress.square_2 is True
    assert progress.square_1 is False
    assert service.is_locked(db, former.id)


def test_revoking_manager_creates_board(db, manager):
    from scripts.promote_manager import set_manager

    assert set_manager("Manager@example.com", value=False) is True

    db.expire_all()
    assert _progress(db, manager).square_1 is False
    # promote again and revoke again: still one row
    assert set_manager("manager@example.com") is True
    assert set_manager("manager@example.com", value=False) is True
    assert db.query(Progress).filter(Progress.user_id == manager.id).count() == 1


def test_toggle_bumps_version_and_updated_at(db, participant, manager):
    before = _progress(db, participant).version_id

    service.toggle_square(db, participant.id, "square_6", manager.id)

    progress = _progress(db, participant)
    assert progress.version_id == before + 1
    assert progress.updated_at is not None


def test_second_session_sees_lock_from_first(db, participant, manager):
    """Two requests for the same participant: the later one observes the earlier check."""
    other = SessionLocal()
    try:
        service.toggle_square(db, participant.id, "square_1", manager.id)
        with pytest.raises(ThrottleError):
            service.toggle_square(other, participant.id, "square_2", manager.id)
    finally:
        other.close()

    assert _progress(db, participant).square_2 is False


def test_list_logs_limit(db, participant, manager):
    for _ in range(4):
        service.toggle_square(db, participant.id, "square_9", manager.id)
    assert len(service.list_logs(db, participant.id, limit=3)) == 3
    assert len(service.list_logs(db, participant.id)) == 4


def test_progress_keys_are_exactly_the_squares(db, participant):
    data = service.progress_to_dict(_progress(db, participant))
    squares = {k for k in data if k.startswith("square_")}
    assert squares == {f"square_{i}" for i in range(1, 15)}
