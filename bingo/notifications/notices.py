"""
Data for participant/manager emails.

The core only composes what a message needs; delivery belongs to whatever
NotificationSender the application wires in. The default sender just logs.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from bingo.submissions.models import ProofSubmission

logger = logging.getLogger(__name__)

SUBMISSION_CREATED = "submission_created"
SUBMISSION_REVIEWED = "submission_reviewed"


@dataclass(frozen=True)
class Notice:
    event: str
    to: str
    submission_id: int
    task_label: str
    decision: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def build_notice(submission: ProofSubmission, participant_email: str, event: str) -> Notice:
    return Notice(
        event=event,
        to=participant_email,
        submission_id=submission.id,
        task_label=submission.task_label,
        decision=submission.status if event == SUBMISSION_REVIEWED else None,
    )


class NotificationSender:
    def send(self, notice: Notice) -> None:
        raise NotImplementedError


class LoggingSender(NotificationSender):
    def send(self, notice: Notice) -> None:
        logger.info("[NOTIFY] %s to=%s submission=%s task='%s' decision=%s",
                    notice.event, notice.to, notice.submission_id, notice.task_label, notice.decision)


_sender: NotificationSender = LoggingSender()


def get_sender() -> NotificationSender:
    return _sender


def deliver(sender: NotificationSender, notice: Notice) -> None:
    """Background task body: a failed notification never fails the request that queued it."""
    try:
        sender.send(notice)
    except Exception as e:
        logger.warning("[NOTIFY] delivery failed event=%s to=%s: %r", notice.event, notice.to, e)
