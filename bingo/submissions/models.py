from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, text

from bingo.db.base import Base, utcnow

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"

ACTIVE_STATUSES = (PENDING, APPROVED)
DECISIONS = (APPROVED, REJECTED)

# Shared by the partial unique index on SQLite and PostgreSQL.
_ACTIVE_WHERE = text("status IN ('pending', 'approved')")


class ProofSubmission(Base):
    __tablename__ = "proof_submissions"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    task_field = Column(String(32), nullable=False)
    task_label = Column(String(255), nullable=False)

    message = Column(Text, nullable=True)
    receipt_number = Column(String(64), nullable=True)

    image_url = Column(String(512), nullable=False)
    image_path = Column(String(512), nullable=False)

    # pending -> approved | rejected, exactly once
    status = Column(String(16), nullable=False, default=PENDING, index=True)

    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=utcnow(), nullable=False)

    __table_args__ = (
        # At most one pending/approved submission per (participant, task).
        Index(
            "uq_active_submission",
            "user_id",
            "task_field",
            unique=True,
            sqlite_where=_ACTIVE_WHERE,
            postgresql_where=_ACTIVE_WHERE,
        ),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "participant_id": self.user_id,
            "task_field": self.task_field,
            "task_label": self.task_label,
            "message": self.message,
            "receipt_number": self.receipt_number,
            "image_url": self.image_url,
            "image_path": self.image_path,
            "status": self.status,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at,
            "created_at": self.created_at,
        }
