"""
Board progress and its audit log.

Progress has exactly one boolean column per Square, so the set of keys is
fixed by the schema. ProgressLog is append-only; the newest row per
participant decides whether the current visit is locked.
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.sql import func

from bingo.board.squares import Square
from bingo.db.base import Base, utcnow

CHECK = "check"
UNCHECK = "uncheck"


class Progress(Base):
    __tablename__ = "progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)

    square_1 = Column(Boolean, nullable=False, default=False)
    square_2 = Column(Boolean, nullable=False, default=False)
    square_3 = Column(Boolean, nullable=False, default=False)
    square_4 = Column(Boolean, nullable=False, default=False)
    square_5 = Column(Boolean, nullable=False, default=False)
    square_6 = Column(Boolean, nullable=False, default=False)
    square_7 = Column(Boolean, nullable=False, default=False)
    square_8 = Column(Boolean, nullable=False, default=False)
    square_9 = Column(Boolean, nullable=False, default=False)
    square_10 = Column(Boolean, nullable=False, default=False)
    square_11 = Column(Boolean, nullable=False, default=False)
    square_12 = Column(Boolean, nullable=False, default=False)
    square_13 = Column(Boolean, nullable=False, default=False)
    square_14 = Column(Boolean, nullable=False, default=False)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Optimistic compare-and-set: every UPDATE checks and bumps this.
    version_id = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    def get(self, square: Square) -> bool:
        return bool(getattr(self, square.value))

    def set(self, square: Square, value: bool) -> None:
        setattr(self, square.value, value)

    def as_dict(self) -> dict[Square, bool]:
        return {square: self.get(square) for square in Square}


class ProgressLog(Base):
    __tablename__ = "progress_logs"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    square_field = Column(String(32), nullable=False)
    action = Column(String(16), nullable=False)  # "check" / "uncheck"

    created_at = Column(DateTime(timezone=True), server_default=utcnow(), nullable=False)

    __table_args__ = (
        Index("ix_progress_logs_user_created", "user_id", "created_at", "id"),
    )
