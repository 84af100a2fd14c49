from sqlalchemy import Column, Integer, String, Boolean, DateTime

from bingo.db.base import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    email = Column(String, unique=True, index=True, nullable=False)

    password_hash = Column(String, nullable=False)

    # Managers review submissions and edit boards; everyone else is a participant.
    is_manager = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=utcnow())

    # Track when user was last active (updated on every authenticated request)
    last_active = Column(DateTime(timezone=True), nullable=True)
