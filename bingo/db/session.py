from typing import Iterator

from sqlalchemy.orm import Session

from bingo.db.base import SessionLocal


def get_db() -> Iterator[Session]:
    """One session per request; anything left uncommitted is rolled back on close."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
