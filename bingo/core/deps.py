import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bingo.auth.models import User
from bingo.core.errors import AuthorizationError, DependencyError
from bingo.core.security import decode_access_token
from bingo.db.session import get_db

logger = logging.getLogger(__name__)


def _token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get("access_token") or request.headers.get("authorization")
    if not token:
        return None
    # Support both "Bearer <token>" and raw token values.
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    return token or None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    token = _token_from_request(request)
    if not token:
        logger.debug("[AUTH] reject reason=missing_token path=%s", request.url.path)
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = decode_access_token(token)
    if not payload or not str(payload.get("sub", "")).isdigit():
        logger.debug("[AUTH] reject reason=invalid_token path=%s", request.url.path)
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        user = db.query(User).filter(User.id == int(payload["sub"])).first()
    except SQLAlchemyError as e:
        logger.error("[AUTH] identity lookup failed: %r", e)
        raise DependencyError("Could not verify your account right now. Please try again.") from e

    if not user:
        logger.debug("[AUTH] reject reason=user_not_found sub=%s", payload["sub"])
        raise HTTPException(status_code=401, detail="User not found")

    # Update last_active timestamp so managers can see who is around
    try:
        user.last_active = datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError:
        db.rollback()

    return user


def is_manager(user: User) -> bool:
    return bool(user.is_manager)


def get_manager(
    user: User = Depends(get_current_user),
) -> User:
    """Dependency to ensure the user is a manager."""
    if not is_manager(user):
        raise AuthorizationError("Manager access required")
    return user
