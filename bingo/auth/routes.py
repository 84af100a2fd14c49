import logging

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from bingo.auth.models import User
from bingo.core import config
from bingo.core.deps import get_current_user
from bingo.core.security import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token, hash_password, verify_password
from bingo.db.session import get_db
from bingo.progress.service import get_or_create_progress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def user_to_dict(user: User) -> dict:
    return {"id": user.id, "email": user.email, "is_manager": bool(user.is_manager)}


# =========================
# SIGNUP
# =========================
@router.post("/signup")
def signup(
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    email = email.strip().lower()
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")
    if len(password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")

    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=email,
        password_hash=hash_password(password),
        is_manager=email in config.MANAGER_EMAILS,
    )

    db.add(user)
    db.commit()
    db.refresh(user)

    # Every participant starts with an empty board.
    if not user.is_manager:
        get_or_create_progress(db, user.id)

    logger.info("[AUTH] signup id=%s manager=%s", user.id, user.is_manager)
    return {"message": "Signup successful", "user": user_to_dict(user)}


# =========================
# LOGIN
# =========================
@router.post("/login")
def login(
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.email == email.strip().lower()).first()

    if not user or not verify_password(password, user.password_hash):
        logger.info("[AUTH] Invalid credentials for: %s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user.id)
    logger.info("[AUTH] Login successful for id=%s", user.id)

    response = JSONResponse({"access_token": token, "user": user_to_dict(user)})
    response.set_cookie(
        "access_token",
        token,
        httponly=True,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return response


@router.post("/logout")
def logout():
    response = JSONResponse({"message": "Logged out"})
    response.delete_cookie("access_token")
    return response


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return user_to_dict(user)
