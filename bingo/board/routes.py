from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bingo.auth.models import User
from bingo.board.layout import build_board, layout_for_width
from bingo.board.squares import CHALLENGES
from bingo.core.deps import get_current_user
from bingo.db.session import get_db
from bingo.progress.models import Progress

router = APIRouter(prefix="/board", tags=["board"])


@router.get("/squares")
def squares():
    """The fixed card, row-major."""
    return {
        "squares": [
            {"field": c.field.value if c.field else None, "label": c.label, "is_free": c.is_free}
            for c in CHALLENGES
        ]
    }


@router.get("/me")
def my_board(
    columns: Optional[int] = Query(None, ge=1, le=15, description="Column-major layout for narrow screens"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    progress = db.query(Progress).filter(Progress.user_id == user.id).first()
    cells = build_board(progress.as_dict() if progress else None)
    if columns:
        cells = layout_for_width(cells, columns)
    return {"board": [cell.to_dict() for cell in cells]}
