"""
The fixed bingo card.

Fifteen cells laid out row-major as 5 rows of 3. The centre cell is the free
space: it has no field and is always complete. Never mutated at runtime.
"""
import enum
from dataclasses import dataclass
from typing import Optional


class Square(str, enum.Enum):
    SQUARE_1 = "square_1"
    SQUARE_2 = "square_2"
    SQUARE_3 = "square_3"
    SQUARE_4 = "square_4"
    SQUARE_5 = "square_5"
    SQUARE_6 = "square_6"
    SQUARE_7 = "square_7"
    SQUARE_8 = "square_8"
    SQUARE_9 = "square_9"
    SQUARE_10 = "square_10"
    SQUARE_11 = "square_11"
    SQUARE_12 = "square_12"
    SQUARE_13 = "square_13"
    SQUARE_14 = "square_14"


@dataclass(frozen=True)
class ChallengeDefinition:
    field: Optional[Square]
    label: str
    is_free: bool = False


CHALLENGES: tuple[ChallengeDefinition, ...] = (
    # Row 1
    ChallengeDefinition(Square.SQUARE_1, "Purchase Any Size Popcorn"),
    ChallengeDefinition(Square.SQUARE_2, "See a Movie on a Weekday"),
    ChallengeDefinition(Square.SQUARE_3, "Follow Our Letterboxd"),
    # Row 2
    ChallengeDefinition(Square.SQUARE_4, "See a Mystery Movie"),
    ChallengeDefinition(Square.SQUARE_5, "Purchase Any Ice Cream"),
    ChallengeDefinition(Square.SQUARE_6, "Donate to St. Jude's"),
    # Row 3 (center is free space)
    ChallengeDefinition(Square.SQUARE_7, "Purchase Any Movie Merch"),
    ChallengeDefinition(None, "FREE SPACE", is_free=True),
    ChallengeDefinition(Square.SQUARE_8, "Purchase Any Size Drink"),
    # Row 4
    ChallengeDefinition(Square.SQUARE_9, "Leave Us a Review"),
    ChallengeDefinition(Square.SQUARE_10, "Purchase Any Candy"),
    ChallengeDefinition(Square.SQUARE_11, "See a Matinee Movie"),
    # Row 5
    ChallengeDefinition(Square.SQUARE_12, "Sign Up for Regal Unlimited"),
    ChallengeDefinition(Square.SQUARE_13, "See a Movie in IMAX"),
    ChallengeDefinition(Square.SQUARE_14, "Purchase Any Hot Food"),
)

MOBILE_COLUMNS = 3

# Challenges a participant can actually submit proof for.
TASKS: tuple[ChallengeDefinition, ...] = tuple(c for c in CHALLENGES if not c.is_free)

_LABELS = {c.field: c.label for c in TASKS}


def parse_square(value) -> Optional[Square]:
    """Return the Square for a field name, or None if it is not a task on the card."""
    if isinstance(value, Square):
        return value
    try:
        return Square(str(value).strip())
    except ValueError:
        return None


def label_for(square: Square) -> str:
    return _LABELS[square]
