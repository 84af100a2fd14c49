import math
from dataclasses import asdict, dataclass
from typing import Mapping, Optional, Sequence

from bingo.board.squares import CHALLENGES, Square


@dataclass(frozen=True)
class Cell:
    field: Optional[Square]
    label: str
    is_free: bool
    checked: bool

    def to_dict(self) -> dict:
        data = asdict(self)
        data["field"] = self.field.value if self.field else None
        return data


def build_board(progress: Optional[Mapping[Square, bool]]) -> list[Cell]:
    """
    Map a participant's completion flags onto the 15 cells in card order.

    ``progress`` is keyed by Square (see Progress.as_dict). None means the
    participant has no progress yet: every cell unchecked except the free one.
    """
    cells = []
    for challenge in CHALLENGES:
        if challenge.is_free:
            checked = True
        else:
            checked = bool(progress.get(challenge.field)) if progress else False
        cells.append(Cell(challenge.field, challenge.label, challenge.is_free, checked))
    return cells


def layout_for_width(cells: Sequence, columns: int) -> list:
    """
    Reorder a row-major sequence into column-major order.

    The cells are cut into rows of ``columns`` (the last row may be short),
    then read column by column, skipping positions the short row lacks.
    For the 15-cell card, columns=3 turns 5x3 into 3x5 and columns=5 on
    that result turns it back.
    """
    if columns < 1:
        raise ValueError("columns must be >= 1")

    rows = math.ceil(len(cells) / columns)
    matrix = [list(cells[r * columns:(r + 1) * columns]) for r in range(rows)]

    transposed = []
    for column in range(columns):
        for row in range(rows):
            if column < len(matrix[row]):
                transposed.append(matrix[row][column])
    return transposed
