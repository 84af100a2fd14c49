from bingo.board.layout import build_board, layout_for_width
from bingo.board.squares import CHALLENGES, MOBILE_COLUMNS, Square, TASKS, label_for, parse_square


def test_card_has_fifteen_cells_and_one_free_center():
    assert len(CHALLENGES) == 15
    free = [c for c in CHALLENGES if c.is_free]
    assert len(free) == 1
    assert free[0].field is None
    assert CHALLENGES.index(free[0]) == 7


def test_tasks_cover_every_square_exactly_once():
    assert [t.field for t in TASKS] == list(Square)


def test_build_board_without_progress_only_free_cell_checked():
    cells = build_board(None)
    assert len(cells) == 15
    assert [c.checked for c in cells] == [c.is_free for c in CHALLENGES]


def test_build_board_reflects_progress_and_keeps_free_cell():
    progress = {square: False for square in Square}
    progress[Square.SQUARE_1] = True
    progress[Square.SQUARE_14] = True

    cells = build_board(progress)

    assert len(cells) == 15
    checked = {c.field for c in cells if c.checked and not c.is_free}
    assert checked == {Square.SQUARE_1, Square.SQUARE_14}
    assert cells[7].is_free and cells[7].checked


def test_build_board_is_pure():
    progress = {Square.SQUARE_3: True}
    assert build_board(progress) == build_board(progress)
    assert progress == {Square.SQUARE_3: True}


def test_layout_for_three_columns_is_a_transpose():
    cells = list(range(15))
    # 5 rows of 3 read column by column
    assert layout_for_width(cells, MOBILE_COLUMNS) == [0, 3, 6, 9, 12, 1, 4, 7, 10, 13, 2, 5, 8, 11, 14]


def test_layout_round_trip_three_then_five():
    cells = build_board({Square.SQUARE_2: True})
    assert layout_for_width(layout_for_width(cells, 3), 5) == cells


def test_layout_with_short_last_row_skips_missing_cells():
    assert layout_for_width(list(range(7)), 3) == [0, 3, 6, 1, 4, 2, 5]


def test_parse_square():
    assert parse_square("square_4") is Square.SQUARE_4
    assert parse_square(Square.SQUARE_4) is Square.SQUARE_4
    assert parse_square("square_15") is None
    assert parse_square(None) is None
    assert label_for(Square.SQUARE_1) == "Purchase Any Size Popcorn"
