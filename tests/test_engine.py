import pytest

from tictactoerl.engine import (
    CELL_COUNT,
    LINES,
    GameState,
    Mark,
    Outcome,
    new_game,
    replay,
)


def test_new_game_is_empty_with_x_to_move():
    state = new_game()
    assert state.board == [Mark.EMPTY] * CELL_COUNT
    assert state.turn is Mark.X
    assert state.move_count == 0
    assert state.check_terminal() == (False, None)


def test_apply_move_alternates_turns():
    state = new_game()
    state.apply_move(4)
    assert state.board[4] is Mark.X
    assert state.turn is Mark.O
    state.apply_move(0)
    assert state.board[0] is Mark.O
    assert state.turn is Mark.X
    assert state.history == [4, 0]


def test_reset_clears_board():
    state = replay([0, 1, 2])
    state.reset()
    assert state.board == [Mark.EMPTY] * CELL_COUNT
    assert state.turn is Mark.X
    assert state.history == []


@pytest.mark.parametrize("cell", [-1, 9, 100, "4", 4.0, True, None])
def test_apply_move_rejects_out_of_range_or_non_int(cell):
    state = new_game()
    with pytest.raises(ValueError):
        state.apply_move(cell)
    assert state.board == [Mark.EMPTY] * CELL_COUNT
    assert not state.is_legal(cell)


def test_apply_move_rejects_occupied_cell_without_mutation():
    state = replay([4])
    with pytest.raises(ValueError):
        state.apply_move(4)
    assert state.board[4] is Mark.X
    assert state.turn is Mark.O
    assert state.move_count == 1


def test_apply_move_rejects_moves_after_game_over():
    state = replay([0, 3, 1, 4, 2])
    assert state.check_terminal() == (True, Outcome.X_WINS)
    assert not state.is_legal(8)
    with pytest.raises(ValueError):
        state.apply_move(8)


@pytest.mark.parametrize(
    "moves, outcome",
    [
        ([0, 3, 1, 4, 2], Outcome.X_WINS),  # top row
        ([0, 1, 3, 2, 6], Outcome.X_WINS),  # left column
        ([0, 1, 4, 2, 8], Outcome.X_WINS),  # main diagonal
        ([0, 2, 1, 4, 3, 6], Outcome.O_WINS),  # anti-diagonal
        ([0, 3, 1, 4, 8, 5], Outcome.O_WINS),  # middle row
        ([0, 1, 2, 4, 3, 5, 7, 6, 8], Outcome.DRAW),
    ],
)
def test_check_terminal_reports_outcome(moves, outcome):
    state = replay(moves)
    assert state.check_terminal() == (True, outcome)
    assert state.snapshot().count(Mark.EMPTY) == CELL_COUNT - len(moves)


def test_last_move_can_win_instead_of_draw():
    state = replay([0, 1, 2, 4, 3, 5, 7, 6, 8])
    assert state.check_terminal() == (True, Outcome.DRAW)
    winning_fill = replay([2, 0, 6, 5, 1, 7, 3, 8, 4])
    assert Mark.EMPTY not in winning_fill.board
    assert winning_fill.check_terminal() == (True, Outcome.X_WINS)


def _line_winner(board):
    for a, b, c in LINES:
        if board[a] is not Mark.EMPTY and board[a] is board[b] is board[c]:
            return board[a]
    return None


def test_check_terminal_over_all_reachable_boards():
    seen = set()

    def walk(state: GameState) -> None:
        key = state.snapshot()
        if key in seen:
            return
        seen.add(key)
        is_over, outcome = state.check_terminal()
        winner = _line_winner(state.board)
        empties = state.board.count(Mark.EMPTY)
        assert empties == CELL_COUNT - state.move_count
        if winner is not None:
            assert (is_over, outcome) == (True, Outcome.for_mark(winner))
            return
        if empties == 0:
            assert (is_over, outcome) == (True, Outcome.DRAW)
            return
        assert (is_over, outcome) == (False, None)
        for cell in state.legal_moves():
            child = GameState(board=list(state.board), turn=state.turn, history=list(state.history))
            child.apply_move(cell)
            walk(child)

    walk(new_game())
    # Distinct positions reachable in legal play, empty board included.
    assert len(seen) == 5478


def test_outcome_helpers():
    assert Outcome.for_mark(Mark.O) is Outcome.O_WINS
    assert Outcome.X_WINS.winner is Mark.X
    assert Outcome.DRAW.winner is None
    with pytest.raises(ValueError):
        Outcome.for_mark(Mark.EMPTY)
    with pytest.raises(ValueError):
        Mark.EMPTY.opponent()
