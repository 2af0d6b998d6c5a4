from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from tictactoerl.engine import GameState, Mark, Outcome, new_game

from .agent import random_move, select_move
from .model import PolicyNetwork

Opponent = Callable[[GameState], Optional[int]]
MoveCallback = Callable[[GameState, Mark, int], None]
InvalidCallback = Callable[[object], None]


@dataclass(frozen=True)
class GameRecord:
    moves: Tuple[int, ...]
    outcome: Outcome
    network_mark: Mark

    @property
    def num_moves(self) -> int:
        return len(self.moves)

    @property
    def network_is_second_mover(self) -> bool:
        return self.network_mark is Mark.O

    @property
    def network_won(self) -> bool:
        return self.outcome.winner is self.network_mark

    @property
    def network_lost(self) -> bool:
        return self.outcome.winner is self.network_mark.opponent()


def play_game(
    network: PolicyNetwork,
    opponent: Opponent,
    network_mark: Mark = Mark.O,
    on_move: Optional[MoveCallback] = None,
    on_invalid: Optional[InvalidCallback] = None,
    show_probabilities: bool = False,
) -> GameRecord:
    """Play one game from an empty board and return its move history and outcome.

    The opponent is asked again whenever it proposes a cell the board rejects,
    so a mistyped human move never touches the game state.
    """
    if network_mark is Mark.EMPTY:
        raise ValueError("network_mark must be X or O")

    state = new_game()
    while True:
        is_over, outcome = state.check_terminal()
        if is_over:
            break
        mover = state.turn
        if mover is network_mark:
            move = select_move(state, network, show_probabilities=show_probabilities)
            if move is None or not state.is_legal(move):
                raise RuntimeError(f"Network chose an illegal move: {move!r}")
        else:
            move = opponent(state)
            if not state.is_legal(move):
                if on_invalid is not None:
                    on_invalid(move)
                continue
        state.apply_move(move)
        if on_move is not None:
            on_move(state, mover, move)

    assert outcome is not None
    return GameRecord(moves=tuple(state.history), outcome=outcome, network_mark=network_mark)


def play_random_game(
    network: PolicyNetwork,
    rng: Optional[random.Random] = None,
    network_mark: Mark = Mark.O,
) -> GameRecord:
    """Network against a uniform-random opponent (bulk training games)."""
    return play_game(network, lambda state: random_move(state, rng), network_mark=network_mark)


def play_human_game(
    network: PolicyNetwork,
    prompt: Opponent,
    network_mark: Mark = Mark.O,
    on_invalid: Optional[InvalidCallback] = None,
    on_move: Optional[MoveCallback] = None,
    show_probabilities: bool = False,
) -> GameRecord:
    return play_game(
        network,
        prompt,
        network_mark=network_mark,
        on_move=on_move,
        on_invalid=on_invalid,
        show_probabilities=show_probabilities,
    )
