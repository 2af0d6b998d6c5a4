from __future__ import annotations

import random
from typing import List, Optional

from tictactoerl.engine import GameState, Mark

from .model import PolicyNetwork, encode_board


def list_legal_moves(state: GameState) -> List[int]:
    return state.legal_moves()


def select_move(
    state: GameState,
    network: PolicyNetwork,
    show_probabilities: bool = False,
) -> Optional[int]:
    """Return the empty cell the network rates highest, or None on a full board.

    The network scores every cell, occupied or not; only empty cells are
    candidates here. Ties go to the lowest index.
    """
    probabilities = network.forward(encode_board(state))
    best_move: Optional[int] = None
    best_proba = -1.0
    for idx, proba in enumerate(probabilities.tolist()):
        if state.board[idx] is Mark.EMPTY and (best_move is None or proba > best_proba):
            best_move = idx
            best_proba = proba

    if show_probabilities:
        print(probabilities.tolist(), flush=True)
        print(float(probabilities.sum().item()), flush=True)

    return best_move


def random_move(state: GameState, rng: Optional[random.Random] = None) -> Optional[int]:
    legal = list_legal_moves(state)
    if not legal:
        return None
    return (rng or random).choice(legal)
