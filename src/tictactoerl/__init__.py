"""tictactoerl package."""

from .engine import (  # noqa: F401
    GameState,
    Mark,
    Outcome,
    new_game,
    replay,
)
from .ai import PolicyNetwork, learn_from_game, train_against_random  # noqa: F401

__all__ = [
    "__version__",
    "GameState",
    "Mark",
    "Outcome",
    "new_game",
    "replay",
    "PolicyNetwork",
    "learn_from_game",
    "train_against_random",
]

__version__ = "0.1.0"
