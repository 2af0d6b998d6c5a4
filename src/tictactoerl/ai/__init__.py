"""AI components: policy network, move selection, self-play, and training helpers."""

from .agent import random_move, select_move  # noqa: F401
from .model import NetworkConfig, PolicyNetwork, encode_board  # noqa: F401
from .train import TrainingConfig, learn_from_game, train_against_random  # noqa: F401
