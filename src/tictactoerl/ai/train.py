from __future__ import annotations

import random
import time
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

try:
    import torch
except ImportError:  # pragma: no cover - torch optional
    torch = None

from tictactoerl.engine import CELL_COUNT, GameState, Mark, Outcome, replay

from .model import PolicyNetwork, encode_board
from .selfplay import GameRecord, play_random_game

LEARNING_RATE = 0.01
DRAW_REWARD = 0.3
WIN_REWARD = 1.0
LOSS_REWARD = -2.0
IMPORTANCE_FLOOR = 0.5
REPORT_EVERY = 10_000


@dataclass(frozen=True)
class TrainingConfig:
    learning_rate: float = LEARNING_RATE
    draw_reward: float = DRAW_REWARD
    win_reward: float = WIN_REWARD
    loss_reward: float = LOSS_REWARD
    importance_floor: float = IMPORTANCE_FLOOR
    report_every: int = REPORT_EVERY

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "TrainingConfig":
        if data is None:
            return cls()
        return cls(
            learning_rate=float(data.get("learning_rate", cls.learning_rate)),
            draw_reward=float(data.get("draw_reward", cls.draw_reward)),
            win_reward=float(data.get("win_reward", cls.win_reward)),
            loss_reward=float(data.get("loss_reward", cls.loss_reward)),
            importance_floor=float(data.get("importance_floor", cls.importance_floor)),
            report_every=int(data.get("report_every", cls.report_every)),
        )

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass
class TrainingExample:
    move_idx: int
    move: int
    target: "torch.Tensor"  # type: ignore[name-defined]
    scaled_reward: float


def move_importance(move_idx: int, num_moves: int, floor: float = IMPORTANCE_FLOOR) -> float:
    """Linear weight from `floor` at the first move towards 1.0 at the end of the game."""
    if not 1 <= num_moves <= CELL_COUNT:
        raise ValueError(f"num_moves must be within 1..{CELL_COUNT}, got {num_moves}")
    if not 0 <= move_idx < num_moves:
        raise ValueError(f"move_idx {move_idx} outside game of {num_moves} moves")
    return floor + (1.0 - floor) * float(move_idx) / float(num_moves)


def base_reward(outcome: Outcome, network_mark: Mark, config: Optional[TrainingConfig] = None) -> float:
    config = config or TrainingConfig()
    if outcome is Outcome.DRAW:
        return config.draw_reward
    if outcome.winner is network_mark:
        return config.win_reward
    return config.loss_reward


def build_target(state: GameState, move: int, scaled_reward: float) -> "torch.Tensor":
    """Reinforce the played move, or spread its mass over the other empty cells."""
    target = torch.zeros(CELL_COUNT, dtype=torch.float64)
    if scaled_reward >= 0:
        target[move] = 1.0
        return target
    alternatives = [idx for idx in state.legal_moves() if idx != move]
    if alternatives:
        share = 1.0 / len(alternatives)
        for idx in alternatives:
            target[idx] = share
    return target


def _validate_history(moves: Sequence[int]) -> None:
    if len(moves) > CELL_COUNT:
        raise ValueError(f"Move history longer than {CELL_COUNT} moves: {len(moves)}")
    # Raises ValueError on an out-of-range, occupied or post-game move.
    replay(moves)


def learn_from_game(
    network: PolicyNetwork,
    moves: Sequence[int],
    outcome: Outcome,
    network_is_second_mover: bool,
    config: Optional[TrainingConfig] = None,
) -> List[TrainingExample]:
    """Train the network on its own moves from one finished game.

    Each network move is replayed from an empty board, scored with the game
    reward times `move_importance`, and pushed through one backward pass.
    Opponent moves are skipped. Returns the examples applied, in order.
    """
    if torch is None:
        raise ImportError("PyTorch required for training. Install with `pip install torch`.") from None
    config = config or TrainingConfig()
    moves = list(moves)
    _validate_history(moves)
    num_moves = len(moves)
    network_mark = Mark.O if network_is_second_mover else Mark.X
    reward = base_reward(outcome, network_mark, config)
    # X moves at even indices, O at odd ones.
    own_parity = 1 if network_is_second_mover else 0

    examples: List[TrainingExample] = []
    for move_idx in range(num_moves):
        if move_idx % 2 != own_parity:
            continue
        state = replay(moves[:move_idx])
        network.forward(encode_board(state))

        move = moves[move_idx]
        scaled_reward = reward * move_importance(move_idx, num_moves, config.importance_floor)
        target = build_target(state, move, scaled_reward)
        network.backward(target, config.learning_rate, scaled_reward)
        examples.append(
            TrainingExample(move_idx=move_idx, move=move, target=target, scaled_reward=scaled_reward)
        )
    return examples


def learn_from_record(
    network: PolicyNetwork,
    record: GameRecord,
    config: Optional[TrainingConfig] = None,
) -> List[TrainingExample]:
    return learn_from_game(
        network,
        record.moves,
        record.outcome,
        network_is_second_mover=record.network_is_second_mover,
        config=config,
    )


@dataclass
class TrainingReport:
    games_played: int
    batch_games: int
    wins: int
    losses: int
    draws: int

    def _percent(self, count: int) -> float:
        return 100.0 * count / self.batch_games if self.batch_games else 0.0

    @property
    def win_rate(self) -> float:
        return self._percent(self.wins)

    @property
    def loss_rate(self) -> float:
        return self._percent(self.losses)

    @property
    def draw_rate(self) -> float:
        return self._percent(self.draws)


@dataclass
class TrainingSummary:
    games: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    reports: List[TrainingReport] = field(default_factory=list)


def train_against_random(
    network: PolicyNetwork,
    games: int,
    config: Optional[TrainingConfig] = None,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    network_mark: Mark = Mark.O,
) -> TrainingSummary:
    """Play `games` games against a uniform-random opponent, learning after each one."""
    if games < 0:
        raise ValueError("games must be non-negative")
    config = config or TrainingConfig()
    rng = rng or random.Random(seed)
    summary = TrainingSummary()
    batch = TrainingReport(games_played=0, batch_games=0, wins=0, losses=0, draws=0)

    started = time.time()
    print(f"Training network against {games} random games...", flush=True)

    for game_idx in range(games):
        record = play_random_game(network, rng=rng, network_mark=network_mark)
        learn_from_record(network, record, config)

        summary.games += 1
        batch.batch_games += 1
        if record.outcome is Outcome.DRAW:
            summary.draws += 1
            batch.draws += 1
        elif record.network_won:
            summary.wins += 1
            batch.wins += 1
        else:
            summary.losses += 1
            batch.losses += 1

        should_log = config.report_every > 0 and (
            (game_idx + 1) % config.report_every == 0 or (game_idx + 1) == games
        )
        if should_log:
            batch.games_played = game_idx + 1
            summary.reports.append(batch)
            elapsed = time.time() - started
            eta = elapsed / float(game_idx + 1) * float(games - (game_idx + 1))
            print(
                f"[train] played {game_idx + 1}/{games} games. "
                f"last {batch.batch_games}: "
                f"wins={batch.win_rate:.2f}% "
                f"losses={batch.loss_rate:.2f}% "
                f"draws={batch.draw_rate:.2f}% "
                f"elapsed={elapsed:.1f}s "
                f"eta={eta:.1f}s",
                flush=True,
            )
            batch = TrainingReport(games_played=0, batch_games=0, wins=0, losses=0, draws=0)

    total_elapsed = time.time() - started
    print(f"Training complete in {total_elapsed:.1f}s.", flush=True)
    return summary
