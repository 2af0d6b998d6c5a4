#!/usr/bin/env python3
"""
Train a policy network, then measure it against a uniform-random opponent.

Example:
  PYTHONPATH=src python3 scripts/eval_vs_random.py \
    --train-games 50000 \
    --games 2000 \
    --seed 42
"""

from __future__ import annotations

import argparse
import math
import os
import random
import sys
from dataclasses import dataclass
from typing import Optional

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from tictactoerl.ai.model import NetworkConfig, PolicyNetwork
from tictactoerl.ai.selfplay import play_random_game
from tictactoerl.ai.train import TrainingConfig, train_against_random
from tictactoerl.engine import Mark, Outcome


@dataclass
class SideResult:
    mark: Mark
    wins: int = 0
    losses: int = 0
    draws: int = 0

    @property
    def games(self) -> int:
        return self.wins + self.losses + self.draws

    @property
    def score(self) -> float:
        return (self.wins + 0.5 * self.draws) / max(1, self.games)


def evaluate_side(network: PolicyNetwork, mark: Mark, games: int, rng: random.Random) -> SideResult:
    result = SideResult(mark=mark)
    for _ in range(games):
        record = play_random_game(network, rng=rng, network_mark=mark)
        if record.outcome is Outcome.DRAW:
            result.draws += 1
        elif record.network_won:
            result.wins += 1
        else:
            result.losses += 1
    return result


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Evaluate a trained network against random play.")
    parser.add_argument("--train-games", type=int, default=50_000, help="Training games (default: 50000).")
    parser.add_argument("--games", type=int, default=2000, help="Evaluation games per side (default: 2000).")
    parser.add_argument("--hidden-size", type=int, default=512, help="Hidden layer width (default: 512).")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42).")
    args = parser.parse_args(argv)

    network = PolicyNetwork(NetworkConfig(hidden_size=args.hidden_size, seed=args.seed))
    train_against_random(
        network,
        args.train_games,
        config=TrainingConfig(report_every=max(1, args.train_games // 5)),
        seed=args.seed,
    )

    rng = random.Random(args.seed + 1)
    print("Evaluation against uniform-random opponent")
    for mark in (Mark.O, Mark.X):
        side = evaluate_side(network, mark, args.games, rng)
        ci = 1.96 * math.sqrt(side.score * (1.0 - side.score) / max(1, side.games))
        print(
            f"as {mark.value}: games={side.games} wins={side.wins} "
            f"losses={side.losses} draws={side.draws} "
            f"score={side.score:.4f} (95% CI +/- {ci:.4f})"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
