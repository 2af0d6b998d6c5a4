"""Terminal entrypoint: train against random play, then play the network."""
import argparse
from typing import Callable, Optional, Sequence, Union

from . import __version__
from .ai.model import NetworkConfig, PolicyNetwork
from .ai.selfplay import GameRecord, play_human_game
from .ai.train import TrainingConfig, learn_from_record, train_against_random
from .engine import GameState, Mark, Outcome, replay

Board = Union[GameState, Sequence[Mark]]


def render_board(board: Board) -> str:
    cells = board.snapshot() if isinstance(board, GameState) else tuple(board)
    rows = [" ".join(mark.value for mark in cells[start : start + 3]) for start in (0, 3, 6)]
    return "\n".join(rows)


def parse_move(text: str) -> Optional[int]:
    try:
        return int(text.strip())
    except (TypeError, ValueError):
        return None


def prompt_move(
    input_fn: Callable[[str], str] = input,
    print_fn: Callable[..., None] = print,
) -> Callable[[GameState], Optional[int]]:
    """Build a human opponent that shows the board and reads a cell index."""

    def ask(state: GameState) -> Optional[int]:
        print_fn(render_board(state))
        return parse_move(input_fn("Your move (0-8): "))

    return ask


def play_interactive(
    network: PolicyNetwork,
    training_config: Optional[TrainingConfig] = None,
    learn: bool = True,
    show_probabilities: bool = False,
    input_fn: Callable[[str], str] = input,
    print_fn: Callable[..., None] = print,
) -> GameRecord:
    """Play one game against a human (X) and optionally learn from it."""
    print_fn("Welcome to Tic Tac Toe! You are X, the computer is O.")
    print_fn("Enter positions as numbers from 0 to 8:")
    print_fn("0 1 2\n3 4 5\n6 7 8")

    def on_move(state: GameState, mover: Mark, move: int) -> None:
        if mover is Mark.O:
            print_fn(f"Computer placed O in position {move}")

    record = play_human_game(
        network,
        prompt_move(input_fn, print_fn),
        network_mark=Mark.O,
        on_invalid=lambda _candidate: print_fn("Invalid move! Try again."),
        on_move=on_move,
        show_probabilities=show_probabilities,
    )
    print_fn(render_board(replay(record.moves)))
    if record.outcome is Outcome.DRAW:
        print_fn("Draw!")
    elif record.outcome is Outcome.X_WINS:
        print_fn("You win!")
    else:
        print_fn("Computer wins!")

    if learn:
        learn_from_record(network, record, training_config)
    return record


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="tictactoerl")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument(
        "--games",
        type=int,
        default=150_000,
        help="Number of training games against a random opponent (default: 150000).",
    )
    parser.add_argument(
        "--hidden-size",
        type=int,
        default=512,
        help="Hidden layer width (default: 512).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for weights and opponent.")
    parser.add_argument(
        "--learning-rate",
        type=float,
        default=0.01,
        help="SGD learning rate (default: 0.01).",
    )
    parser.add_argument(
        "--report-every",
        type=int,
        default=10_000,
        help="Print win/loss/draw rates every N training games (default: 10000).",
    )
    parser.add_argument(
        "--relu-logits",
        action="store_true",
        help="Apply ReLU to the output logits before softmax.",
    )
    parser.add_argument(
        "--no-play",
        action="store_true",
        help="Exit after training instead of playing against the network.",
    )
    parser.add_argument(
        "--no-learn-from-human",
        action="store_true",
        help="Do not train on games played against a human.",
    )
    parser.add_argument(
        "--show-probabilities",
        action="store_true",
        help="Print the network's move probabilities during human games.",
    )
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    try:
        network = PolicyNetwork(
            NetworkConfig(hidden_size=args.hidden_size, relu_logits=args.relu_logits, seed=args.seed)
        )
    except ImportError as exc:
        print(exc)
        return 1
    training_config = TrainingConfig(learning_rate=args.learning_rate, report_every=args.report_every)

    if args.games > 0:
        train_against_random(network, args.games, config=training_config, seed=args.seed)

    if args.no_play:
        return 0

    while True:
        try:
            play_interactive(
                network,
                training_config=training_config,
                learn=not args.no_learn_from_human,
                show_probabilities=args.show_probabilities,
            )
        except EOFError:
            break
        try:
            again = input("Play again? (y/n) ")
        except EOFError:
            break
        if again.strip().lower() != "y":
            break
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
