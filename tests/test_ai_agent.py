from __future__ import annotations

import random

import pytest

torch = pytest.importorskip("torch")

from tictactoerl.ai.agent import list_legal_moves, random_move, select_move
from tictactoerl.ai.model import NetworkConfig, PolicyNetwork, encode_board
from tictactoerl.ai.selfplay import GameRecord, play_game, play_human_game, play_random_game
from tictactoerl.engine import Mark, Outcome, new_game, replay


@pytest.fixture()
def network() -> PolicyNetwork:
    return PolicyNetwork(NetworkConfig(hidden_size=64, seed=1234))


def test_select_move_on_empty_board_matches_global_argmax(network: PolicyNetwork) -> None:
    state = new_game()
    move = select_move(state, network)
    probabilities = network.forward(encode_board(state))
    assert move == int(torch.argmax(probabilities).item())
    assert abs(float(probabilities.sum().item()) - 1.0) < 1e-9


def test_select_move_skips_occupied_cells(network: PolicyNetwork) -> None:
    state = new_game()
    favourite = select_move(state, network)
    state.apply_move(favourite)
    second = select_move(state, network)
    assert second != favourite
    assert state.board[second] is Mark.EMPTY


def test_select_move_never_picks_occupied_cell(network: PolicyNetwork) -> None:
    rng = random.Random(5)
    for _ in range(200):
        state = new_game()
        while not state.check_terminal()[0]:
            move = select_move(state, network)
            assert move in state.legal_moves()
            state.apply_move(rng.choice(state.legal_moves()))


def test_select_move_tie_breaks_on_lowest_index() -> None:
    network = PolicyNetwork(NetworkConfig(hidden_size=8, seed=0))
    # Zeroed output layer: every cell scores the same.
    network.weights_ho.zero_()
    network.bias_o.zero_()
    assert select_move(new_game(), network) == 0
    assert select_move(replay([0, 1]), network) == 2


def test_select_move_returns_none_on_full_board(network: PolicyNetwork) -> None:
    state = replay([0, 1, 2, 4, 3, 5, 7, 6, 8])
    assert select_move(state, network) is None


def test_select_move_can_print_probabilities(network: PolicyNetwork, capsys) -> None:
    select_move(new_game(), network, show_probabilities=True)
    out = capsys.readouterr().out.strip().splitlines()
    assert len(out) == 2
    assert float(out[1]) == pytest.approx(1.0)


def test_random_move_is_legal_and_seeded() -> None:
    state = replay([4, 0])
    picks_a = [random_move(state, random.Random(s)) for s in range(30)]
    picks_b = [random_move(state, random.Random(s)) for s in range(30)]
    assert picks_a == picks_b
    assert set(picks_a) <= set(list_legal_moves(state))
    assert random_move(replay([0, 1, 2, 4, 3, 5, 7, 6, 8])) is None


@pytest.mark.parametrize("network_mark", [Mark.X, Mark.O])
def test_play_random_game_records_a_finished_game(network: PolicyNetwork, network_mark: Mark) -> None:
    record = play_random_game(network, rng=random.Random(3), network_mark=network_mark)
    assert isinstance(record, GameRecord)
    assert 5 <= record.num_moves <= 9
    assert len(set(record.moves)) == record.num_moves
    final = replay(record.moves)
    assert final.check_terminal() == (True, record.outcome)
    assert record.network_mark is network_mark
    assert record.network_is_second_mover is (network_mark is Mark.O)


def test_network_moves_come_from_select_move(network: PolicyNetwork) -> None:
    record = play_random_game(network, rng=random.Random(8), network_mark=Mark.X)
    for idx in range(0, record.num_moves, 2):
        assert record.moves[idx] == select_move(replay(record.moves[:idx]), network)


def test_human_game_reprompts_on_invalid_input(network: PolicyNetwork) -> None:
    # First answers are garbage, out of range, and (later) an occupied cell.
    answers = iter([None, 42, -1] + list(range(9)) * 3)
    rejected = []

    def human(state):
        return next(answers)

    record = play_human_game(network, human, network_mark=Mark.O, on_invalid=rejected.append)
    assert rejected[:3] == [None, 42, -1]
    assert all(0 <= candidate <= 8 for candidate in rejected[3:])
    final = replay(record.moves)
    assert final.check_terminal() == (True, record.outcome)
    assert record.moves[0] == 0


def test_play_game_reports_moves_in_order(network: PolicyNetwork) -> None:
    seen = []
    record = play_game(
        network,
        lambda state: state.legal_moves()[0],
        network_mark=Mark.O,
        on_move=lambda state, mover, move: seen.append((mover, move)),
    )
    assert [move for _, move in seen] == list(record.moves)
    assert [mover for mover, _ in seen][:2] == [Mark.X, Mark.O]


def test_play_game_rejects_empty_network_mark(network: PolicyNetwork) -> None:
    with pytest.raises(ValueError):
        play_game(network, lambda state: 0, network_mark=Mark.EMPTY)


def test_game_record_win_loss_flags() -> None:
    record = GameRecord(moves=(0, 3, 1, 4, 2), outcome=Outcome.X_WINS, network_mark=Mark.O)
    assert record.network_lost
    assert not record.network_won
