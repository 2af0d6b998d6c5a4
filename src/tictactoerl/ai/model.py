from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

try:
    import torch
except ImportError:  # pragma: no cover - torch optional in CI
    torch = None

from tictactoerl.engine import CELL_COUNT, GameState, Mark

INPUT_SIZE = CELL_COUNT * 2
OUTPUT_SIZE = CELL_COUNT
HIDDEN_SIZE = 512


def _ensure_torch() -> None:
    if torch is None:
        raise ImportError("PyTorch is not installed. Install with `pip install torch`.")


@dataclass(frozen=True)
class NetworkConfig:
    input_size: int = INPUT_SIZE
    hidden_size: int = HIDDEN_SIZE
    output_size: int = OUTPUT_SIZE
    relu_logits: bool = False
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("input_size", "hidden_size", "output_size"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive.")

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "NetworkConfig":
        if data is None:
            return cls()
        seed = data.get("seed", cls.seed)
        return cls(
            input_size=int(data.get("input_size", cls.input_size)),
            hidden_size=int(data.get("hidden_size", cls.hidden_size)),
            output_size=int(data.get("output_size", cls.output_size)),
            relu_logits=bool(data.get("relu_logits", cls.relu_logits)),
            seed=None if seed is None else int(seed),
        )

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


def encode_board(state: Union[GameState, Sequence[Mark]]) -> "torch.Tensor":
    """Encode a board as an 18-value two-hot vector.

    Cell i occupies positions (2i, 2i + 1):
    X: (1, 0)
    O: (0, 1)
    empty: (0, 0)
    """
    _ensure_torch()
    board = state.board if isinstance(state, GameState) else state
    if len(board) != CELL_COUNT:
        raise ValueError(f"Board must have {CELL_COUNT} cells, got {len(board)}.")
    vector = torch.zeros(INPUT_SIZE, dtype=torch.float64)
    for idx, mark in enumerate(board):
        if mark is Mark.X:
            vector[idx * 2] = 1.0
        elif mark is Mark.O:
            vector[idx * 2 + 1] = 1.0
    return vector


def softmax(logits: "torch.Tensor") -> "torch.Tensor":
    """Max-shifted softmax; falls back to uniform when the exponentials vanish."""
    _ensure_torch()
    shifted = logits - logits.max()
    exps = torch.exp(shifted)
    total = float(exps.sum().item())
    if total > 0.0:
        return exps / total
    return torch.full_like(logits, 1.0 / logits.numel())


class PolicyNetwork:
    """Single hidden layer policy network trained with online SGD.

    Activation buffers (inputs, hidden, raw_logits, outputs) are overwritten on
    every forward pass; copy them if they must outlive the next call.
    """

    def __init__(self, config: Optional[NetworkConfig] = None) -> None:
        _ensure_torch()
        self.config = config or NetworkConfig()
        cfg = self.config
        generator = torch.Generator()
        if cfg.seed is not None:
            generator.manual_seed(cfg.seed)
        else:
            generator.seed()

        def uniform(*shape: int) -> "torch.Tensor":
            return torch.rand(shape, generator=generator, dtype=torch.float64) * 2.0 - 1.0

        self.weights_ih = uniform(cfg.input_size, cfg.hidden_size)
        self.weights_ho = uniform(cfg.hidden_size, cfg.output_size)
        self.bias_h = uniform(cfg.hidden_size)
        self.bias_o = uniform(cfg.output_size)

        self.inputs: Optional["torch.Tensor"] = None
        self.hidden: Optional["torch.Tensor"] = None
        self.raw_logits: Optional["torch.Tensor"] = None
        self.outputs: Optional["torch.Tensor"] = None

    @property
    def input_size(self) -> int:
        return self.config.input_size

    @property
    def hidden_size(self) -> int:
        return self.config.hidden_size

    @property
    def output_size(self) -> int:
        return self.config.output_size

    def parameters(self) -> Tuple["torch.Tensor", ...]:
        return (self.weights_ih, self.weights_ho, self.bias_h, self.bias_o)

    def forward(self, inputs: "torch.Tensor") -> "torch.Tensor":
        inputs = torch.as_tensor(inputs, dtype=torch.float64).reshape(-1)
        if inputs.numel() != self.input_size:
            raise ValueError(
                f"Input size mismatch: expected {self.input_size}, got {inputs.numel()}."
            )
        self.inputs = inputs.clone()
        self.hidden = torch.relu(self.inputs @ self.weights_ih + self.bias_h)
        logits = self.hidden @ self.weights_ho + self.bias_o
        if self.config.relu_logits:
            logits = torch.relu(logits)
        self.raw_logits = logits
        self.outputs = softmax(logits)
        return self.outputs

    def backward(
        self,
        target: "torch.Tensor",
        learning_rate: float,
        reward_scale: float,
    ) -> None:
        """Apply one gradient-descent step towards target.

        The error is scaled by |reward_scale|, so the reward sets the step size
        and the target alone sets the direction.
        """
        if self.outputs is None or self.hidden is None or self.inputs is None:
            raise RuntimeError("backward() called before forward().")
        target = torch.as_tensor(target, dtype=torch.float64).reshape(-1)
        if target.numel() != self.output_size:
            raise ValueError(
                f"Target size mismatch: expected {self.output_size}, got {target.numel()}."
            )

        output_delta = (self.outputs - target) * abs(reward_scale)
        # Uses weights_ho as they were for the forward pass.
        hidden_delta = (self.weights_ho @ output_delta) * (self.hidden > 0).to(torch.float64)

        self.weights_ho.sub_(learning_rate * torch.outer(self.hidden, output_delta))
        self.bias_o.sub_(learning_rate * output_delta)
        self.weights_ih.sub_(learning_rate * torch.outer(self.inputs, hidden_delta))
        self.bias_h.sub_(learning_rate * hidden_delta)


def create_policy_network(config: Optional[NetworkConfig] = None) -> PolicyNetwork:
    return PolicyNetwork(config=config)
