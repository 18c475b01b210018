"""Critic network: linear value estimates and TD errors.

The critic owns the scalar hyperparameters of TD(lambda) learning and the
two formulas the working-memory controller needs. It holds no weights;
callers pass their own weight vectors in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .hrr.algebra import DimensionMismatch

logger = logging.getLogger(__name__)


@dataclass
class CriticConfig:
    """Configuration for the critic.

    Attributes:
        learning_rate: Step size alpha for weight updates.
        discount: Discount factor gamma for bootstrapped values (0-1).
        trace_decay: Eligibility trace decay lambda (0-1).
        epsilon: Exploration rate of the epsilon-soft policy (0-1).
        vector_size: Length of value-function inputs and weights.
    """

    learning_rate: float = 0.1
    discount: float = 0.9
    trace_decay: float = 0.5
    epsilon: float = 0.01
    vector_size: int = 128

    def __post_init__(self):
        if self.vector_size <= 0:
            raise ValueError(f"vector_size must be positive, got {self.vector_size}")
        if self.learning_rate < 0:
            raise ValueError(f"learning_rate must be non-negative, got {self.learning_rate}")
        for name in ("discount", "trace_decay", "epsilon"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                logger.warning(f"Critic {name} {value} outside [0, 1].")


class CriticNetwork:
    """Linear value function with TD error computation.

    Example:
        >>> critic = CriticNetwork(CriticConfig(discount=0.5))
        >>> critic.td_error(reward=1.0, value=2.0, previous_value=0.5)
        1.5
    """

    def __init__(self, config: Optional[CriticConfig] = None) -> None:
        self.config = config or CriticConfig()

    @property
    def alpha(self) -> float:
        return self.config.learning_rate

    @property
    def discount(self) -> float:
        return self.config.discount

    @property
    def lambda_(self) -> float:
        return self.config.trace_decay

    @property
    def epsilon(self) -> float:
        return self.config.epsilon

    @property
    def vector_size(self) -> int:
        return self.config.vector_size

    def value(self, vector: np.ndarray, weights: np.ndarray) -> float:
        """Value estimate of a representation: its dot product with the weights."""
        if vector.shape != weights.shape:
            raise DimensionMismatch(
                f"vector shape {vector.shape} does not match weights shape {weights.shape}"
            )
        return float(np.dot(vector, weights))

    def td_error(self, reward: float, value: float, previous_value: float) -> float:
        """TD error with a bootstrapped next value: r + gamma * V(s') - V(s)."""
        return reward + self.discount * value - previous_value

    def terminal_td_error(self, reward: float, previous_value: float) -> float:
        """TD error at the end of an episode, where there is no next value."""
        return reward - previous_value

    def __repr__(self) -> str:
        return (
            f"CriticNetwork(alpha={self.alpha}, discount={self.discount}, "
            f"lambda={self.lambda_}, epsilon={self.epsilon})"
        )


__all__ = ["CriticConfig", "CriticNetwork"]
