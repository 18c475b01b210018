"""Core types for the working-memory controller.

These types carry the temporal state of an episode from one learning step
to the next.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

import numpy as np


class EpisodePhase(Enum):
    """Lifecycle of an episode.

    UNINITIALIZED -> ACTIVE (initialize_episode, then any number of steps)
    -> TERMINATED (absorb_reward). A new initialize_episode restarts it.
    """

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    TERMINATED = "terminated"


class EpisodeStateError(RuntimeError):
    """Raised when an episode operation is called in the wrong phase."""


@dataclass(frozen=True)
class StepSnapshot:
    """Everything one learning step hands to the next.

    Each initialize_episode and step call produces a new snapshot; the
    following step or absorb_reward reads it as "time t-1".

    Attributes:
        action: Action chosen at this step.
        reward: Reward passed in at this step.
        value: State value V(state, working memory).
        q_value: Action value Q(state, working memory, action).
        state_wm_vector: Representation of state and working memory.
        action_vector: Representation of state, working memory and action.
        working_memory: Working-memory contents selected at this step.
    """

    action: str
    reward: float
    value: float
    q_value: float
    state_wm_vector: np.ndarray
    action_vector: np.ndarray
    working_memory: Tuple[str, ...]

    def __post_init__(self):
        for name in ("state_wm_vector", "action_vector"):
            vec = np.array(getattr(self, name), dtype=np.float64)
            vec.flags.writeable = False
            object.__setattr__(self, name, vec)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging or inspection."""
        return {
            "action": self.action,
            "reward": self.reward,
            "value": self.value,
            "q_value": self.q_value,
            "state_wm_vector": self.state_wm_vector.tolist(),
            "action_vector": self.action_vector.tolist(),
            "working_memory": list(self.working_memory),
        }


__all__ = ["EpisodePhase", "EpisodeStateError", "StepSnapshot"]
