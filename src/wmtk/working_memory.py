# Copyright 2025 Thousand Brains Project
#
# Use of this source code is governed by the MIT
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.

"""Adaptive working memory trained by TD(lambda) learning.

The WorkingMemory controller decides, at every step of an episode, which
symbolic chunks of the current state to hold in a small number of
working-memory slots, and which action to take. It learns two linear value
functions over HRR representations:

- State value V(state, working memory), used to choose the contents.
- Action value Q(state, working memory, action), used to choose the action.

Both are updated with eligibility traces. Working-memory contents are
chosen epsilon-soft: with probability epsilon they are drawn at random,
otherwise every combination of up to n_chunks candidate chunks is scored
and the best is kept.

Representations:
    contents  = chunk_1 (*) chunk_2 (*) ... (*) chunk_n   (convolution)
    contents  = permute(contents)        unless contents is the identity
    state_wm  = contents (*) (term_1 + term_2 + ...)
    action_wm = action (*) state_wm

Example:
    >>> wm = WorkingMemory(WorkingMemoryConfig(vector_size=256, n_chunks=2, seed=7))
    >>> action = wm.initialize_episode("red*ball+table", ["left", "right"])
    >>> action = wm.step("ball+floor", ["left", "right"], reward=0.0)
    >>> wm.absorb_reward(1.0)
    >>> held = wm.query_working_memory()  # e.g. ['ball', 'I']
"""

from __future__ import annotations

import copy
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .critic import CriticConfig, CriticNetwork
from .hrr import algebra
from .hrr.algebra import DimensionMismatch
from .hrr.concepts import DISJUNCTION_DELIMITER, IDENTITY, explode
from .hrr.engine import HRRConfig, HRREngine
from .types import EpisodePhase, EpisodeStateError, StepSnapshot

logger = logging.getLogger(__name__)


@dataclass
class WorkingMemoryConfig:
    """Configuration for the working-memory controller.

    Attributes:
        learning_rate: TD step size alpha.
        discount: Discount factor gamma.
        trace_decay: Eligibility trace decay lambda.
        epsilon: Probability of choosing working-memory contents at random.
        vector_size: Length of every HRR, weight and trace vector.
        n_chunks: Number of working-memory slots.
        seed: Seed for the controller's generator when none is injected.
        weight_bounds: (lower, upper) range for initial random weights.
        similarity_threshold: Threshold for HRR comparisons.
        unitary_concepts: Generate unitary concept vectors.
    """

    learning_rate: float = 0.1
    discount: float = 0.9
    trace_decay: float = 0.5
    epsilon: float = 0.01
    vector_size: int = 128
    n_chunks: int = 3
    seed: Optional[int] = 1
    weight_bounds: Tuple[float, float] = (-0.01, 0.01)
    similarity_threshold: float = 0.5
    unitary_concepts: bool = False

    def __post_init__(self):
        if self.n_chunks < 1:
            raise ValueError(f"n_chunks must be at least 1, got {self.n_chunks}")
        lower, upper = self.weight_bounds
        if not lower < upper:
            raise ValueError(f"weight_bounds must satisfy lower < upper, got {self.weight_bounds}")
        if self.n_chunks > 5:
            logger.warning(
                f"n_chunks={self.n_chunks}: the exhaustive chunk search grows "
                "combinatorially with the number of slots."
            )

    def critic_config(self) -> CriticConfig:
        return CriticConfig(
            learning_rate=self.learning_rate,
            discount=self.discount,
            trace_decay=self.trace_decay,
            epsilon=self.epsilon,
            vector_size=self.vector_size,
        )

    def hrr_config(self) -> HRRConfig:
        return HRRConfig(
            vector_size=self.vector_size,
            similarity_threshold=self.similarity_threshold,
            unitary=self.unitary_concepts,
        )


class WorkingMemory:
    """Working-memory controller with state and action value learning.

    Attributes:
        config: WorkingMemoryConfig with controller parameters.
        critic: CriticNetwork providing values, TD errors and hyperparameters.
        hrrengine: HRREngine that encodes chunks, states and actions.
    """

    def __init__(
            self,
            config: Optional[WorkingMemoryConfig] = None,
            rng: Optional[np.random.Generator] = None,
            critic: Optional[CriticNetwork] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            config: Controller configuration. Uses defaults if None.
            rng: Generator for weights, permutation, concept vectors and
                exploration. If None, one is created from config.seed.
            critic: Value module. Built from config if None.
        """
        self.config = config or WorkingMemoryConfig()
        self._rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.critic = critic or CriticNetwork(self.config.critic_config())
        if self.critic.vector_size != self.config.vector_size:
            raise DimensionMismatch(
                f"critic vector_size {self.critic.vector_size} != "
                f"working memory vector_size {self.config.vector_size}"
            )
        self.hrrengine = HRREngine(self.config.hrr_config(), rng=self._rng)

        n = self.config.vector_size
        self._chunks: List[str] = [IDENTITY] * self.config.n_chunks
        self._eligibility_trace = np.zeros(n, dtype=np.float64)
        self._action_eligibility_trace = np.zeros(n, dtype=np.float64)

        lower, upper = self.config.weight_bounds
        self._weights = self._rng.uniform(lower, upper, size=n)
        self._action_weights = self._rng.uniform(lower, upper, size=n)
        self._permutation = algebra.random_permutation(self._rng, n)

        self._state: Optional[str] = None
        self._snapshot: Optional[StepSnapshot] = None
        self._phase = EpisodePhase.UNINITIALIZED
        self._total_episodes = 0
        self._total_steps = 0

    # --------------- Episode API ---------------
    def initialize_episode(
            self,
            state: str,
            possible_actions: Sequence[str],
            reward: float = 0.0,
    ) -> str:
        """Start an episode and return the recommended first action.

        Clears working memory and both eligibility traces, chooses contents
        for the initial state and picks the best action under Q. No learning
        happens here.

        Args:
            state: State text, terms separated by "+".
            possible_actions: Candidate action names, in tie-breaking order.
            reward: Reward observed in the initial state (usually 0).

        Returns:
            Name of the chosen action.
        """
        actions = self._check_actions(possible_actions)
        state_vector = self.state_representation(state)
        self._state = state

        self._chunks = [IDENTITY] * self.config.n_chunks
        candidates = self.candidate_chunks(state)
        self._select_working_memory(candidates, state_vector)
        snapshot = self._evaluate(state_vector, actions, reward)

        self._eligibility_trace.fill(0.0)
        self._action_eligibility_trace.fill(0.0)

        self._snapshot = snapshot
        self._phase = EpisodePhase.ACTIVE
        self._total_episodes += 1
        logger.debug(
            f"Episode {self._total_episodes} started: WM={list(snapshot.working_memory)}, "
            f"action={snapshot.action}, V={snapshot.value:.4f}, Q={snapshot.q_value:.4f}"
        )
        return snapshot.action

    def step(self, state: str, possible_actions: Sequence[str], reward: float) -> str:
        """Advance one step: choose contents and action, then learn.

        The state is for time t+1 and the reward for time t. The TD update
        uses the reward carried from the previous call, so the reward passed
        here is applied on the next step (or via absorb_reward).

        The chosen action is assumed to be taken; learning is on-policy.

        Returns:
            Name of the chosen action.

        Raises:
            EpisodeStateError: If no episode is active.
        """
        previous = self._require_active("step")
        actions = self._check_actions(possible_actions)
        state_vector = self.state_representation(state)
        self._state = state

        self._update_traces(previous)

        candidates = self.candidate_chunks(state, retained=self._chunks)
        self._select_working_memory(candidates, state_vector)
        snapshot = self._evaluate(state_vector, actions, reward)

        alpha = self.critic.alpha
        error = self.critic.td_error(previous.reward, snapshot.value, previous.value)
        self._weights += alpha * error * self._eligibility_trace

        q_error = self.critic.td_error(previous.reward, snapshot.q_value, previous.q_value)
        self._action_weights += alpha * q_error * self._action_eligibility_trace

        self._snapshot = snapshot
        self._total_steps += 1
        logger.debug(
            f"Step {self._total_steps}: WM={list(snapshot.working_memory)}, "
            f"action={snapshot.action}, td_error={error:.4f}, q_td_error={q_error:.4f}"
        )
        return snapshot.action

    def absorb_reward(self, reward: float) -> None:
        """Finish the episode with a final reward.

        Updates the traces with the last stored representations and applies
        a terminal TD update (no bootstrapped next value) to both weight
        vectors. No contents or action are chosen.

        Raises:
            EpisodeStateError: If no episode is active.
        """
        previous = self._require_active("absorb_reward")
        self._update_traces(previous)

        alpha = self.critic.alpha
        error = self.critic.terminal_td_error(reward, previous.value)
        self._weights += alpha * error * self._eligibility_trace

        q_error = self.critic.terminal_td_error(reward, previous.q_value)
        self._action_weights += alpha * q_error * self._action_eligibility_trace

        self._phase = EpisodePhase.TERMINATED
        logger.debug(
            f"Episode {self._total_episodes} absorbed reward {reward}: "
            f"td_error={error:.4f}, q_td_error={q_error:.4f}"
        )

    # --------------- Working memory selection ---------------
    def candidate_chunks(self, state: str, retained: Iterable[str] = ()) -> List[str]:
        """Sorted, duplicate-free chunks that may occupy working memory.

        Args:
            state: State text, terms separated by "+".
            retained: Chunks currently held, which compete to be kept.
        """
        candidates = set()
        for term in explode(state, DISJUNCTION_DELIMITER):
            if term == IDENTITY:
                continue
            candidates.update(self.hrrengine.unpack_simple(term))
        candidates.update(chunk for chunk in retained if chunk != IDENTITY)
        return sorted(candidates)

    def find_most_valuable_chunks(
            self,
            candidates: Sequence[str],
            state_vector: np.ndarray,
    ) -> Tuple[Tuple[str, ...], float]:
        """Exhaustively search candidate subsets for the most valuable contents.

        Subsets of size 1..min(n_chunks, len(candidates)) are visited in
        lexicographic order of candidate positions. The empty working memory
        is the baseline, and a subset replaces the best so far only if its
        value is strictly greater, so earlier ties win.

        The chosen contents are stored as the new working memory.

        Args:
            candidates: Sorted, duplicate-free candidate chunk names.
            state_vector: Representation of the current state.

        Returns:
            Tuple of (contents, value), contents padded with "I".
        """
        n_slots = self.config.n_chunks
        best = (IDENTITY,) * n_slots
        best_value = self._value_of_contents(best, state_vector)

        for size in range(1, min(n_slots, len(candidates)) + 1):
            padding = (IDENTITY,) * (n_slots - size)
            for combination in itertools.combinations(candidates, size):
                contents = combination + padding
                value = self._value_of_contents(contents, state_vector)
                if value > best_value:
                    best, best_value = contents, value

        self._chunks = list(best)
        return best, best_value

    def choose_random_working_memory_contents(
            self, candidates: Sequence[str]
    ) -> Tuple[str, ...]:
        """Fill working memory with randomly drawn candidates.

        Slots are filled left to right. For each slot an index is drawn
        uniformly from [-1, len(pool) - 1]. A positive index moves that
        candidate into the slot; an index of 0 or -1 empties this slot and
        every slot after it. Candidate 0 of the pool can therefore never be
        drawn. After each accepted draw the slots filled before it are
        sorted, while the new chunk stays in its own slot.

        Returns:
            The new contents.
        """
        pool = list(candidates)
        chunks = [IDENTITY] * self.config.n_chunks
        for i in range(len(chunks)):
            if not pool:
                break
            index = int(self._rng.integers(-1, len(pool)))
            if index > 0:
                chunks[i] = pool.pop(index)
                chunks[:i] = sorted(chunks[:i])
            else:
                pool.clear()
        self._chunks = chunks
        return tuple(chunks)

    def _select_working_memory(self, candidates: List[str], state_vector: np.ndarray) -> None:
        if self._rng.random() < self.critic.epsilon:
            self.choose_random_working_memory_contents(candidates)
        else:
            self.find_most_valuable_chunks(candidates, state_vector)

    # --------------- Representations ---------------
    def state_representation(self, state: str) -> np.ndarray:
        """Sum of the representations of the state's "+" separated terms."""
        terms = explode(state, DISJUNCTION_DELIMITER)
        if not terms:
            raise ValueError(f"state must name at least one concept, got {state!r}")
        return self.hrrengine.add(terms)

    def contents_representation(
            self, contents: Sequence[str], state_vector: np.ndarray
    ) -> np.ndarray:
        """Representation of working-memory contents bound to a state.

        The chunks are convolved together and permuted, so that a chunk held
        in working memory differs from the same concept in the state. An
        all-empty working memory is the identity and is left unpermuted.
        """
        engine = self.hrrengine
        representation = engine.query(contents[0])
        for chunk in contents[1:]:
            representation = engine.convolve(representation, engine.query(chunk))
        if not np.isclose(engine.dot(engine.identity(), representation), 1.0):
            representation = algebra.permute(representation, self._permutation)
        return engine.convolve(representation, state_vector)

    def inverse_permute(self, vector: np.ndarray) -> np.ndarray:
        """Undo the controller's fixed permutation."""
        return algebra.unpermute(self.hrrengine.check_dimension(vector), self._permutation)

    def _value_of_contents(self, contents: Sequence[str], state_vector: np.ndarray) -> float:
        return self.critic.value(
            self.contents_representation(contents, state_vector), self._weights
        )

    def _evaluate(self, state_vector: np.ndarray, actions: List[str], reward: float) -> StepSnapshot:
        representation = self.contents_representation(self._chunks, state_vector)
        value = self.critic.value(representation, self._weights)
        action, action_vector, q_value = self._find_most_valuable_action(
            actions, representation
        )
        return StepSnapshot(
            action=action,
            reward=float(reward),
            value=value,
            q_value=q_value,
            state_wm_vector=representation,
            action_vector=action_vector,
            working_memory=tuple(self._chunks),
        )

    def _find_most_valuable_action(
            self, actions: List[str], state_wm: np.ndarray
    ) -> Tuple[str, np.ndarray, float]:
        best_action: Optional[str] = None
        best_vector: Optional[np.ndarray] = None
        best_value = -np.inf
        for action in actions:
            representation = self.hrrengine.convolve(self.hrrengine.query(action), state_wm)
            value = self.critic.value(representation, self._action_weights)
            if best_action is None or value > best_value:
                best_action, best_vector, best_value = action, representation, value
        return best_action, best_vector, best_value

    # --------------- Value queries ---------------
    def value_of_state(self, state: str) -> float:
        """V of the state alone, ignoring working memory."""
        return self.critic.value(self.state_representation(state), self._weights)

    def value_of_state_with_working_memory(self, state: str) -> float:
        """V of a state combined with the current working-memory contents."""
        return self._value_of_contents(self._chunks, self.state_representation(state))

    def value_of_contents(self, state: str, contents: Sequence[str]) -> float:
        """V of a state combined with arbitrary working-memory contents."""
        if len(contents) == 0:
            raise ValueError("contents must hold at least one chunk")
        return self._value_of_contents(list(contents), self.state_representation(state))

    # --------------- Learning internals ---------------
    def _update_traces(self, previous: StepSnapshot) -> None:
        decay = self.critic.lambda_
        self._eligibility_trace *= decay
        self._eligibility_trace += previous.state_wm_vector / np.sqrt(2)
        self._action_eligibility_trace *= decay
        self._action_eligibility_trace += previous.action_vector / np.sqrt(2)

    def _require_active(self, operation: str) -> StepSnapshot:
        if self._phase is not EpisodePhase.ACTIVE or self._snapshot is None:
            raise EpisodeStateError(
                f"{operation}() requires an active episode (phase is {self._phase.value}); "
                "call initialize_episode() first"
            )
        return self._snapshot

    @staticmethod
    def _check_actions(possible_actions: Sequence[str]) -> List[str]:
        if isinstance(possible_actions, str):
            raise TypeError("possible_actions must be a sequence of action names, not a string")
        actions = list(possible_actions)
        if not actions:
            raise ValueError("possible_actions must contain at least one action")
        return actions

    # --------------- Working memory and weights ---------------
    def query_working_memory(self, index: Optional[int] = None):
        """All working-memory contents, or the chunk in one slot.

        Args:
            index: Slot index. If None, return every slot.

        Returns:
            List of chunk names ("I" for empty), or a single name.
        """
        if index is None:
            return list(self._chunks)
        if not 0 <= index < len(self._chunks):
            raise IndexError(
                f"working memory index {index} out of range [0, {len(self._chunks)})"
            )
        return self._chunks[index]

    def clear_weights(self, actions: bool = False) -> None:
        """Set the state weights (or the action weights) to zero."""
        target = self._action_weights if actions else self._weights
        target.fill(0.0)
        logger.info(f"Cleared {'action' if actions else 'state'} weights")

    def reset_weights(
            self,
            lower: Optional[float] = None,
            upper: Optional[float] = None,
            actions: bool = False,
    ) -> None:
        """Redraw the state weights (or the action weights) uniformly.

        Args:
            lower: Lower bound. Defaults to config.weight_bounds[0].
            upper: Upper bound. Defaults to config.weight_bounds[1].
            actions: Reset the action weights instead of the state weights.
        """
        default_lower, default_upper = self.config.weight_bounds
        lower = default_lower if lower is None else lower
        upper = default_upper if upper is None else upper
        if not lower < upper:
            raise ValueError(f"lower must be less than upper, got ({lower}, {upper})")
        target = self._action_weights if actions else self._weights
        target[:] = self._rng.uniform(lower, upper, size=target.shape[0])
        logger.info(
            f"Reset {'action' if actions else 'state'} weights to U({lower}, {upper})"
        )

    @property
    def weights(self) -> np.ndarray:
        """State-value weight vector (live array)."""
        return self._weights

    @weights.setter
    def weights(self, values) -> None:
        self._weights = self.hrrengine.check_dimension(values).copy()

    @property
    def action_weights(self) -> np.ndarray:
        """Action-value weight vector (live array)."""
        return self._action_weights

    @action_weights.setter
    def action_weights(self, values) -> None:
        self._action_weights = self.hrrengine.check_dimension(values).copy()

    @property
    def eligibility_trace(self) -> np.ndarray:
        return self._eligibility_trace.copy()

    @property
    def action_eligibility_trace(self) -> np.ndarray:
        return self._action_eligibility_trace.copy()

    @property
    def permutation(self) -> np.ndarray:
        return self._permutation.copy()

    @property
    def snapshot(self) -> Optional[StepSnapshot]:
        """Values and representations carried from the latest step."""
        return self._snapshot

    @property
    def phase(self) -> EpisodePhase:
        return self._phase

    @property
    def state(self) -> Optional[str]:
        return self._state

    @property
    def n_chunks(self) -> int:
        return self.config.n_chunks

    @property
    def statistics(self) -> Dict[str, Any]:
        return {
            "phase": self._phase.value,
            "total_episodes": self._total_episodes,
            "total_steps": self._total_steps,
            "n_concepts": len(self.hrrengine.memory),
            "working_memory": list(self._chunks),
        }

    def copy(self) -> WorkingMemory:
        """Independent copy, including the random generator state."""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return (
            f"WorkingMemory(chunks={' | '.join(self._chunks)}, "
            f"phase={self._phase.value}, vector_size={self.config.vector_size})"
        )


__all__ = ["WorkingMemory", "WorkingMemoryConfig"]
