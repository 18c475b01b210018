# Copyright 2025 Thousand Brains Project
#
# Use of this source code is governed by the MIT
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.

"""Working Memory Toolkit - adaptive working memory with TD learning.

This package implements an agent that learns which symbolic chunks of its
input to keep in a small working memory, and which action to take, using
temporal-difference learning with eligibility traces. Chunks, states and
actions are encoded as Holographic Reduced Representations (HRRs).

Key Concepts:
    HRR: A fixed-length real vector standing for a concept. Atomic concepts
        are random vectors; composite concepts ("red*ball") are built by
        circular convolution and taken apart by circular correlation;
        multi-term states ("ball+table") are sums.

    Working memory: n_chunks slots, each holding a concept name or the
        reserved identity "I" (empty). Contents are bound together with the
        state to form the representation that is valued.

    Critic: A linear value function over HRRs plus the TD(lambda)
        hyperparameters (alpha, gamma, lambda, epsilon).

Components:
    WorkingMemory: The controller. Provides:
        - initialize_episode(): choose contents and first action
        - step(): choose contents and action, learn from the last reward
        - absorb_reward(): terminal update at the end of an episode
        - query_working_memory(): inspect the slots

    HRREngine: Concept encoding, composition, comparison and reverse lookup.

    ConceptMemory: Name to vector store with lazy, seeded generation.

    CriticNetwork: Value estimates and TD errors.

Example:
    >>> from wmtk import WorkingMemory, WorkingMemoryConfig
    >>> wm = WorkingMemory(WorkingMemoryConfig(vector_size=512, n_chunks=1, seed=5))
    >>> for episode in range(10):
    ...     action = wm.initialize_episode("cue_left+noise", ["left", "right"])
    ...     action = wm.step("delay", ["left", "right"], reward=0.0)
    ...     wm.absorb_reward(1.0 if action == "left" else 0.0)

Structure:
    wmtk.hrr.algebra     - Convolution, correlation, permutation, random vectors
    wmtk.hrr.concepts    - Concept name grammar and ConceptMemory
    wmtk.hrr.engine      - HRREngine
    wmtk.critic          - CriticNetwork
    wmtk.types           - StepSnapshot, EpisodePhase, EpisodeStateError
    wmtk.working_memory  - WorkingMemory controller
"""

from wmtk.critic import CriticConfig, CriticNetwork
from wmtk.hrr.algebra import DimensionMismatch
from wmtk.hrr.concepts import IDENTITY, ConceptMemory
from wmtk.hrr.engine import HRRConfig, HRREngine
from wmtk.types import EpisodePhase, EpisodeStateError, StepSnapshot
from wmtk.working_memory import WorkingMemory, WorkingMemoryConfig

__all__ = [
    # === Controller ===
    "WorkingMemory",
    "WorkingMemoryConfig",
    "EpisodePhase",
    "EpisodeStateError",
    "StepSnapshot",

    # === Critic ===
    "CriticConfig",
    "CriticNetwork",

    # === HRR ===
    "ConceptMemory",
    "DimensionMismatch",
    "HRRConfig",
    "HRREngine",
    "IDENTITY",
]
