# Copyright 2025 Thousand Brains Project
#
# Use of this source code is governed by the MIT
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.

"""HRR engine: the public vector-symbolic API.

The engine composes a ConceptMemory with the vector algebra so callers can
work with concept names instead of raw vectors:

- query(name) resolves atomic, composite ("a*b") and disjunctive ("a+b")
  names to vectors.
- query(vector) finds the best-matching known concept name, or None.
- unpack_simple(name) lists the atomic chunks a concept is built from.
- combine_concepts / extract_concept bind and unbind at the name level.

Example:
    >>> engine = HRREngine(HRRConfig(vector_size=1024, seed=3))
    >>> bound = engine.query("red*ball")
    >>> engine.extract_concept("red*ball", "red")
    'ball'
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np

from . import algebra
from .concepts import (
    COMBINE_DELIMITER,
    IDENTITY,
    Atomic,
    Composite,
    ConceptMemory,
    canonical_name,
    explode,
    parse_concept,
)

logger = logging.getLogger(__name__)


@dataclass
class HRRConfig:
    """Configuration for the HRR engine.

    Attributes:
        vector_size: Length of every vector the engine produces.
        similarity_threshold: Dot product a match must exceed in compare()
            and reverse lookups.
        unitary: Generate unitary concept vectors (exact unbinding).
        seed: Seed for the engine's own generator when none is injected.
    """

    vector_size: int = 128
    similarity_threshold: float = 0.5
    unitary: bool = False
    seed: Optional[int] = None

    def __post_init__(self):
        if self.vector_size <= 0:
            raise ValueError(f"vector_size must be positive, got {self.vector_size}")
        if self.vector_size < 32:
            logger.warning(
                f"HRR vector_size {self.vector_size} is very small; "
                "unbinding and reverse lookup will be unreliable."
            )


class HRREngine:
    """Holographic Reduced Representation engine.

    Attributes:
        config: HRRConfig with engine parameters.
        memory: ConceptMemory holding every known concept.
    """

    def __init__(
            self,
            config: Optional[HRRConfig] = None,
            rng: Optional[np.random.Generator] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Engine configuration. Uses defaults if None.
            rng: Generator shared with the caller. If None, one is created
                from config.seed.
        """
        self.config = config or HRRConfig()
        self._rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.memory = ConceptMemory(
            self.config.vector_size, rng=self._rng, unitary=self.config.unitary
        )

    @property
    def vector_size(self) -> int:
        return self.config.vector_size

    @property
    def threshold(self) -> float:
        return self.config.similarity_threshold

    # --------------- Name <-> vector ---------------
    def query(self, item: Union[str, np.ndarray, Sequence[float]]):
        """Resolve a name to a vector, or a vector to a name.

        Args:
            item: A concept name, or a vector of length vector_size.

        Returns:
            For a name, its vector (created on first use). For a vector, the
            best-matching known name above the similarity threshold, or None
            when nothing matches.
        """
        if isinstance(item, str):
            return self._query_name(item)
        return self._query_vector(item)

    def _query_name(self, name: str) -> np.ndarray:
        concept = parse_concept(name)
        if isinstance(concept, Atomic):
            return self.memory.lookup_or_create(concept.name)
        if isinstance(concept, Composite):
            key = canonical_name(name)
            known = self.memory.get(key)
            if known is not None:
                return known
            parts = self.memory.decompose(key)
            vec = self.memory.lookup_or_create(parts[0])
            for part in parts[1:]:
                vec = algebra.convolve(vec, self.memory.lookup_or_create(part))
            return self.memory.store(key, vec)
        return algebra.add([self._query_name(term.name) for term in concept.terms])

    def _query_vector(self, vector) -> Optional[str]:
        vec = self.check_dimension(vector)
        best_name: Optional[str] = None
        best_score = self.threshold
        for name, stored in self.memory.items():
            score = float(np.dot(vec, stored))
            if score > best_score:
                best_name, best_score = name, score
        return best_name

    def encode_concept(self, name: str) -> np.ndarray:
        """Ensure a concept has a representation and return it."""
        return self._query_name(name)

    def encode_concepts(self, names: Iterable[str]) -> None:
        for name in names:
            self.encode_concept(name)

    def construct(self, name: str) -> np.ndarray:
        """Encode a concept together with every sub-combination of its parts."""
        for sub_name in self.unpack(name):
            self.encode_concept(sub_name)
        return self.encode_concept(name)

    def concept_names(self) -> List[str]:
        return self.memory.names()

    # --------------- Structure ---------------
    def unpack_simple(self, name: str) -> List[str]:
        """Sorted, duplicate-free atomic constituents, excluding the identity."""
        return sorted({part for part in self.memory.decompose(name) if part != IDENTITY})

    def unpack(self, name: str) -> List[str]:
        """Every non-empty sub-combination of a concept's atomic parts.

        Each combination is returned as a canonical composite name, so
        unpack("b*a") == ["a", "a*b", "b"].
        """
        parts = self.unpack_simple(name)
        combos = set()
        for r in range(1, len(parts) + 1):
            for combo in itertools.combinations(parts, r):
                combos.add(COMBINE_DELIMITER.join(combo))
        return sorted(combos)

    def combine_concepts(self, concept1: str, concept2: str) -> str:
        """Name of the composite of two concepts, in canonical order."""
        return canonical_name(f"{concept1}{COMBINE_DELIMITER}{concept2}")

    def extract_concept(self, complex_concept: str, base_concept: str) -> Optional[str]:
        """Name of the constituent that, bound with base_concept, gives complex_concept.

        Returns:
            The recovered name, or None if the unbound vector matches nothing.
        """
        recovered = self.memory.extract(
            self.query(complex_concept), self.query(base_concept)
        )
        return self._query_vector(recovered)

    @staticmethod
    def explode(text: str, delimiter: str) -> List[str]:
        return explode(text, delimiter)

    # --------------- Algebra ---------------
    def identity(self) -> np.ndarray:
        return self.memory.lookup_or_create(IDENTITY)

    def convolve(self, a, b) -> np.ndarray:
        return algebra.convolve(self.check_dimension(a), self.check_dimension(b))

    def correlate(self, composite, part) -> np.ndarray:
        return algebra.correlate(
            self.check_dimension(composite), self.check_dimension(part)
        )

    def dot(self, a, b) -> float:
        return algebra.dot(self.check_dimension(a), self.check_dimension(b))

    def add(self, items: Sequence[Union[str, np.ndarray]]) -> np.ndarray:
        """Sum of concepts given by name or by vector."""
        vectors = [
            self._query_name(item) if isinstance(item, str) else self.check_dimension(item)
            for item in items
        ]
        return algebra.add(vectors)

    def compare(self, a, b) -> bool:
        """True if the two vectors are similar enough to be the same concept."""
        return self.dot(a, b) > self.threshold

    def vector_from_values(self, values: Sequence[float]) -> np.ndarray:
        """Wrap user-supplied values as an HRR after checking the length."""
        return self.check_dimension(np.array(values, dtype=np.float64))

    def check_dimension(self, vector) -> np.ndarray:
        return self.memory.check_dimension(vector)

    def __repr__(self) -> str:
        return (
            f"HRREngine(vector_size={self.vector_size}, "
            f"threshold={self.threshold}, n_concepts={len(self.memory)})"
        )


__all__ = ["HRRConfig", "HRREngine"]
