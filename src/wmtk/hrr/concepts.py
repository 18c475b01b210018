# Copyright 2025 Thousand Brains Project
#
# Use of this source code is governed by the MIT
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.
"""Concept names and the associative concept memory.

Concept names follow a small grammar:

    disjunction := composite ("+" composite)*
    composite   := atomic ("*" atomic)*

A ``+`` joins terms that are summed (used for multi-term states); a ``*``
joins atomic concepts that are bound by circular convolution. The name
``"I"`` is reserved for the identity of convolution and doubles as the
empty working-memory slot.

Names are parsed once into tagged variants (Atomic, Composite, Disjunction)
and the parse is cached, so resolving a name never re-reads the grammar.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from .algebra import (
    DimensionMismatch,
    as_vector,
    correlate,
    identity,
    random_unit_vector,
    random_unitary_vector,
)

logger = logging.getLogger(__name__)

IDENTITY = "I"
COMBINE_DELIMITER = "*"
DISJUNCTION_DELIMITER = "+"


# ---------------------------------------------------------------------------
# Name grammar
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Atomic:
    """A single named concept."""

    name: str


@dataclass(frozen=True)
class Composite:
    """Atomic concepts bound together by convolution.

    Attributes:
        parts: Ordered atomic names, at least two.
    """

    parts: Tuple[str, ...]

    @property
    def name(self) -> str:
        return COMBINE_DELIMITER.join(self.parts)


@dataclass(frozen=True)
class Disjunction:
    """Concepts superposed by addition.

    Attributes:
        terms: Parsed terms in their written order.
    """

    terms: Tuple[Union[Atomic, Composite], ...]

    @property
    def name(self) -> str:
        return DISJUNCTION_DELIMITER.join(term.name for term in self.terms)


Concept = Union[Atomic, Composite, Disjunction]


def explode(text: str, delimiter: str) -> List[str]:
    """Split text on delimiter, stripping whitespace and dropping empty pieces."""
    return [piece.strip() for piece in text.split(delimiter) if piece.strip()]


@lru_cache(maxsize=4096)
def parse_concept(name: str) -> Concept:
    """Parse a concept name into its tagged variant.

    Identity parts inside a composite are dropped since they bind to
    nothing; a composite made only of identities is the identity itself.

    Raises:
        ValueError: If the name contains no concept.
    """
    terms = explode(name, DISJUNCTION_DELIMITER)
    if not terms:
        raise ValueError(f"empty concept name: {name!r}")
    if len(terms) > 1:
        return Disjunction(tuple(_parse_term(term) for term in terms))
    return _parse_term(terms[0])


def _parse_term(term: str) -> Union[Atomic, Composite]:
    parts = explode(term, COMBINE_DELIMITER)
    if not parts:
        raise ValueError(f"empty concept name: {term!r}")
    non_identity = tuple(part for part in parts if part != IDENTITY)
    if not non_identity:
        return Atomic(IDENTITY)
    if len(non_identity) == 1:
        return Atomic(non_identity[0])
    return Composite(non_identity)


def canonical_name(name: str) -> str:
    """Name with composite parts in lexicographic order.

    Convolution is commutative, so "b*a" and "a*b" name the same concept.
    """
    concept = parse_concept(name)
    if isinstance(concept, Disjunction):
        return DISJUNCTION_DELIMITER.join(_canonical_term(t) for t in concept.terms)
    return _canonical_term(concept)


def _canonical_term(term: Union[Atomic, Composite]) -> str:
    if isinstance(term, Composite):
        return COMBINE_DELIMITER.join(sorted(term.parts))
    return term.name


# ---------------------------------------------------------------------------
# Concept memory
# ---------------------------------------------------------------------------
class ConceptMemory:
    """Name to vector associative store with lazy generation.

    Unknown atomic names get a fresh random vector drawn from the shared
    generator on first use; the vector is memoized for the lifetime of the
    memory. Vectors are therefore reproducible for a fixed seed and call
    order, but are not derived from the name itself.

    The memory only grows. There is no capacity bound or eviction policy.

    Attributes:
        vector_size: Length of every stored vector.
        unitary: Whether generated vectors are unitary.
    """

    def __init__(
            self,
            vector_size: int,
            rng: Optional[np.random.Generator] = None,
            unitary: bool = False,
    ) -> None:
        """Initialize concept memory.

        Args:
            vector_size: Length of every stored vector.
            rng: Generator used for new concepts. If None, uses system entropy.
            unitary: Generate unitary vectors instead of N(0, 1/n) vectors.
        """
        if vector_size <= 0:
            raise ValueError(f"vector_size must be positive, got {vector_size}")
        self.vector_size = int(vector_size)
        self.unitary = bool(unitary)
        self._rng = rng if rng is not None else np.random.default_rng()
        self._concepts: Dict[str, np.ndarray] = {IDENTITY: identity(self.vector_size)}
        self._total_generated = 0

    def lookup_or_create(self, name: str) -> np.ndarray:
        """Return the vector for an atomic name, generating it on first use.

        Raises:
            ValueError: If the name is empty or is not atomic. Composite and
                disjunctive names are built from their parts by HRREngine.
        """
        if not name:
            raise ValueError("concept name must be non-empty")
        if COMBINE_DELIMITER in name or DISJUNCTION_DELIMITER in name:
            raise ValueError(f"not an atomic concept name: {name!r}")
        vec = self._concepts.get(name)
        if vec is None:
            if self.unitary:
                vec = random_unitary_vector(self._rng, self.vector_size)
            else:
                vec = random_unit_vector(self._rng, self.vector_size)
            self._concepts[name] = vec
            self._total_generated += 1
            logger.debug(f"New concept: {name} ({len(self._concepts)} known)")
        return vec

    def store(self, name: str, vector) -> np.ndarray:
        """Store a computed vector under name, replacing nothing already known.

        Returns:
            The stored vector (the existing one if name was already known).
        """
        if not name:
            raise ValueError("concept name must be non-empty")
        existing = self._concepts.get(name)
        if existing is not None:
            return existing
        vec = self.check_dimension(vector)
        self._concepts[name] = vec
        return vec

    def get(self, name: str) -> Optional[np.ndarray]:
        """Return the stored vector without creating one."""
        return self._concepts.get(name)

    def decompose(self, name: str) -> List[str]:
        """Ordered atomic constituents of a concept name."""
        concept = parse_concept(name)
        if isinstance(concept, Atomic):
            return [concept.name]
        if isinstance(concept, Composite):
            return list(concept.parts)
        parts: List[str] = []
        for term in concept.terms:
            parts.extend(self.decompose(term.name))
        return parts

    def extract(self, composite_vector, known_part_vector) -> np.ndarray:
        """Recover the unknown constituent of a composite given a known one."""
        return correlate(
            self.check_dimension(composite_vector),
            self.check_dimension(known_part_vector),
        )

    def check_dimension(self, vector) -> np.ndarray:
        """Validate that vector has this memory's length."""
        vec = as_vector(vector)
        if vec.shape[0] != self.vector_size:
            raise DimensionMismatch(
                f"expected vector of length {self.vector_size}, got {vec.shape[0]}"
            )
        return vec

    def names(self) -> List[str]:
        """Sorted names of all known concepts."""
        return sorted(self._concepts)

    def items(self) -> Iterator[Tuple[str, np.ndarray]]:
        return iter(self._concepts.items())

    @property
    def statistics(self) -> Dict[str, int]:
        return {
            "n_concepts": len(self._concepts),
            "total_generated": self._total_generated,
            "vector_size": self.vector_size,
        }

    def __contains__(self, name: object) -> bool:
        return name in self._concepts

    def __len__(self) -> int:
        return len(self._concepts)

    def __repr__(self) -> str:
        return (
            f"ConceptMemory(n_concepts={len(self)}, "
            f"vector_size={self.vector_size}, unitary={self.unitary})"
        )


__all__ = [
    "Atomic",
    "COMBINE_DELIMITER",
    "Composite",
    "Concept",
    "ConceptMemory",
    "DISJUNCTION_DELIMITER",
    "Disjunction",
    "IDENTITY",
    "canonical_name",
    "explode",
    "parse_concept",
]
