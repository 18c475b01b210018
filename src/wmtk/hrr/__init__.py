"""Holographic Reduced Representations.

This subpackage holds the vector-symbolic layer of the toolkit: the
convolution algebra, concept name parsing with the associative concept
memory, and the HRREngine that ties them together. It has no dependency on
the learning code in wmtk.working_memory.
"""

from wmtk.hrr.algebra import (
    DimensionMismatch,
    add,
    convolve,
    correlate,
    cosine_similarity,
    dot,
    identity,
    involution,
    is_identity,
    permute,
    random_permutation,
    random_unit_vector,
    random_unitary_vector,
    unpermute,
)
from wmtk.hrr.concepts import (
    IDENTITY,
    Atomic,
    Composite,
    ConceptMemory,
    Disjunction,
    canonical_name,
    explode,
    parse_concept,
)
from wmtk.hrr.engine import HRRConfig, HRREngine

__all__ = [
    # === Algebra ===
    "DimensionMismatch",
    "add",
    "convolve",
    "correlate",
    "cosine_similarity",
    "dot",
    "identity",
    "involution",
    "is_identity",
    "permute",
    "random_permutation",
    "random_unit_vector",
    "random_unitary_vector",
    "unpermute",

    # === Concepts ===
    "IDENTITY",
    "Atomic",
    "Composite",
    "ConceptMemory",
    "Disjunction",
    "canonical_name",
    "explode",
    "parse_concept",

    # === Engine ===
    "HRRConfig",
    "HRREngine",
]
