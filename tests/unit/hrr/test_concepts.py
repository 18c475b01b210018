"""Tests for concept name parsing and ConceptMemory."""

from __future__ import annotations

import numpy as np
import pytest

from wmtk.hrr.algebra import DimensionMismatch, convolve, cosine_similarity, identity
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


# ==================== Name grammar ====================


class TestExplode:
    def test_splits_on_delimiter(self):
        assert explode("a+b+c", "+") == ["a", "b", "c"]

    def test_drops_empty_pieces_and_whitespace(self):
        assert explode(" a + +b+", "+") == ["a", "b"]

    def test_no_delimiter(self):
        assert explode("ball", "*") == ["ball"]

    def test_empty_string(self):
        assert explode("", "+") == []


class TestParseConcept:
    def test_atomic(self):
        assert parse_concept("ball") == Atomic("ball")

    def test_composite_keeps_order(self):
        assert parse_concept("red*ball") == Composite(("red", "ball"))

    def test_disjunction(self):
        concept = parse_concept("red*ball+table")
        assert isinstance(concept, Disjunction)
        assert concept.terms == (Composite(("red", "ball")), Atomic("table"))
        assert concept.name == "red*ball+table"

    def test_identity_parts_are_dropped(self):
        assert parse_concept("I*ball") == Atomic("ball")
        assert parse_concept("a*I*b") == Composite(("a", "b"))

    def test_all_identity_composite(self):
        assert parse_concept("I*I") == Atomic(IDENTITY)

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="empty concept name"):
            parse_concept("")
        with pytest.raises(ValueError, match="empty concept name"):
            parse_concept("+")

    def test_parse_is_cached(self):
        assert parse_concept("x*y") is parse_concept("x*y")


class TestCanonicalName:
    def test_reorders_composite(self):
        assert canonical_name("b*a") == "a*b"
        assert canonical_name("c*a*b") == "a*b*c"

    def test_atomic_unchanged(self):
        assert canonical_name("ball") == "ball"

    def test_disjunction_terms_keep_order(self):
        assert canonical_name("z+b*a") == "z+a*b"


# ==================== ConceptMemory ====================


class TestConceptMemory:
    @pytest.fixture
    def memory(self):
        return ConceptMemory(512, rng=np.random.default_rng(11))

    def test_identity_preloaded(self, memory):
        assert IDENTITY in memory
        np.testing.assert_array_equal(memory.lookup_or_create(IDENTITY), identity(512))

    def test_memoization(self, memory):
        """The same name always resolves to the same vector."""
        first = memory.lookup_or_create("apple")
        second = memory.lookup_or_create("apple")
        np.testing.assert_array_equal(first, second)
        assert len(memory) == 2

    def test_distinct_names_nearly_orthogonal(self, memory):
        a = memory.lookup_or_create("apple")
        b = memory.lookup_or_create("banana")
        assert abs(float(np.dot(a, b))) < 0.3

    def test_generation_is_seeded(self):
        m1 = ConceptMemory(64, rng=np.random.default_rng(5))
        m2 = ConceptMemory(64, rng=np.random.default_rng(5))
        for name in ("x", "y", "z"):
            np.testing.assert_array_equal(m1.lookup_or_create(name), m2.lookup_or_create(name))

    def test_generation_order_matters(self):
        """Vectors come from the stream, not from the name."""
        m1 = ConceptMemory(64, rng=np.random.default_rng(5))
        m2 = ConceptMemory(64, rng=np.random.default_rng(5))
        m1.lookup_or_create("x")
        m2.lookup_or_create("y")
        np.testing.assert_array_equal(m1.get("x"), m2.get("y"))

    def test_unitary_memory(self):
        memory = ConceptMemory(128, rng=np.random.default_rng(1), unitary=True)
        vec = memory.lookup_or_create("u")
        np.testing.assert_allclose(np.abs(np.fft.rfft(vec)), 1.0, atol=1e-9)

    def test_empty_name_rejected(self, memory):
        with pytest.raises(ValueError):
            memory.lookup_or_create("")

    @pytest.mark.parametrize("name", ["a*b", "a+b", "I*ball", "red*ball+table"])
    def test_non_atomic_name_rejected(self, memory, name):
        """Composite and disjunctive names are never given a random vector."""
        with pytest.raises(ValueError, match="atomic"):
            memory.lookup_or_create(name)
        assert name not in memory

    def test_store_keeps_existing(self, memory):
        original = memory.lookup_or_create("apple")
        returned = memory.store("apple", np.zeros(512))
        np.testing.assert_array_equal(returned, original)

    def test_store_checks_dimension(self, memory):
        with pytest.raises(DimensionMismatch):
            memory.store("short", np.zeros(10))

    def test_decompose(self, memory):
        assert memory.decompose("ball") == ["ball"]
        assert memory.decompose("red*ball") == ["red", "ball"]
        assert memory.decompose("red*ball+table") == ["red", "ball", "table"]

    def test_decompose_keeps_duplicates(self, memory):
        assert memory.decompose("a*b+b") == ["a", "b", "b"]

    def test_extract(self, memory):
        a = memory.lookup_or_create("a")
        b = memory.lookup_or_create("b")
        recovered = memory.extract(convolve(a, b), a)
        assert cosine_similarity(recovered, b) > 0.5

    def test_extract_checks_dimension(self, memory):
        with pytest.raises(DimensionMismatch):
            memory.extract(np.ones(4), np.ones(4))

    def test_names_sorted(self, memory):
        memory.lookup_or_create("zeta")
        memory.lookup_or_create("alpha")
        assert memory.names() == ["I", "alpha", "zeta"]

    def test_statistics(self, memory):
        memory.lookup_or_create("a")
        memory.lookup_or_create("a")
        stats = memory.statistics
        assert stats["n_concepts"] == 2
        assert stats["total_generated"] == 1
        assert stats["vector_size"] == 512

    def test_invalid_vector_size(self):
        with pytest.raises(ValueError):
            ConceptMemory(0)
