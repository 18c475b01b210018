"""Tests for the HRR engine."""

from __future__ import annotations

import numpy as np
import pytest

from wmtk.hrr.algebra import DimensionMismatch, convolve, cosine_similarity, random_unit_vector
from wmtk.hrr.concepts import IDENTITY
from wmtk.hrr.engine import HRRConfig, HRREngine


@pytest.fixture
def engine():
    """Engine large enough for reliable unbinding."""
    return HRREngine(HRRConfig(vector_size=1024, seed=3))


class TestHRRConfig:
    def test_default_config(self):
        config = HRRConfig()
        assert config.vector_size > 0
        assert config.similarity_threshold > 0

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            HRRConfig(vector_size=0)


class TestQueryByName:
    def test_atomic_is_memoized(self, engine):
        np.testing.assert_array_equal(engine.query("cat"), engine.query("cat"))

    def test_identity(self, engine):
        np.testing.assert_array_equal(engine.query(IDENTITY), engine.identity())
        assert engine.identity()[0] == 1.0

    def test_composite_is_convolution(self, engine):
        expected = convolve(engine.query("red"), engine.query("ball"))
        np.testing.assert_allclose(engine.query("red*ball"), expected, atol=1e-12)

    def test_composite_cannot_be_shadowed_through_memory(self, engine):
        with pytest.raises(ValueError):
            engine.memory.lookup_or_create("a*b")
        expected = convolve(engine.query("a"), engine.query("b"))
        assert cosine_similarity(engine.query("a*b"), expected) > 0.999

    def test_composite_order_does_not_matter(self, engine):
        np.testing.assert_array_equal(engine.query("ball*red"), engine.query("red*ball"))

    def test_composite_is_stored_under_canonical_name(self, engine):
        engine.query("ball*red")
        assert "ball*red" in engine.concept_names()

    def test_three_part_composite(self, engine):
        expected = convolve(convolve(engine.query("a"), engine.query("b")), engine.query("c"))
        np.testing.assert_allclose(engine.query("c*a*b"), expected, atol=1e-10)

    def test_disjunction_is_sum(self, engine):
        expected = engine.query("table") + engine.query("red*ball")
        np.testing.assert_allclose(engine.query("red*ball+table"), expected, atol=1e-12)

    def test_disjunction_is_not_stored(self, engine):
        engine.query("x+y")
        assert "x+y" not in engine.concept_names()

    def test_seeded_engines_agree(self):
        e1 = HRREngine(HRRConfig(vector_size=64, seed=9))
        e2 = HRREngine(HRRConfig(vector_size=64, seed=9))
        np.testing.assert_array_equal(e1.query("a*b"), e2.query("a*b"))


class TestQueryByVector:
    def test_reverse_lookup(self, engine):
        vec = engine.query("cat")
        engine.query("dog")
        assert engine.query(vec) == "cat"

    def test_unmatched_returns_none(self, engine):
        engine.encode_concepts(["cat", "dog", "bird"])
        stranger = random_unit_vector(np.random.default_rng(123), 1024)
        assert engine.query(stranger) is None

    def test_reverse_lookup_checks_dimension(self, engine):
        with pytest.raises(DimensionMismatch):
            engine.query(np.ones(10))


class TestStructure:
    def test_unpack_simple(self, engine):
        assert engine.unpack_simple("red*ball") == ["ball", "red"]

    def test_unpack_simple_deduplicates(self, engine):
        assert engine.unpack_simple("b*a*b") == ["a", "b"]

    def test_unpack_simple_skips_identity(self, engine):
        assert engine.unpack_simple("I") == []
        assert engine.unpack_simple("I*ball") == ["ball"]

    def test_unpack_lists_all_combinations(self, engine):
        assert engine.unpack("c*a*b") == ["a", "a*b", "a*b*c", "a*c", "b", "b*c", "c"]

    def test_combine_concepts(self, engine):
        assert engine.combine_concepts("ball", "red") == "ball*red"
        assert engine.combine_concepts("red", "ball") == "ball*red"
        assert engine.combine_concepts("c*a", "b") == "a*b*c"

    def test_extract_concept(self, engine):
        engine.construct("red*ball")
        assert engine.extract_concept("red*ball", "red") == "ball"
        assert engine.extract_concept("red*ball", "ball") == "red"

    def test_construct_encodes_constituents(self, engine):
        engine.construct("x*y*z")
        names = engine.concept_names()
        for name in ("x", "y", "z", "x*y", "x*z", "y*z", "x*y*z"):
            assert name in names

    def test_explode(self):
        assert HRREngine.explode("a+b", "+") == ["a", "b"]


class TestAlgebraPassThrough:
    def test_compare(self, engine):
        cat = engine.query("cat")
        dog = engine.query("dog")
        assert engine.compare(cat, cat)
        assert not engine.compare(cat, dog)

    def test_add_names_and_vectors(self, engine):
        total = engine.add(["cat", engine.query("dog")])
        np.testing.assert_allclose(total, engine.query("cat") + engine.query("dog"))

    def test_correlate_recovers(self, engine):
        bound = engine.convolve(engine.query("a"), engine.query("b"))
        recovered = engine.correlate(bound, engine.query("a"))
        assert engine.dot(recovered, engine.query("b")) > 0.5

    def test_dimension_checks(self, engine):
        with pytest.raises(DimensionMismatch):
            engine.convolve(np.ones(1024), np.ones(8))
        with pytest.raises(DimensionMismatch):
            engine.dot(np.ones(8), np.ones(8))

    def test_vector_from_values(self):
        small = HRREngine(HRRConfig(vector_size=4, seed=0))
        np.testing.assert_array_equal(small.vector_from_values([1, 2, 3, 4]), [1.0, 2.0, 3.0, 4.0])
        with pytest.raises(DimensionMismatch):
            small.vector_from_values([1, 2, 3])
