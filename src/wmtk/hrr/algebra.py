# Copyright 2025 Thousand Brains Project
#
# Use of this source code is governed by the MIT
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.
"""Vector algebra for Holographic Reduced Representations (HRRs).

This module provides:
- Circular convolution (binding) and circular correlation (unbinding).
- The identity element of convolution and an identity test.
- Dot product, cosine similarity and superposition (addition).
- Random vector generation from an explicitly passed numpy Generator.
- Fixed index permutations and their inverses.

All functions operate on one-dimensional float64 numpy arrays of equal
length. Any length disagreement raises DimensionMismatch.

Typical usage:
    from wmtk.hrr.algebra import convolve, correlate, random_unit_vector

    rng = np.random.default_rng(0)
    a = random_unit_vector(rng, 1024)
    b = random_unit_vector(rng, 1024)
    bound = convolve(a, b)
    recovered = correlate(bound, a)  # approximately b
"""
from __future__ import annotations

from typing import Sequence

import numpy as np


class DimensionMismatch(ValueError):
    """Raised when vectors of different lengths meet in one operation."""


def as_vector(values) -> np.ndarray:
    """Return values as a one-dimensional float64 array."""
    vec = np.asarray(values, dtype=np.float64)
    if vec.ndim != 1:
        raise DimensionMismatch(f"expected a 1-D vector, got shape {vec.shape}")
    return vec


def _check_pair(a, b) -> tuple[np.ndarray, np.ndarray]:
    a = as_vector(a)
    b = as_vector(b)
    if a.shape != b.shape:
        raise DimensionMismatch(
            f"vector lengths differ: {a.shape[0]} != {b.shape[0]}"
        )
    return a, b


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
def identity(n: int) -> np.ndarray:
    """Identity element of circular convolution (unit impulse)."""
    if n <= 0:
        raise ValueError(f"vector size must be positive, got {n}")
    vec = np.zeros(n, dtype=np.float64)
    vec[0] = 1.0
    return vec


def is_identity(v: np.ndarray) -> bool:
    """True if v is exactly the unit impulse."""
    return bool(v[0] == 1.0 and not np.any(v[1:]))


# ---------------------------------------------------------------------------
# Binding
# ---------------------------------------------------------------------------
def convolve(a, b) -> np.ndarray:
    """Circular convolution of two vectors.

    Computed in the frequency domain: the real spectra of both operands are
    multiplied element-wise and transformed back. ``irfft`` normalizes by n.

    Convolving with the identity returns a copy of the other operand,
    bit for bit.

    Args:
        a: First operand.
        b: Second operand, same length as a.

    Returns:
        The bound vector.

    Raises:
        DimensionMismatch: If the operands differ in length.
    """
    a, b = _check_pair(a, b)
    if is_identity(b):
        return a.copy()
    if is_identity(a):
        return b.copy()
    n = a.shape[0]
    return np.fft.irfft(np.fft.rfft(a) * np.fft.rfft(b), n=n)


def correlate(composite, part) -> np.ndarray:
    """Circular correlation, the approximate inverse of convolve.

    If composite = convolve(x, part), the result approximates x. The
    approximation is exact when part is unitary and improves with n for
    random vectors.

    Args:
        composite: The bound vector.
        part: The known operand.

    Returns:
        Approximation of the unknown operand, same length as composite.
    """
    composite, part = _check_pair(composite, part)
    if is_identity(part):
        return composite.copy()
    n = composite.shape[0]
    return np.fft.irfft(np.fft.rfft(composite) * np.conj(np.fft.rfft(part)), n=n)


def involution(v) -> np.ndarray:
    """Approximate inverse of v under convolution: v*[i] = v[-i mod n]."""
    v = as_vector(v)
    return np.concatenate((v[:1], v[:0:-1]))


# ---------------------------------------------------------------------------
# Similarity and superposition
# ---------------------------------------------------------------------------
def dot(a, b) -> float:
    """Inner product of two vectors."""
    a, b = _check_pair(a, b)
    return float(np.dot(a, b))


def cosine_similarity(a, b) -> float:
    """Cosine of the angle between a and b, 0.0 if either has zero norm."""
    a, b = _check_pair(a, b)
    norm_product = np.linalg.norm(a) * np.linalg.norm(b)
    if norm_product == 0:
        return 0.0
    return float(np.dot(a, b) / norm_product)


def add(vectors: Sequence[np.ndarray]) -> np.ndarray:
    """Element-wise sum of one or more vectors of equal length."""
    if len(vectors) == 0:
        raise ValueError("At least one vector required")
    result = as_vector(vectors[0]).copy()
    for v in vectors[1:]:
        result, v = _check_pair(result, v)
        result = result + v
    return result


# ---------------------------------------------------------------------------
# Random generation
# ---------------------------------------------------------------------------
def random_unit_vector(rng: np.random.Generator, n: int) -> np.ndarray:
    """Vector with i.i.d. N(0, 1/n) entries; its expected magnitude is 1."""
    if n <= 0:
        raise ValueError(f"vector size must be positive, got {n}")
    return rng.normal(0.0, 1.0 / np.sqrt(n), size=n)


def random_unitary_vector(rng: np.random.Generator, n: int) -> np.ndarray:
    """Vector whose Fourier coefficients all have magnitude 1.

    Correlation with a unitary vector exactly undoes convolution with it.
    """
    spectrum = np.fft.rfft(random_unit_vector(rng, n))
    magnitude = np.abs(spectrum)
    magnitude[magnitude == 0] = 1.0
    return np.fft.irfft(spectrum / magnitude, n=n)


def random_permutation(rng: np.random.Generator, n: int) -> np.ndarray:
    """Random bijection over index positions [0, n)."""
    return rng.permutation(n)


# ---------------------------------------------------------------------------
# Permutation
# ---------------------------------------------------------------------------
def permute(v, perm: np.ndarray) -> np.ndarray:
    """Apply an index permutation: out[i] = v[perm[i]]."""
    v, _ = _check_pair(v, perm)
    return v[perm]


def unpermute(v, perm: np.ndarray) -> np.ndarray:
    """Invert permute: unpermute(permute(v, perm), perm) == v."""
    v, _ = _check_pair(v, perm)
    out = np.empty_like(v)
    out[perm] = v
    return out


__all__ = [
    "DimensionMismatch",
    "add",
    "as_vector",
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
]
