"""Deterministic random numbers derived from the data being projected.

Projections must be reproducible bit-for-bit for identical inputs without any
external entropy source. The seed is therefore an FNV-1a hash over the raw
IEEE-754 bytes of every coordinate, and the stream is a Mulberry32 generator
whose arithmetic is carried out modulo 2**32.
"""

from __future__ import annotations

from typing import Any, MutableSequence

import numpy as np

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
MULBERRY_INCREMENT = 0x6D2B79F5

_MASK32 = 0xFFFFFFFF
_TWO_POW_32 = 4294967296.0


def derive_seed(vectors: Any) -> int:
    """Hash every coordinate of ``vectors`` into a 32-bit unsigned seed.

    Coordinates are visited in row-major order and each one contributes its
    eight little-endian ``float64`` bytes.
    """

    raw = np.ascontiguousarray(vectors, dtype="<f8").tobytes()
    seed = FNV_OFFSET_BASIS
    for byte in raw:
        seed = ((seed ^ byte) * FNV_PRIME) & _MASK32
    return seed


class SeededRandom:
    """Mulberry32 pseudo-random stream producing floats in ``[0, 1)``."""

    def __init__(self, seed: int) -> None:
        self.state = int(seed) & _MASK32

    def next_float(self) -> float:
        self.state = (self.state + MULBERRY_INCREMENT) & _MASK32
        t = self.state
        t = ((t ^ (t >> 15)) * (t | 1)) & _MASK32
        t ^= (t + (((t ^ (t >> 7)) * (t | 61)) & _MASK32)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def centered(self, scale: float) -> float:
        """Draw a value uniformly from ``[-scale / 2, scale / 2)``."""

        return (self.next_float() - 0.5) * scale

    def next_index(self, upper: int) -> int:
        return int(self.next_float() * upper)


def seeded_shuffle(items: MutableSequence[Any], rng: SeededRandom) -> None:
    """Shuffle ``items`` in place with Fisher-Yates driven by ``rng``."""

    for i in range(len(items) - 1, 0, -1):
        j = int(rng.next_float() * (i + 1))
        items[i], items[j] = items[j], items[i]


__all__ = ["SeededRandom", "derive_seed", "seeded_shuffle"]
