"""
Seeded random number generation for pack replay.

Replaying a historical pack requires the identical bit stream for the
same seed forever, so the algorithm is fixed:

1. The seed is normalised to a string.
2. SHA-256 of its UTF-8 bytes; the first 8 bytes (big endian) seed PCG64.
3. Draws use raw 64-bit PCG64 output with rejection sampling, never
   numpy's distribution methods (their streams may change between
   numpy releases; the raw bit generator output does not).
"""

import hashlib
import re
import secrets
import time

import numpy as np

from cubedraft.models.failure import ValidationError

MAX_SEED_LENGTH = 128
_SEED_PATTERN = re.compile(r"^\S+$")
_UINT64_RANGE = 1 << 64


def normalize_seed(value: object) -> str:
    """
    Validate a caller-supplied seed and return its canonical string form.

    Accepts non-empty strings without whitespace and non-negative integers.
    Integers and their decimal strings are the same seed.

    Raises:
        ValidationError: For bools, floats, negative ints, empty or
            oversized strings, or any other type.
    """
    if isinstance(value, bool):
        raise ValidationError("Seed must be a string or a non-negative integer")

    if isinstance(value, int):
        if value < 0:
            raise ValidationError("Seed must be a non-negative integer", detail=str(value))
        return str(value)

    if isinstance(value, str):
        seed = value.strip()
        if not seed or len(seed) > MAX_SEED_LENGTH or not _SEED_PATTERN.match(seed):
            raise ValidationError(
                "Seed must be 1-128 characters with no whitespace",
                detail=repr(value),
            )
        return seed

    raise ValidationError(
        "Seed must be a string or a non-negative integer",
        detail=type(value).__name__,
    )


def mint_seed() -> str:
    """
    Mint a fresh seed from the wall clock plus random entropy.

    Only replay of a recorded seed is guaranteed; minted seeds are not
    meant to be reproducible.
    """
    return f"{time.time_ns():x}{secrets.randbelow(1 << 32):08x}"


def seed_to_int(seed: str) -> int:
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


class SeededRNG:
    """Deterministic PCG64 stream keyed by a seed string."""

    def __init__(self, seed: str) -> None:
        self.seed = seed
        self._bit_generator = np.random.PCG64(seed_to_int(seed))
        self.draws = 0

    def _next_uint64(self) -> int:
        self.draws += 1
        return int(self._bit_generator.random_raw())

    def randbelow(self, n: int) -> int:
        """
        Uniform integer in [0, n).

        Consumes one raw draw, plus one more per (rare) rejection.
        """
        if n <= 0:
            raise ValueError(f"randbelow requires n > 0, got {n}")

        # Largest multiple of n that fits in 64 bits; values above it are rejected
        limit = _UINT64_RANGE - (_UINT64_RANGE % n)
        while True:
            value = self._next_uint64()
            if value < limit:
                return value % n

    def choice(self, items: list):
        """Pick one element uniformly."""
        return items[self.randbelow(len(items))]
