from __future__ import annotations

from enum import Enum
from typing import Optional

from .hashing import DIGEST_SIZE, HashFn, sha256d


# Largest 256-bit value; a digest passes difficulty d when H * d <= MAX_HASH
MAX_HASH = (1 << 256) - 1

UINT64_MAX = (1 << 64) - 1


class InvalidDifficulty(ValueError):
    """Zero, negative or otherwise degenerate difficulty threshold."""


class SearchOutcome(Enum):
    REJECTED = "rejected"
    SHARE = "share"
    # Passed the target threshold too; still counts as a share
    SOLUTION = "solution"


def check_difficulty(difficulty: int) -> int:
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise InvalidDifficulty(f"difficulty must be an integer, got {difficulty!r}")
    if difficulty <= 0:
        raise InvalidDifficulty("difficulty must be > 0")
    if difficulty > UINT64_MAX:
        raise InvalidDifficulty(f"difficulty exceeds u64: {difficulty}")
    return difficulty


def target_from_difficulty(difficulty: int) -> int:
    """
    Highest digest value that still passes.
    target = floor((2^256 - 1) / difficulty)
    """
    return MAX_HASH // check_difficulty(difficulty)


def hash_int_le(digest: bytes) -> int:
    """Digest interpreted as an unsigned little-endian 256-bit integer."""
    return int.from_bytes(digest, "little")


def passes(digest: bytes, difficulty: int) -> bool:
    return hash_int_le(digest) * check_difficulty(difficulty) <= MAX_HASH


class DifficultyEvaluator:
    """
    Hashes candidate blobs and classifies digests against the pool (share)
    and target (solution) thresholds.
    """

    def __init__(self, hash_fn: HashFn = sha256d, backend: Optional[str] = None):
        self.hash_fn = hash_fn
        # Name reported in run metrics
        if backend is None:
            backend = "python" if hash_fn is sha256d else getattr(hash_fn, "__name__", "custom")
        self.backend = backend

    def digest(self, blob: bytearray) -> bytes:
        # Hash exactly len(blob) bytes
        h = self.hash_fn(bytes(blob))
        if len(h) != DIGEST_SIZE:
            raise RuntimeError(f"hash function returned {len(h)} bytes, expected {DIGEST_SIZE}")
        return h

    def passes(self, digest: bytes, difficulty: int) -> bool:
        return passes(digest, difficulty)

    def classify(self, digest: bytes, pool_difficulty: int, target_difficulty: int) -> SearchOutcome:
        if not passes(digest, pool_difficulty):
            return SearchOutcome.REJECTED
        if passes(digest, target_difficulty):
            return SearchOutcome.SOLUTION
        return SearchOutcome.SHARE
