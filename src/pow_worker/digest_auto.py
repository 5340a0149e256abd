from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from .fastdigest_numba import available as numba_available, sha256d_numba
from .hashing import HashFn, sha256d


Backend = Literal["python", "numba"]


@dataclass(frozen=True)
class HashBackend:
    name: Backend
    fn: HashFn


def resolve_hash_fn(prefer: str = "python") -> HashBackend:
    """
    Pick the digest backend:
      - numba-compiled SHA256d when prefer="numba" and numba imports
      - otherwise hashlib SHA256d
    """
    if prefer not in ("python", "numba"):
        raise ValueError(f"unknown hash backend: {prefer!r}")
    if prefer == "numba":
        if numba_available():
            # Warm up so the JIT compile happens before the scan starts
            sha256d_numba(b"\x00" * 43)
            return HashBackend(name="numba", fn=sha256d_numba)
        logging.getLogger("pow_worker.digest_auto").warning("numba not available, using python backend")
    return HashBackend(name="python", fn=sha256d)
