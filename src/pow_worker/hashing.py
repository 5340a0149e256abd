from __future__ import annotations

import hashlib
from typing import Callable

HashFn = Callable[[bytes], bytes]

DIGEST_SIZE = 32


def sha256d(data: bytes) -> bytes:
    """
    Double-SHA256 over the exact bytes given.
    Returns raw 32-byte digest.
    """
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()
