from __future__ import annotations

import struct

# Upper bound on a hashing blob accepted from the core manager
MAX_BLOB_SIZE = 512

# CryptoNote header: major(1) minor(1) timestamp(varint 5) prev_id(32) nonce(4)
NONCE_OFFSET = 39
NONCE_SIZE = 4

UINT32_MAX = 0xFFFFFFFF


class MalformedInput(ValueError):
    """Work input that cannot be searched (bad blob, bad range, out-of-range field)."""


def decode(encoded: str) -> bytearray:
    """
    Decode a hex hashing blob into a mutable buffer.

    Raises MalformedInput when the text is not hex, when the decoded blob is
    longer than MAX_BLOB_SIZE, or when it is too short to hold the nonce field.
    """
    if not isinstance(encoded, str):
        raise MalformedInput(f"blob must be a hex string, got {type(encoded).__name__}")
    try:
        raw = bytes.fromhex(encoded.strip())
    except ValueError as e:
        raise MalformedInput(f"blob is not valid hex: {e}") from e

    if len(raw) > MAX_BLOB_SIZE:
        raise MalformedInput(f"blob is {len(raw)} bytes, max is {MAX_BLOB_SIZE}")
    if len(raw) < NONCE_OFFSET + NONCE_SIZE:
        raise MalformedInput(
            f"blob is {len(raw)} bytes, need at least {NONCE_OFFSET + NONCE_SIZE} for the nonce field"
        )
    return bytearray(raw)


def encode(blob: bytes) -> str:
    return bytes(blob).hex()


def _check_nonce_field(blob: bytearray) -> None:
    if len(blob) < NONCE_OFFSET + NONCE_SIZE:
        raise MalformedInput("blob too short for nonce field")


def set_nonce(blob: bytearray, nonce: int) -> None:
    """Write nonce as u32 little-endian into the reserved field. Nothing else changes."""
    if not 0 <= nonce <= UINT32_MAX:
        raise ValueError(f"nonce out of u32 range: {nonce}")
    _check_nonce_field(blob)
    blob[NONCE_OFFSET:NONCE_OFFSET + NONCE_SIZE] = struct.pack("<I", nonce)


def get_nonce(blob: bytes) -> int:
    _check_nonce_field(blob)
    return struct.unpack_from("<I", blob, NONCE_OFFSET)[0]
