import pytest

from pow_worker.hashing import sha256d

numba = pytest.importorskip("numba")  # skip test if numba not installed

from pow_worker.fastdigest_numba import sha256d_numba, available as numba_available


@pytest.mark.parametrize("length", [0, 1, 43, 55, 56, 63, 64, 76, 119, 120, 512])
def test_numba_matches_hashlib_across_block_boundaries(length):
    if not numba_available():
        pytest.skip("numba backend not available")

    data = bytes((i * 7 + 3) & 0xFF for i in range(length))
    assert sha256d_numba(data) == sha256d(data)


def test_resolve_numba_backend():
    if not numba_available():
        pytest.skip("numba backend not available")
    from pow_worker.digest_auto import resolve_hash_fn

    backend = resolve_hash_fn("numba")
    assert backend.name == "numba"
    assert backend.fn(b"\x01" * 76) == sha256d(b"\x01" * 76)
