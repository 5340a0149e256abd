from __future__ import annotations

from pow_worker import blob as blobcodec
from pow_worker.hashing import sha256d


def test_bench_sha256d_76bytes(benchmark):
    data = b"\x00" * 76
    benchmark(sha256d, data)


def test_bench_sha256d_nonce_scan_like(benchmark):
    buf = blobcodec.decode("00" * 76)
    state = {"nonce": 0}

    def work():
        # mutate the nonce field like the search loop does
        state["nonce"] = (state["nonce"] + 1) & 0xFFFFFFFF
        blobcodec.set_nonce(buf, state["nonce"])
        sha256d(bytes(buf))

    benchmark(work)
