import pytest

from pow_worker import blob as blobcodec
from pow_worker.blob import MalformedInput
from pow_worker.difficulty import MAX_HASH, DifficultyEvaluator, InvalidDifficulty
from pow_worker.job import WorkAssignment
from pow_worker.protocol import Done, Solution
from pow_worker.report import RecordingReportClient
from pow_worker.search import NonceSearchLoop, SearchState


TEMPLATE_HEX = bytes(range(76)).hex()

POOL_DIFF = 2
TARGET_DIFF = 1 << 32

REJECT = MAX_HASH.to_bytes(32, "little")
SHARE = (1 << 250).to_bytes(32, "little")
SOLUTION = b"\x00" * 32


class StubHash:
    """Digest chosen per nonce read from the blob; everything else is rejected."""

    def __init__(self, by_nonce=None):
        self.by_nonce = by_nonce or {}
        self.calls = []

    def __call__(self, data: bytes) -> bytes:
        nonce = blobcodec.get_nonce(data)
        self.calls.append(nonce)
        return self.by_nonce.get(nonce, REJECT)


def _assignment(**kw):
    params = dict(
        template_id=7,
        nonce_from=100,
        nonce_to=103,
        pool_difficulty=POOL_DIFF,
        target_difficulty=TARGET_DIFF,
        blob=TEMPLATE_HEX,
    )
    params.update(kw)
    return WorkAssignment(**params)


def _loop(stub):
    return NonceSearchLoop(evaluator=DifficultyEvaluator(stub))


def test_single_share_no_solution():
    stub = StubHash({101: SHARE})
    client = RecordingReportClient()
    summary = _loop(stub).run(_assignment(), client)

    assert stub.calls == [100, 101, 102]
    assert client.sent == [Done(nonce_from=100, share_count=1)]
    assert client.payloads == [b'{"obj":"core","act":"done","nonce_from":100,"count":1}']
    assert summary.share_count == 1
    assert summary.solutions == []


def test_solution_reported_and_counted():
    stub = StubHash({102: SOLUTION})
    client = RecordingReportClient()
    summary = _loop(stub).run(_assignment(), client)

    assert stub.calls == [100, 101, 102]
    assert client.sent == [Solution(template_id=7, nonce=102), Done(nonce_from=100, share_count=1)]
    assert summary.solutions == [102]


def test_scan_continues_after_solution():
    stub = StubHash({100: SOLUTION, 101: SHARE, 103: SOLUTION})
    client = RecordingReportClient()
    summary = _loop(stub).run(_assignment(nonce_to=105), client)

    assert stub.calls == [100, 101, 102, 103, 104]
    assert client.sent == [
        Solution(template_id=7, nonce=100),
        Solution(template_id=7, nonce=103),
        Done(nonce_from=100, share_count=3),
    ]
    assert summary.hashes == 5


def test_counts_match_real_hash():
    # difficulty 1 accepts every digest, so every nonce is a solution
    client = RecordingReportClient()
    loop = NonceSearchLoop()
    summary = loop.run(_assignment(nonce_from=0, nonce_to=10, pool_difficulty=1, target_difficulty=1), client)

    assert summary.hashes == 10
    assert summary.share_count == 10
    assert summary.solutions == list(range(10))
    assert client.last() == Done(nonce_from=0, share_count=10)
    assert loop.state is SearchState.COMPLETED


def test_range_at_top_of_u32():
    stub = StubHash({0xFFFFFFFE: SHARE})
    client = RecordingReportClient()
    _loop(stub).run(_assignment(nonce_from=0xFFFFFFFD, nonce_to=0xFFFFFFFF), client)

    assert stub.calls == [0xFFFFFFFD, 0xFFFFFFFE]
    assert client.sent == [Done(nonce_from=0xFFFFFFFD, share_count=1)]


def test_oversized_blob_fails_before_work():
    stub = StubHash()
    client = RecordingReportClient()
    with pytest.raises(MalformedInput):
        _loop(stub).run(_assignment(blob="00" * 513), client)
    assert stub.calls == []
    assert client.sent == []


def test_zero_pool_difficulty_fails_before_work():
    stub = StubHash()
    client = RecordingReportClient()
    loop = _loop(stub)
    with pytest.raises(InvalidDifficulty):
        loop.run(_assignment(pool_difficulty=0), client)
    assert stub.calls == []
    assert client.sent == []
    assert loop.state is SearchState.IDLE


def test_target_below_pool_rejected():
    with pytest.raises(InvalidDifficulty):
        _loop(StubHash()).run(_assignment(pool_difficulty=10, target_difficulty=5), RecordingReportClient())


@pytest.mark.parametrize("nonce_from,nonce_to", [(5, 5), (6, 5), (0, 1 << 32)])
def test_bad_range_rejected(nonce_from, nonce_to):
    with pytest.raises(MalformedInput):
        _loop(StubHash()).run(_assignment(nonce_from=nonce_from, nonce_to=nonce_to), RecordingReportClient())


def test_transport_failure_does_not_stop_scan():
    stub = StubHash({100: SOLUTION, 102: SHARE})
    client = RecordingReportClient(fail=True)
    summary = _loop(stub).run(_assignment(), client)

    assert stub.calls == [100, 101, 102]
    assert client.failed == [Solution(template_id=7, nonce=100), Done(nonce_from=100, share_count=2)]
    assert [r["act"] for r in summary.failed_reports] == ["eureka", "done"]


def test_digest_failure_is_fatal():
    def broken(data: bytes) -> bytes:
        raise RuntimeError("hash backend crashed")

    client = RecordingReportClient()
    with pytest.raises(RuntimeError):
        _loop(broken).run(_assignment(), client)
    assert client.sent == []


def test_loop_runs_once():
    loop = _loop(StubHash())
    loop.run(_assignment(), RecordingReportClient())
    with pytest.raises(RuntimeError):
        loop.run(_assignment(), RecordingReportClient())


def test_verbose_logs_shares(caplog):
    stub = StubHash({101: SHARE})
    loop = NonceSearchLoop(evaluator=DifficultyEvaluator(stub), verbose=True, progress_every=1)
    with caplog.at_level("DEBUG", logger="pow_worker"):
        loop.run(_assignment(), RecordingReportClient())
    assert any("share nonce=101" in r.getMessage() for r in caplog.records)
    assert any(r.getMessage().startswith("progress 3/3") for r in caplog.records)


def test_summary_to_dict():
    summary = _loop(StubHash({101: SHARE})).run(_assignment(), RecordingReportClient())
    d = summary.to_dict()
    assert d["hashes"] == 3
    assert d["share_count"] == 1
    assert d["backend"] == "custom"
    assert d["hps"] > 0


def test_summary_backend_follows_evaluator():
    def sha256d_fast(data: bytes) -> bytes:
        return REJECT

    summary = _loop(sha256d_fast).run(_assignment(), RecordingReportClient())
    assert summary.backend == "sha256d_fast"

    named = NonceSearchLoop(evaluator=DifficultyEvaluator(StubHash(), backend="numba"))
    assert named.run(_assignment(), RecordingReportClient()).backend == "numba"

    assert NonceSearchLoop().run(_assignment(), RecordingReportClient()).backend == "python"
