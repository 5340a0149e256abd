from __future__ import annotations

from pow_worker.difficulty import DifficultyEvaluator, passes
from pow_worker.job import WorkAssignment
from pow_worker.protocol import Done, to_wire
from pow_worker.report import RecordingReportClient
from pow_worker.search import NonceSearchLoop


def test_bench_search_1k_nonces(benchmark):
    assignment = WorkAssignment(
        template_id=1,
        nonce_from=0,
        nonce_to=1000,
        pool_difficulty=1 << 8,
        target_difficulty=1 << 40,
        blob=bytes(range(76)).hex(),
    )

    def work():
        NonceSearchLoop(evaluator=DifficultyEvaluator()).run(assignment, RecordingReportClient())

    benchmark(work)


def test_bench_passes(benchmark):
    digest = (1 << 200).to_bytes(32, "little")
    benchmark(passes, digest, 1 << 40)


def test_bench_report_encode(benchmark):
    benchmark(to_wire, Done(nonce_from=100, share_count=42))
