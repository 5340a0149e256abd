import json
import platform
import sys
from pathlib import Path

from pow_worker.difficulty import DifficultyEvaluator
from pow_worker.digest_auto import resolve_hash_fn
from pow_worker.job import WorkAssignment
from pow_worker.report import RecordingReportClient
from pow_worker.search import NonceSearchLoop


def main():
    prefer = sys.argv[1] if len(sys.argv) > 1 else "numba"

    # Deterministic dummy blob; easy pool difficulty so shares show up (bench, not real mining)
    assignment = WorkAssignment(
        template_id=1,
        nonce_from=0,
        nonce_to=100_000,
        pool_difficulty=1 << 8,
        target_difficulty=1 << 32,
        blob=(b"\x01" * 76).hex(),
    )

    # Resolving warms up the JIT, so compile time stays out of the timing
    backend = resolve_hash_fn(prefer)
    loop = NonceSearchLoop(evaluator=DifficultyEvaluator(backend.fn, backend=backend.name))
    summary = loop.run(assignment, RecordingReportClient())

    out = summary.to_dict()
    out["python"] = sys.version.split()[0]
    out["platform"] = platform.platform()

    print(json.dumps(out, indent=2))
    Path("results").mkdir(exist_ok=True)
    with open("results/bench_search.json", "w") as f:
        json.dump(out, f, indent=2)

    if out["hps"] <= 0:
        raise SystemExit("bench invalid: hps <= 0")


if __name__ == "__main__":
    main()
