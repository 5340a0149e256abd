from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from . import blob as blobcodec
from .config import DEFAULT_COORDINATOR, WorkerConfig
from .difficulty import DifficultyEvaluator, InvalidDifficulty
from .digest_auto import resolve_hash_fn
from .hashing import sha256d
from .job import WorkAssignment
from .logging_config import configure_logging
from .protocol import Done, Solution, to_wire
from .report import SocketReportClient
from .search import NonceSearchLoop

# Exit status for work input rejected before the scan
EXIT_INVALID_INPUT = 2

BACKENDS = ("python", "numba")


def _load_toml(path: str) -> Dict[str, Any]:
    try:
        import toml  # type: ignore
    except Exception as e:
        raise RuntimeError(
            "Config requires 'toml'. Install it with: pip install toml"
        ) from e
    return toml.load(path)


def _cfg_get(cfg: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    cur: Any = cfg
    for k in keys:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def _preparse_config(argv: list[str] | None) -> Tuple[Dict[str, Any], list[str]]:
    p0 = argparse.ArgumentParser(add_help=False)
    p0.add_argument("--config", default=None, help="Path to TOML config (optional).")
    ns, rest = p0.parse_known_args(argv)
    if ns.config:
        return _load_toml(ns.config), rest
    return {}, rest


def _write_metrics(out_path: str, payload: dict) -> None:
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)


def _read_work(path: str) -> WorkAssignment:
    try:
        text = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise blobcodec.MalformedInput(f"work input is not UTF-8: {e}") from e
    try:
        params = json.loads(text)
    except json.JSONDecodeError as e:
        raise blobcodec.MalformedInput(f"work input is not JSON: {e}") from e
    return WorkAssignment.from_params(params)


def build_config(args: argparse.Namespace) -> WorkerConfig:
    return WorkerConfig(
        host=args.host,
        port=args.port,
        timeout_s=args.timeout,
        backend=args.backend,
        verbose=args.verbose,
        log_level=args.log_level,
        progress_every=args.progress_every,
    )


def main(argv: list[str] | None = None) -> int:
    cfg, rest = _preparse_config(argv)

    # Defaults come from config; CLI flags override after parse.
    default_host = _cfg_get(cfg, "coordinator", "host", default=DEFAULT_COORDINATOR[0])
    default_port = int(_cfg_get(cfg, "coordinator", "port", default=DEFAULT_COORDINATOR[1]))
    default_timeout = float(_cfg_get(cfg, "coordinator", "timeout", default=10.0))
    default_backend = _cfg_get(cfg, "runtime", "backend", default="python")
    default_verbose = bool(_cfg_get(cfg, "runtime", "verbose", default=False))
    default_progress = int(_cfg_get(cfg, "runtime", "progress_every", default=100_000))
    default_level = _cfg_get(cfg, "logging", "level", default=None)

    p = argparse.ArgumentParser(prog="pow-worker")
    if default_backend not in BACKENDS:
        p.error(f"config runtime.backend must be one of {', '.join(BACKENDS)}, got {default_backend!r}")
    p.add_argument("--config", default=None, help="Path to TOML config (optional).")

    p.add_argument("--echo", action="store_true", help="Print sample report payloads and exit.")
    p.add_argument("--selftest", action="store_true", help="Hash a zero blob and exit.")

    p.add_argument("blob", nargs="?", help="Hex hashing blob.")
    p.add_argument("nonce_from", nargs="?", type=int, help="First nonce (inclusive).")
    p.add_argument("nonce_to", nargs="?", type=int, help="Last nonce (exclusive).")
    p.add_argument("pool_difficulty", nargs="?", type=int, help="Share difficulty.")
    p.add_argument("target_difficulty", nargs="?", type=int, help="Block difficulty (default: pool difficulty).")
    p.add_argument("--template", type=int, default=0, help="Block template id echoed in solution reports.")
    p.add_argument("--work", default=None, help="Read the work input as a JSON object from a file ('-' for stdin).")

    p.add_argument("--host", default=default_host, help="Core manager host.")
    p.add_argument("--port", type=int, default=default_port, help="Core manager port.")
    p.add_argument("--timeout", type=float, default=default_timeout, help="Report socket timeout seconds.")
    p.add_argument("--backend", choices=BACKENDS, default=default_backend, help="Digest backend.")
    p.add_argument("--verbose", action="store_true", default=default_verbose, help="Log every share and progress.")
    p.add_argument("--progress-every", type=int, default=default_progress, help="Progress log interval (nonces).")
    p.add_argument("--log-level", default=default_level, help="Log level (default: $LOG_LEVEL or INFO).")
    p.add_argument("--metrics-out", default=None, help="Write run summary JSON here.")

    args = p.parse_args(rest)

    if args.echo:
        for msg in (Solution(template_id=1, nonce=102), Done(nonce_from=100, share_count=1)):
            sys.stdout.buffer.write(to_wire(msg) + b"\n")
        return 0

    if args.selftest:
        print(sha256d(b"\x00" * (blobcodec.NONCE_OFFSET + blobcodec.NONCE_SIZE)).hex())
        return 0

    worker_cfg = build_config(args)
    configure_logging(worker_cfg.log_level, verbose=worker_cfg.verbose)
    logger = logging.getLogger("pow_worker.cli")

    try:
        if args.work:
            assignment = _read_work(args.work)
        else:
            if args.blob is None or args.nonce_from is None or args.nonce_to is None or args.pool_difficulty is None:
                p.error("blob, nonce_from, nonce_to and pool_difficulty are required (or use --work)")
            target: Optional[int] = args.target_difficulty
            assignment = WorkAssignment(
                template_id=args.template,
                nonce_from=args.nonce_from,
                nonce_to=args.nonce_to,
                pool_difficulty=args.pool_difficulty,
                target_difficulty=args.pool_difficulty if target is None else target,
                blob=args.blob,
            )
        # Reject bad input with exit 2 before a backend is resolved; run() validates again
        assignment.validate()
    except (blobcodec.MalformedInput, InvalidDifficulty, OSError) as e:
        logger.error("rejected work input: %s", e)
        return EXIT_INVALID_INPUT

    backend = resolve_hash_fn(worker_cfg.backend)
    loop = NonceSearchLoop(
        evaluator=DifficultyEvaluator(backend.fn, backend=backend.name),
        verbose=worker_cfg.verbose,
        progress_every=worker_cfg.progress_every,
    )
    client = SocketReportClient(worker_cfg.host, worker_cfg.port, timeout_s=worker_cfg.timeout_s)
    summary = loop.run(assignment, client)

    if args.metrics_out:
        _write_metrics(args.metrics_out, summary.to_dict())
        logger.info("wrote metrics %s", args.metrics_out)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
