from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from . import blob as blobcodec
from .difficulty import DifficultyEvaluator, SearchOutcome
from .job import WorkAssignment
from .protocol import Done, ReportMessage, Solution
from .report import ReportClient, TransportError


class SearchState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class SearchSummary:
    template_id: int
    nonce_from: int
    nonce_to: int
    hashes: int = 0
    share_count: int = 0
    solutions: List[int] = field(default_factory=list)
    failed_reports: List[Dict[str, Any]] = field(default_factory=list)
    runtime_sec: float = 0.0
    backend: str = "python"

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["hps"] = (self.hashes / self.runtime_sec) if self.runtime_sec > 0 else 0.0
        return d


class NonceSearchLoop:
    """
    Scan one assignment's nonce range in order and report results.

    Finding a solution does not end the scan: every nonce in
    [nonce_from, nonce_to) is evaluated, so one assignment can produce several
    Solution reports. Deciding when enough work was done belongs to the
    coordinator, not the worker.

    A loop instance runs exactly one assignment.
    """

    def __init__(
        self,
        evaluator: Optional[DifficultyEvaluator] = None,
        verbose: bool = False,
        progress_every: int = 0,
    ):
        self.evaluator = evaluator or DifficultyEvaluator()
        self.verbose = verbose
        self.progress_every = progress_every
        self.state = SearchState.IDLE
        self.logger = logging.getLogger("pow_worker.search")

    def _report(self, client: ReportClient, message: ReportMessage, summary: SearchSummary) -> None:
        # Best effort: a lost report costs a credit, not the scan
        try:
            client.send(message)
        except TransportError as e:
            summary.failed_reports.append(message.to_obj())
            if isinstance(message, Solution):
                self.logger.error("solution nonce=%d not delivered: %s", message.nonce, e)
            else:
                self.logger.warning("report %s not delivered: %s", message.to_obj()["act"], e)

    def run(self, assignment: WorkAssignment, client: ReportClient) -> SearchSummary:
        if self.state is not SearchState.IDLE:
            raise RuntimeError(f"search loop already {self.state.value}")

        # Rejects bad difficulty / blob / range before any hashing or reporting
        buf = assignment.validate()

        pool = assignment.pool_difficulty
        target = assignment.target_difficulty
        summary = SearchSummary(
            template_id=assignment.template_id,
            nonce_from=assignment.nonce_from,
            nonce_to=assignment.nonce_to,
            backend=self.evaluator.backend,
        )

        self.state = SearchState.RUNNING
        self.logger.info(
            "template=%d scanning [%d, %d) pool_diff=%d target_diff=%d blob=%d bytes",
            assignment.template_id,
            assignment.nonce_from,
            assignment.nonce_to,
            pool,
            target,
            len(buf),
        )

        t0 = time.time()
        for nonce in range(assignment.nonce_from, assignment.nonce_to):
            blobcodec.set_nonce(buf, nonce)
            digest = self.evaluator.digest(buf)
            outcome = self.evaluator.classify(digest, pool, target)
            summary.hashes += 1

            if outcome is not SearchOutcome.REJECTED:
                summary.share_count += 1
                if self.verbose:
                    self.logger.debug("%s nonce=%d hash=%s", outcome.value, nonce, digest[::-1].hex())
                if outcome is SearchOutcome.SOLUTION:
                    summary.solutions.append(nonce)
                    self.logger.info("solution template=%d nonce=%d", assignment.template_id, nonce)
                    self._report(client, Solution(template_id=assignment.template_id, nonce=nonce), summary)

            if self.verbose and self.progress_every and summary.hashes % self.progress_every == 0:
                self.logger.debug(
                    "progress %d/%d shares=%d", summary.hashes, assignment.nonce_count, summary.share_count
                )

        summary.runtime_sec = max(1e-9, time.time() - t0)
        self._report(client, Done(nonce_from=assignment.nonce_from, share_count=summary.share_count), summary)
        self.state = SearchState.COMPLETED

        self.logger.info(
            "done template=%d hashes=%d shares=%d solutions=%d in %.3fs",
            assignment.template_id,
            summary.hashes,
            summary.share_count,
            len(summary.solutions),
            summary.runtime_sec,
        )
        return summary
