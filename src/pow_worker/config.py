from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WorkerConfig:
    host: str = "127.0.0.1"
    port: int = 3000
    timeout_s: float = 10.0
    backend: str = "python"
    verbose: bool = False
    log_level: str = "INFO"
    # Log a progress line every N nonces when verbose (0 disables)
    progress_every: int = 100_000


# Core manager listens on loopback; reports are raw JSON over TCP, no framing
DEFAULT_COORDINATOR = ("127.0.0.1", 3000)
