from __future__ import annotations

import logging
import socket
from typing import List, Optional, Protocol

from .protocol import ReportMessage, to_wire

# Fixed send buffer of the core manager link; payloads never get truncated
SEND_BUFFER_SIZE = 1000


class TransportError(ConnectionError):
    """Connect or write failed while delivering a report."""


class PayloadTooLarge(ValueError):
    pass


class ReportClient(Protocol):
    def send(self, message: ReportMessage) -> None:
        ...


def encode_report(message: ReportMessage) -> bytes:
    payload = to_wire(message)
    if len(payload) > SEND_BUFFER_SIZE:
        raise PayloadTooLarge(f"report is {len(payload)} bytes, send buffer is {SEND_BUFFER_SIZE}")
    return payload


class SocketReportClient:
    """
    Fire-and-forget delivery: one TCP connection per message, write the
    payload, close. The coordinator sends nothing back.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 3000, timeout_s: float = 10.0):
        self.host = host
        self.port = port
        self.timeout_s = timeout_s
        self.logger = logging.getLogger("pow_worker.report")

    def send(self, message: ReportMessage) -> None:
        payload = encode_report(message)
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout_s) as sock:
                sock.sendall(payload)
        except OSError as e:
            raise TransportError(f"report to {self.host}:{self.port} failed: {e}") from e
        self.logger.debug("sent %d bytes to %s:%s: %s", len(payload), self.host, self.port, payload.decode())


class RecordingReportClient:
    """In-process client that keeps every message; `fail` makes sends raise TransportError."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[ReportMessage] = []
        self.failed: List[ReportMessage] = []
        self.payloads: List[bytes] = []

    def send(self, message: ReportMessage) -> None:
        payload = encode_report(message)
        if self.fail:
            self.failed.append(message)
            raise TransportError("injected transport failure")
        self.sent.append(message)
        self.payloads.append(payload)

    def last(self) -> Optional[ReportMessage]:
        return self.sent[-1] if self.sent else None
