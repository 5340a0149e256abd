import socket
import threading
import time

import pytest


class FakeCoordinator:
    """Accepts one connection per report and keeps each payload read until EOF."""

    def __init__(self, host: str = "127.0.0.1"):
        self.srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.srv.bind((host, 0))
        self.srv.listen(16)
        self.srv.settimeout(0.2)
        self.host = host
        self.port = self.srv.getsockname()[1]
        self.payloads = []
        self._stop = threading.Event()
        self._th = threading.Thread(target=self._serve, daemon=True)
        self._th.start()

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self.srv.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with conn:
                conn.settimeout(5)
                buf = b""
                while True:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    buf += chunk
                self.payloads.append(buf)

    def wait_for(self, n: int, timeout: float = 5.0) -> list:
        deadline = time.time() + timeout
        while len(self.payloads) < n and time.time() < deadline:
            time.sleep(0.05)
        return list(self.payloads)

    def close(self):
        self._stop.set()
        self._th.join(2)
        self.srv.close()


@pytest.fixture
def coordinator():
    c = FakeCoordinator()
    yield c
    c.close()


@pytest.fixture
def free_port():
    tmp = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    tmp.bind(("127.0.0.1", 0))
    port = tmp.getsockname()[1]
    tmp.close()
    return port
