"""
pytest configuration and fixtures.
"""

import select
import socket
import threading
from dataclasses import fields
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shipnet import config


def _has_ipv6_loopback() -> bool:
    if not socket.has_ipv6:
        return False
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_STREAM) as s:
            s.bind(("::1", 0))
    except OSError:
        return False
    return True


HAS_IPV6 = _has_ipv6_loopback()

requires_ipv6 = pytest.mark.skipif(not HAS_IPV6, reason="no IPv6 loopback")


@pytest.fixture(autouse=True)
def restore_settings() -> Generator[None, None, None]:
    """Put the process-wide settings back after every test."""
    saved = {f.name: getattr(config.settings, f.name) for f in fields(config.settings)}
    yield
    for name, value in saved.items():
        setattr(config.settings, name, value)


@pytest.fixture
def free_port() -> int:
    """Get a port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class Listener:
    """
    One-connection TCP listener running in a background thread.

    Accepts a single client and reads until the client closes, so
    `received` holds exactly what was sent.
    """

    def __init__(self, host: str, family: int = socket.AF_INET):
        self.host = host
        self.received = b""
        self.accepted = False
        self._conn = None
        self._done = threading.Event()

        self._socket = socket.socket(family, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind((host, 0))
        self._socket.listen(8)
        self._socket.settimeout(5.0)
        self.port = self._socket.getsockname()[1]

        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        try:
            conn, _ = self._socket.accept()
        except OSError:
            self._done.set()
            return

        self._conn = conn
        self.accepted = True
        chunks = []
        with conn:
            conn.settimeout(5.0)
            while True:
                try:
                    chunk = conn.recv(4096)
                except OSError:
                    break
                if not chunk:
                    break
                chunks.append(chunk)

        self.received = b"".join(chunks)
        self._done.set()

    def wait(self, timeout: float = 5.0) -> bytes:
        """Wait for the client to finish and return what it sent."""
        self._done.wait(timeout)
        return self.received

    def close(self):
        if not self.accepted:
            # Wake a thread still blocked in accept()
            try:
                socket.create_connection((self.host, self.port), timeout=1.0).close()
            except OSError:
                pass
        if self._conn is not None:
            # Wake a thread still blocked in recv()
            try:
                self._conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        self._done.wait(5.0)
        self._socket.close()
        self._thread.join(timeout=5.0)


@pytest.fixture
def listener() -> Generator[Listener, None, None]:
    """IPv4 loopback listener."""
    srv = Listener("127.0.0.1", socket.AF_INET)
    yield srv
    srv.close()


@pytest.fixture
def listener6() -> Generator[Listener, None, None]:
    """IPv6 loopback listener."""
    if not HAS_IPV6:
        pytest.skip("no IPv6 loopback")
    srv = Listener("::1", socket.AF_INET6)
    yield srv
    srv.close()


@pytest.fixture
def make_listener():
    """Factory for listeners on an arbitrary loopback address."""
    created = []

    def factory(host: str) -> Listener:
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        srv = Listener(host, family)
        created.append(srv)
        return srv

    yield factory

    for srv in created:
        srv.close()


class Blackhole:
    """
    Loopback listener whose accept queue is full.

    Nothing is ever accepted, so once the queue holds its one pending
    connection further SYNs are dropped and a connect to `address` just
    hangs. Unlike a routed "unreachable" address this does not depend on
    the network the tests run in.
    """

    def __init__(self, attempts: int = 32):
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.bind(('127.0.0.1', 0))
        self._socket.listen(0)
        self.host, self.port = self._socket.getsockname()
        self.address = (self.host, self.port)
        self._fillers = []
        self.saturated = self._fill(attempts)

    def _fill(self, attempts: int) -> bool:
        for _ in range(attempts):
            s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            s.setblocking(False)
            self._fillers.append(s)
            if s.connect_ex(self.address) == 0:
                continue
            _, writable, _ = select.select([], [s], [], 0.3)
            if not writable:
                return True
        return False

    def close(self):
        for s in self._fillers:
            s.close()
        self._socket.close()


@pytest.fixture
def blackhole() -> Generator[Blackhole, None, None]:
    """An address where connect() neither succeeds nor gets refused."""
    hole = Blackhole()
    if not hole.saturated:
        hole.close()
        pytest.skip("loopback accept queue could not be filled")
    yield hole
    hole.close()


@pytest.fixture
def many_descriptors() -> Generator[list, None, None]:
    """
    Hold enough open sockets that the next one is numbered above 1024,
    past the FD_SETSIZE limit of select().
    """
    if sys.platform == "win32":
        pytest.skip("descriptor numbering is POSIX-only")
    resource = pytest.importorskip("resource")

    wanted = 2048
    soft, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
    if soft != resource.RLIM_INFINITY and soft < wanted:
        if hard != resource.RLIM_INFINITY and hard < wanted:
            pytest.skip(f"RLIMIT_NOFILE hard limit {hard} is too low")
        resource.setrlimit(resource.RLIMIT_NOFILE, (wanted, hard))

    held = []
    try:
        while not held or held[-1].fileno() < 1100:
            held.append(socket.socket(socket.AF_INET, socket.SOCK_STREAM))
        yield held
    finally:
        for s in held:
            s.close()
        resource.setrlimit(resource.RLIMIT_NOFILE, (soft, hard))
