"""
=============================================================================
BOUNDED-TIMEOUT CONNECT
=============================================================================

A plain blocking connect() to an unreachable host can hang for minutes
while the kernel retries SYN packets. We want an answer within a fixed
deadline instead, so the handshake is started in non-blocking mode and
we wait on the socket ourselves.

=============================================================================
NON-BLOCKING CONNECT, STEP BY STEP
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  connect_with_timeout() Flow                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. setblocking(False)            fails ──────────────► FATAL (-1) │
    │                                                                      │
    │   2. connect_ex(address)                                             │
    │        ├── 0 (connected at once) ─────────────────────► OK          │
    │        ├── EINPROGRESS / EWOULDBLOCK ──► step 3                      │
    │        └── any other errno ───────────────────────────► FAILED      │
    │                                                                      │
    │   3. wait until writable, at most connect_timeout                    │
    │        ├── timeout or poll error ─────────────────────► FAILED      │
    │        └── ready ──► getsockopt(SO_ERROR)                            │
    │                        ├── 0 ─────────────────────────► OK          │
    │                        └── errno ─────────────────────► FAILED      │
    │                                                                      │
    │   4. setblocking(True)             fails ──────────────► FATAL (-1) │
    │                                    (overrides the result above)      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

WHY SO_ERROR?
─────────────
"Writable" only means the handshake is over, not that it worked. A
refused connection also wakes the poll up. The real outcome is parked in
the socket's pending error, which getsockopt(SO_ERROR) reads (and clears).

FAILED deliberately lumps "timed out" and "refused/unreachable" together.
Callers get one bucket for "no connection"; FATAL is kept for "we could
not even run a proper non-blocking connect".

The connector never closes the socket. Whoever opened it closes it.

=============================================================================
"""

import enum
import errno
import select
import selectors
import socket
import time
import logging
from typing import Optional

from .. import config
from .sockets import _IS_WINDOWS, set_blocking, split_timeout


logger = logging.getLogger(__name__)


# connect_ex() results meaning "handshake started, come back later".
_IN_PROGRESS = frozenset(
    code for code in (
        getattr(errno, "EINPROGRESS", None),
        getattr(errno, "EWOULDBLOCK", None),
        getattr(errno, "EAGAIN", None),
        getattr(errno, "EALREADY", None),
        getattr(errno, "WSAEWOULDBLOCK", None),
        getattr(errno, "WSAEINPROGRESS", None),
    )
    if code is not None
)


class ConnectResult(enum.IntEnum):
    """Outcome of connect_with_timeout(). Compares equal to 0, 1 and -1."""

    OK = 0
    FAILED = 1      # timed out, refused or unreachable
    FATAL = -1      # blocking mode could not be toggled


def connect_with_timeout(
    sock: socket.socket,
    address: tuple,
    timeout: Optional[int] = None,
) -> ConnectResult:
    """
    Connect `sock` to `address`, giving up after `timeout` milliseconds.

    Args:
        sock: A freshly opened stream socket. It stays owned by the caller.
        address: Socket address tuple for the socket's family, e.g.
                 ("127.0.0.1", 80) or ("::1", 80, 0, 0).
        timeout: Deadline in milliseconds. None uses the process-wide
                 config.settings.connect_timeout.

    Returns:
        ConnectResult.OK with the socket connected and back in blocking
        mode, ConnectResult.FAILED if no connection was made in time, or
        ConnectResult.FATAL if the blocking mode could not be changed.
    """
    if timeout is None:
        timeout = config.settings.connect_timeout

    if set_blocking(sock, False) == -1:
        return ConnectResult.FATAL

    started = time.monotonic()

    try:
        code = sock.connect_ex(address)
    except (OSError, TypeError, ValueError, OverflowError) as e:
        logger.debug(f"connect to {address} could not be issued: {e}")
        code = None

    if code == 0:
        result = ConnectResult.OK
    elif code in _IN_PROGRESS:
        result = _wait_connected(sock, timeout)
    else:
        result = ConnectResult.FAILED

    if set_blocking(sock, True) == -1:
        return ConnectResult.FATAL

    elapsed_ms = (time.monotonic() - started) * 1000
    logger.debug(f"connect to {address}: {result.name} after {elapsed_ms:.1f}ms")

    return result


def _wait_connected(sock: socket.socket, timeout: int) -> ConnectResult:
    """
    Wait for a pending non-blocking connect to finish.
    """
    seconds, microseconds = split_timeout(timeout)

    try:
        ready = _poll_writable(sock, seconds + microseconds / 1_000_000)
    except (OSError, ValueError, KeyError) as e:
        logger.debug(f"readiness poll failed while connecting: {e}")
        return ConnectResult.FAILED

    if not ready:
        return ConnectResult.FAILED

    try:
        error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
    except OSError:
        return ConnectResult.FAILED

    if error != 0:
        logger.debug(f"connect failed: {errno.errorcode.get(error, error)}")
        return ConnectResult.FAILED

    return ConnectResult.OK


def _poll_writable(sock: socket.socket, seconds: float) -> bool:
    """
    True once `sock` is writable (or in error) within `seconds`.

    POSIX goes through the default selector (epoll/kqueue/poll), which has
    no FD_SETSIZE ceiling. Windows reports a failed connect in the
    exceptional set rather than the writable one, so it keeps select()
    with the socket in both.
    """
    if _IS_WINDOWS:
        _, writable, exceptional = select.select([], [sock], [sock], seconds)
        return bool(writable or exceptional)

    with selectors.DefaultSelector() as selector:
        selector.register(sock, selectors.EVENT_WRITE)
        return bool(selector.select(seconds))
