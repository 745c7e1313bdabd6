"""
=============================================================================
SOCKET PRIMITIVES
=============================================================================

Thin wrappers around the handful of socket calls the connector and the
one-shot helper need. Each wrapper hides one platform split and reports
failure by value instead of raising.

=============================================================================
RETURN CONVENTIONS
=============================================================================

    open_socket()     socket  | None       (None = could not create)
    set_blocking()    0       | -1
    set_timeout()     0       | -1
    send_all()        bytes accepted | -1
    recv()            bytes   | None
    close_socket()    always succeeds

=============================================================================
PLATFORM SPLITS
=============================================================================

    ┌──────────────────┬───────────────────────────┬──────────────────────┐
    │ Concern          │ POSIX                     │ Windows              │
    ├──────────────────┼───────────────────────────┼──────────────────────┤
    │ non-blocking     │ O_NONBLOCK file flag      │ ioctlsocket(FIONBIO) │
    │ SO_SNDTIMEO /    │ struct timeval            │ DWORD milliseconds   │
    │ SO_RCVTIMEO      │ (seconds, microseconds)   │                      │
    │ broken pipe      │ MSG_NOSIGNAL, NOSIGPIPE   │ no SIGPIPE at all    │
    └──────────────────┴───────────────────────────┴──────────────────────┘

socket.setblocking() already picks the right mechanism for the platform,
and it keeps the Python-level timeout of the socket object in step with
the descriptor flag. The timeouts go straight to setsockopt() so the
kernel enforces them on a blocking socket.

=============================================================================
"""

import sys
import socket
import struct
import logging
from typing import Optional, Tuple


logger = logging.getLogger(__name__)

_IS_WINDOWS = sys.platform == "win32"

# Passed on every send/recv so a peer reset never raises SIGPIPE.
_NOSIGNAL = getattr(socket, "MSG_NOSIGNAL", 0)

# struct timeval { time_t tv_sec; suseconds_t tv_usec; }
_TIMEVAL = "@ll"


def split_timeout(timeout_ms: int) -> Tuple[int, int]:
    """
    Split a millisecond timeout into (seconds, microseconds).

        split_timeout(1500) == (1, 500000)
    """
    return timeout_ms // 1000, (timeout_ms % 1000) * 1000


def open_socket(
    family: int,
    type: int = socket.SOCK_STREAM,
    proto: int = 0,
) -> Optional[socket.socket]:
    """
    Create a socket with the best-effort hardening options set.

    SO_REUSEADDR is always requested, SO_NOSIGPIPE where the platform has
    it. Failures of either option are ignored: the socket still works.

    Returns:
        The new socket, or None if the OS refused to create one.
    """
    try:
        sock = socket.socket(family, type, proto)
    except (OSError, ValueError) as e:
        logger.debug(f"socket({family}, {type}, {proto}) failed: {e}")
        return None

    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    except OSError:
        pass

    if hasattr(socket, "SO_NOSIGPIPE"):
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_NOSIGPIPE, 1)
        except OSError:
            pass

    return sock


def set_blocking(sock: socket.socket, blocking: bool) -> int:
    """Put the socket in blocking (True) or non-blocking (False) mode."""
    try:
        sock.setblocking(blocking)
    except OSError:
        return -1
    return 0


def set_timeout(sock: socket.socket, timeout_ms: int) -> int:
    """
    Apply `timeout_ms` as both the send and the receive timeout.

    A timeout of 0 means "no timeout" to the kernel, so both directions
    fall back to OS-default blocking behaviour.

    Returns:
        0 when both options were set, -1 as soon as either one fails.
    """
    if _IS_WINDOWS:
        value = int(timeout_ms)
    else:
        value = struct.pack(_TIMEVAL, *split_timeout(int(timeout_ms)))

    for option in (socket.SO_SNDTIMEO, socket.SO_RCVTIMEO):
        try:
            sock.setsockopt(socket.SOL_SOCKET, option, value)
        except (OSError, OverflowError, struct.error):
            return -1

    return 0


def get_timeout(sock: socket.socket, option: int = socket.SO_RCVTIMEO) -> Tuple[int, int]:
    """
    Read back a send/receive timeout as (seconds, microseconds).

    Raises:
        OSError: If the option cannot be read.
    """
    if _IS_WINDOWS:
        return split_timeout(sock.getsockopt(socket.SOL_SOCKET, option))

    raw = sock.getsockopt(socket.SOL_SOCKET, option, struct.calcsize(_TIMEVAL))
    return struct.unpack(_TIMEVAL, raw)


def send_all(sock: socket.socket, data: bytes) -> int:
    """
    Hand the whole buffer to the OS in a single send call.

    Short writes are NOT retried. The caller compares the result with
    len(data) to decide whether the send was complete.

    Returns:
        Number of bytes accepted, or -1 on error (timeout included).
    """
    try:
        return sock.send(data, _NOSIGNAL)
    except OSError as e:
        logger.debug(f"send of {len(data)} bytes failed: {e}")
        return -1


def recv(sock: socket.socket, size: int) -> Optional[bytes]:
    """
    Single receive call.

    Returns:
        Received bytes (b"" once the peer has closed), or None on error.
    """
    try:
        return sock.recv(size, _NOSIGNAL)
    except OSError as e:
        logger.debug(f"recv of {size} bytes failed: {e}")
        return None


def close_socket(sock: Optional[socket.socket]) -> None:
    """Release the OS handle. Safe to call on an already closed socket."""
    if sock is None:
        return
    try:
        sock.close()
    except OSError:
        pass
