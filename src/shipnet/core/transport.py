"""
=============================================================================
ONE-SHOT SEND
=============================================================================

Connect, send one payload, close. No reply is read and the socket is never
reused. This is the only thing the calling application needs from us:

    status = one_shot_send("10.0.0.5", 7000, b"ping")
    if status != SUCCESS:
        ...  # nothing was delivered, or only part of it

=============================================================================
STATE MACHINE
=============================================================================

    IDLE ──► OPENED ──► CONNECTING ──► CONNECTED ──► SENT ──► CLOSED
     │          │            │              │                   ▲
     │          │            │              │                   │
     └──────────┴────────────┴──────────────┴───────────────────┘
                        any failure jumps straight here

CLOSED is terminal: a sender is good for exactly one payload.

=============================================================================
SOCKET OWNERSHIP
=============================================================================

The sender opens the socket and is the only thing that ever holds it.
It is closed exactly once, in a finally block, whichever way send()
leaves:

    - address is not a literal     no socket is opened at all
    - payload is not bytes or str  no socket is opened at all
    - connect timed out / refused  closed
    - timeout could not be set     closed
    - short or failed send         closed
    - full send                    closed

=============================================================================
"""

import enum
import socket
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Union

from .. import config
from ..address import NetworkFamily, network_family
from .connector import ConnectResult, connect_with_timeout
from .sockets import open_socket, set_timeout, send_all, close_socket


logger = logging.getLogger(__name__)


SUCCESS = 0
SOCKET_ERROR = -1

Payload = Union[bytes, bytearray, memoryview, str]


class SendState(enum.Enum):
    """Lifecycle of a one-shot send."""

    IDLE = "idle"              # Nothing done yet
    OPENED = "opened"          # Socket created
    CONNECTING = "connecting"  # Non-blocking connect in flight
    CONNECTED = "connected"    # Handshake done, I/O timeout applied
    SENT = "sent"              # Whole payload accepted by the OS
    CLOSED = "closed"          # Socket released (terminal)


def _to_bytes(payload: Payload) -> Optional[bytes]:
    """Payload as bytes, None when it is neither bytes-like nor str."""
    if isinstance(payload, str):
        return payload.encode("utf-8")
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    logger.debug(f"payload must be bytes or str, not {type(payload).__name__}")
    return None


def build_sockaddr(address: str, port: int) -> Optional[tuple]:
    """
    Build the socket address tuple for a numeric literal.

        build_sockaddr("127.0.0.1", 80)  == ("127.0.0.1", 80)
        build_sockaddr("::1", 80)        == ("::1", 80, 0, 0)
        build_sockaddr("example.com", 80) is None

    Returns:
        The tuple, or None if `address` is not an IPv4/IPv6 literal or
        `port` does not fit in 16 bits.
    """
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 0xFFFF:
        return None

    family = network_family(address)
    if family is NetworkFamily.V4:
        return (address, port)
    if family is NetworkFamily.V6:
        return (address, port, 0, 0)
    return None


def start_connect(
    sock: socket.socket,
    address: str,
    port: int,
    timeout: Optional[int] = None,
) -> int:
    """
    Connect an already opened socket to a numeric address.

    Returns:
        The connector's result (0, 1 or -1), or -1 when `address` is not
        a literal the socket could be pointed at.
    """
    sockaddr = build_sockaddr(address, port)
    if sockaddr is None:
        return ConnectResult.FATAL
    return connect_with_timeout(sock, sockaddr, timeout)


def send_simple(sock: socket.socket, payload: Payload) -> int:
    """send_all() for str or bytes. Strings go out as UTF-8, anything else is -1."""
    data = _to_bytes(payload)
    if data is None:
        return -1
    return send_all(sock, data)


@dataclass
class OneShotSender:
    """
    A single connect-send-close transaction.

    Attributes:
        address: IPv4 or IPv6 literal. Hostnames are rejected, resolve
                 them first with resolve_first().
        port: Destination port.
        timeout: Connect timeout in ms (None = settings.connect_timeout).
        io_timeout: Send/receive timeout in ms (None = settings.io_timeout).
        id: Short identifier used in log lines.
        state: Current SendState.
        bytes_sent: What the OS accepted on the last send, -1 on error.
    """

    address: str
    port: int
    timeout: Optional[int] = None
    io_timeout: Optional[int] = None

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: SendState = SendState.IDLE
    bytes_sent: int = 0

    _socket: Optional[socket.socket] = field(default=None, repr=False)

    def send(self, payload: Payload) -> int:
        """
        Run the transaction.

        Returns:
            SUCCESS (0) iff every byte of `payload` was accepted by the OS,
            SOCKET_ERROR (-1) otherwise, including for a payload that is
            neither bytes-like nor str.
        """
        if self.state is not SendState.IDLE:
            logger.debug(f"[{self.id}] send() called in state {self.state.value}")
            return SOCKET_ERROR

        data = _to_bytes(payload)
        if data is None:
            self._transition(SendState.CLOSED)
            return SOCKET_ERROR

        sockaddr = build_sockaddr(self.address, self.port)
        if sockaddr is None:
            logger.debug(f"[{self.id}] {self.address!r}:{self.port} is not a numeric address")
            self._transition(SendState.CLOSED)
            return SOCKET_ERROR

        family = network_family(self.address)
        self._socket = open_socket(family.address_family, socket.SOCK_STREAM, socket.IPPROTO_IP)
        if self._socket is None:
            self._transition(SendState.CLOSED)
            return SOCKET_ERROR

        self._transition(SendState.OPENED)

        try:
            return self._run(sockaddr, data)
        finally:
            self._close()

    def _run(self, sockaddr: tuple, data: bytes) -> int:
        self._transition(SendState.CONNECTING)
        if connect_with_timeout(self._socket, sockaddr, self.timeout) != ConnectResult.OK:
            return SOCKET_ERROR

        self._transition(SendState.CONNECTED)

        io_timeout = self.io_timeout
        if io_timeout is None:
            io_timeout = config.settings.io_timeout
        if set_timeout(self._socket, io_timeout) == -1:
            return SOCKET_ERROR

        self.bytes_sent = send_all(self._socket, data)
        if self.bytes_sent != len(data):
            logger.debug(f"[{self.id}] short send: {self.bytes_sent}/{len(data)} bytes")
            return SOCKET_ERROR

        self._transition(SendState.SENT)
        return SUCCESS

    def _close(self):
        close_socket(self._socket)
        self._socket = None
        self._transition(SendState.CLOSED)

    def _transition(self, state: SendState):
        logger.debug(f"[{self.id}] {self.state.value} -> {state.value}")
        self.state = state


def one_shot_send(
    address: str,
    port: int,
    payload: Payload,
    timeout: Optional[int] = None,
) -> int:
    """
    Connect to `address`:`port`, send `payload` in one call, close.

    Args:
        address: IPv4 or IPv6 literal (no brackets, no hostnames).
        port: Destination port, 0-65535.
        payload: Bytes to send; str is sent as UTF-8.
        timeout: Connect timeout in ms, None for settings.connect_timeout.

    Returns:
        0 when the whole payload was accepted, -1 otherwise. Short writes
        count as failure.
    """
    return OneShotSender(address, port, timeout=timeout).send(payload)
