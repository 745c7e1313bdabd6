"""
=============================================================================
CORE SOCKET LAYER
=============================================================================

Data flows strictly top-down, nothing calls back into the caller:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          ONE-SHOT SEND                               │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Classifies the address, opens a stream socket                    │
    │  • Connects, applies the I/O timeout, sends one payload, closes     │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTOR                                   │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Non-blocking connect bounded by connect_timeout                  │
    │  • Reads SO_ERROR to tell success from failure                      │
    │  • Leaves the socket in blocking mode                               │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          SOCKET PRIMITIVES                           │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • open / close, blocking toggle, send/receive timeouts             │
    │  • send and recv without SIGPIPE                                    │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .sockets import (
    open_socket,
    set_blocking,
    set_timeout,
    get_timeout,
    split_timeout,
    send_all,
    recv,
    close_socket,
)
from .connector import ConnectResult, connect_with_timeout
from .transport import (
    SUCCESS,
    SOCKET_ERROR,
    SendState,
    OneShotSender,
    build_sockaddr,
    start_connect,
    send_simple,
    one_shot_send,
)

__all__ = [
    # Primitives
    "open_socket",
    "set_blocking",
    "set_timeout",
    "get_timeout",
    "split_timeout",
    "send_all",
    "recv",
    "close_socket",
    # Connector
    "ConnectResult",
    "connect_with_timeout",
    # One-shot send
    "SUCCESS",
    "SOCKET_ERROR",
    "SendState",
    "OneShotSender",
    "build_sockaddr",
    "start_connect",
    "send_simple",
    "one_shot_send",
]
