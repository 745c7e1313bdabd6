"""
=============================================================================
SHIPNET - Bounded-Timeout TCP Send Helpers
=============================================================================

Small socket utilities for a larger networking tool: classify an address,
resolve a hostname, and deliver one payload over TCP without ever waiting
longer than a configured deadline for the connection.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    shipnet/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m shipnet)
    ├── config.py            # NetConfig dataclass, process-wide settings
    ├── address.py           # IPv4/IPv6 classification, name resolution
    └── core/                # Socket layer
        ├── sockets.py       # Socket primitives (blocking, timeouts, send)
        ├── connector.py     # Non-blocking connect with a deadline
        └── transport.py     # One-shot connect-send-close

=============================================================================
QUICK START
=============================================================================

    from shipnet import configure, resolve_first, one_shot_send, SUCCESS

    configure(connect_timeout=500)      # once, at startup

    address = resolve_first("collector.internal")
    if address and one_shot_send(address, 9000, b"event") == SUCCESS:
        print("delivered")

=============================================================================
"""

import logging

__version__ = "1.0.0"

from .config import NetConfig, settings, configure
from .address import (
    NetworkFamily,
    is_ipv4,
    is_ipv6,
    network_family,
    resolve_first,
    sockaddr_to_ip,
)
from .core import (
    ConnectResult,
    SendState,
    OneShotSender,
    SUCCESS,
    SOCKET_ERROR,
    connect_with_timeout,
    set_blocking,
    set_timeout,
    one_shot_send,
)

# Library code stays quiet unless the application configures logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "NetConfig",
    "settings",
    "configure",
    "NetworkFamily",
    "is_ipv4",
    "is_ipv6",
    "network_family",
    "resolve_first",
    "sockaddr_to_ip",
    "ConnectResult",
    "SendState",
    "OneShotSender",
    "SUCCESS",
    "SOCKET_ERROR",
    "connect_with_timeout",
    "set_blocking",
    "set_timeout",
    "one_shot_send",
    "__version__",
]
