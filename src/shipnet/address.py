"""
=============================================================================
ADDRESS CLASSIFICATION AND NAME RESOLUTION
=============================================================================

Before we can build a socket address we have to know what kind of text
we were handed:

    "127.0.0.1"          ──► IPv4 literal   ──► AF_INET
    "2001:db8::1"        ──► IPv6 literal   ──► AF_INET6
    "::ffff:10.0.0.1"    ──► IPv6 literal   ──► AF_INET6  (IPv4 tail form)
    "example.com"        ──► neither        ──► AF_UNSPEC (resolve it first)

The predicates here are TOTAL: they never raise, whatever the input.

=============================================================================
IPv4 LITERALS
=============================================================================

Exactly four decimal octets, 0-255, separated by dots:

    ┌─────┬───┬─────┬───┬─────┬───┬─────┐
    │ 192 │ . │ 168 │ . │  1  │ . │ 10  │
    └─────┴───┴─────┴───┴─────┴───┴─────┘

Rejected: "1.2.3" (three octets), "1.2.3.256", " 1.2.3.4" (whitespace)
and "1.2.3.4:80" (embedded port).

=============================================================================
IPv6 LITERALS
=============================================================================

Eight groups of up to four hex digits, with "::" standing in for one run
of zero groups, and an optional dotted-quad in the last 32 bits:

    2001:0db8:0000:0000:0000:0000:0000:0001
    2001:db8::1                       (compressed)
    ::ffff:192.0.2.1                  (IPv4 tail)

Brackets ("[::1]") and zone ids ("fe80::1%eth0") are NOT part of the
address grammar. The caller strips brackets before classifying.

=============================================================================
"""

import enum
import socket
import logging
import ipaddress


logger = logging.getLogger(__name__)


class NetworkFamily(enum.Enum):
    """
    Result of classifying a textual address.

    Each member carries the socket address family it maps to, so the
    classification can be fed straight into socket.socket().
    """

    V4 = socket.AF_INET
    V6 = socket.AF_INET6
    UNSPEC = socket.AF_UNSPEC

    @property
    def address_family(self) -> socket.AddressFamily:
        return self.value


def is_ipv4(address: str) -> bool:
    """True iff `address` is a dotted-quad IPv4 literal."""
    if not isinstance(address, str):
        return False

    try:
        ipaddress.IPv4Address(address)
    except ValueError:
        return False
    return True


def is_ipv6(address: str) -> bool:
    """True iff `address` is an IPv6 literal, including "::" and IPv4-tail forms."""
    if not isinstance(address, str) or "%" in address:
        return False

    try:
        ipaddress.IPv6Address(address)
    except ValueError:
        return False
    return True


def network_family(address: str) -> NetworkFamily:
    """
    Classify a textual address.

    Returns:
        NetworkFamily.V4 for an IPv4 literal, NetworkFamily.V6 for an IPv6
        literal, NetworkFamily.UNSPEC for anything else (hostnames included).
    """
    if is_ipv4(address):
        return NetworkFamily.V4
    if is_ipv6(address):
        return NetworkFamily.V6
    return NetworkFamily.UNSPEC


def sockaddr_to_ip(sockaddr: tuple, family: int) -> str:
    """
    Render the numeric address held in a socket address tuple.

    getaddrinfo() hands back tuples like ("127.0.0.1", 0) for AF_INET and
    ("::1", 0, 0, 0) for AF_INET6. The host part is normalised through
    inet_pton/inet_ntop, which also drops any "%zone" suffix.

    Returns:
        The numeric address, or "" for other families and malformed tuples.
    """
    if family not in (socket.AF_INET, socket.AF_INET6):
        return ""

    try:
        host = sockaddr[0].split("%", 1)[0]
        return socket.inet_ntop(family, socket.inet_pton(family, host))
    except (OSError, ValueError, TypeError, IndexError, AttributeError):
        return ""


def resolve_first(host: str) -> str:
    """
    Resolve a hostname to the first usable numeric address.

    ┌─────────────────────────────────────────────────────────────────┐
    │                    resolve_first() Flow                          │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   getaddrinfo(host, AF_UNSPEC)                                   │
    │        │                                                         │
    │        ├── fails ──────────────────────────────► ""              │
    │        │                                                         │
    │        └── records, in resolver order                            │
    │               │                                                  │
    │               └── first one that renders non-empty ──► address   │
    │                                                                  │
    │   nothing renders ─────────────────────────────► ""              │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

    "Not found", "server failure" and "no usable record" all come back as
    the empty string. Callers treat "" as fatal for that host.
    """
    if not host or not isinstance(host, str):
        return ""

    try:
        records = socket.getaddrinfo(host, None)
    except (OSError, UnicodeError) as e:
        logger.debug(f"Resolution of {host!r} failed: {e}")
        return ""

    for family, _type, _proto, _canonname, sockaddr in records:
        address = sockaddr_to_ip(sockaddr, family)
        if address:
            logger.debug(f"Resolved {host!r} to {address}")
            return address

    return ""
