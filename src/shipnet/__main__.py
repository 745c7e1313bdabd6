"""
=============================================================================
SHIPNET CLI ENTRY POINT
=============================================================================

Command-line access to the socket helpers, mostly for checking from a
shell what the library would do.

=============================================================================
USAGE
=============================================================================

    # Classify an address
    python -m shipnet family 2001:db8::1          → V6

    # Resolve a hostname to its first numeric address
    python -m shipnet resolve localhost           → 127.0.0.1

    # One-shot send (exit status 0 on full delivery)
    python -m shipnet send 127.0.0.1 7000 "hello"

    # Hostname target, shorter connect deadline, verbose
    python -m shipnet --connect-timeout 500 --log-level DEBUG \\
        send --resolve collector.internal 7000 "hello"

Defaults for the global options come from SHIPNET_CONNECT_TIMEOUT,
SHIPNET_IO_TIMEOUT and SHIPNET_LOG_LEVEL.

=============================================================================
"""

import argparse
import logging
import sys

from . import __version__
from .config import NetConfig, LOG_LEVELS, configure
from .address import network_family, resolve_first
from .core import SUCCESS, one_shot_send


logger = logging.getLogger("shipnet.cli")


def _setup_logging(config: NetConfig):
    """Configure logging based on config."""
    logging.basicConfig(
        level=config.log_level_value,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("shipnet").setLevel(config.log_level_value)


def build_parser(defaults: NetConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shipnet",
        description="Bounded-timeout TCP send helpers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  shipnet family ::1                         # V6
  shipnet resolve localhost                  # 127.0.0.1
  shipnet send 127.0.0.1 7000 hi             # one-shot send
  shipnet send --resolve localhost 7000 hi   # resolve first
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # GLOBAL ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--connect-timeout", "-t",
        type=int,
        default=defaults.connect_timeout,
        help=f"Connect timeout in milliseconds (default: {defaults.connect_timeout})"
    )

    parser.add_argument(
        "--io-timeout",
        type=int,
        default=defaults.io_timeout,
        help=f"Send/receive timeout in milliseconds (default: {defaults.io_timeout})"
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"shipnet {__version__}"
    )

    # ─────────────────────────────────────────────────────────────────────
    # COMMANDS
    # ─────────────────────────────────────────────────────────────────────

    commands = parser.add_subparsers(dest="command", required=True)

    family = commands.add_parser("family", help="Classify an address as V4, V6 or UNSPEC")
    family.add_argument("address")

    resolve = commands.add_parser("resolve", help="Print the first numeric address of a host")
    resolve.add_argument("host")

    send = commands.add_parser("send", help="Connect, send one payload, close")
    send.add_argument("address", help="IPv4/IPv6 literal, or a hostname with --resolve")
    send.add_argument("port", type=int)
    send.add_argument("payload", help="Sent as UTF-8")
    send.add_argument(
        "--resolve", "-r",
        action="store_true",
        help="Resolve ADDRESS with the system resolver first"
    )

    return parser


def _cmd_family(args) -> int:
    print(network_family(args.address).name)
    return 0


def _cmd_resolve(args) -> int:
    address = resolve_first(args.host)
    if not address:
        print(f"Error: could not resolve {args.host}", file=sys.stderr)
        return 1
    print(address)
    return 0


def _cmd_send(args) -> int:
    address = args.address
    if address.startswith("[") and address.endswith("]"):
        address = address[1:-1]

    if args.resolve:
        address = resolve_first(address)
        if not address:
            print(f"Error: could not resolve {args.address}", file=sys.stderr)
            return 1

    status = one_shot_send(address, args.port, args.payload)
    if status != SUCCESS:
        print(f"Error: send to {address}:{args.port} failed", file=sys.stderr)
        return 1

    logger.info(f"Sent {len(args.payload.encode('utf-8'))} bytes to {address}:{args.port}")
    return 0


_COMMANDS = {
    "family": _cmd_family,
    "resolve": _cmd_resolve,
    "send": _cmd_send,
}


def main(argv=None) -> int:
    """
    Main CLI entry point.

    Returns the process exit status: 0 on success, 1 on a failed command,
    2 on invalid configuration (argparse uses 2 for usage errors too).
    """
    try:
        defaults = NetConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment setting: {e}", file=sys.stderr)
        return 2

    args = build_parser(defaults).parse_args(argv)

    try:
        config = configure(
            connect_timeout=args.connect_timeout,
            io_timeout=args.io_timeout,
            log_level=args.log_level,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    _setup_logging(config)

    return _COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
