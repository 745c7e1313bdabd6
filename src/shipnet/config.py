"""
=============================================================================
NETWORK CONFIGURATION
=============================================================================

Centralized configuration for the socket helpers.

=============================================================================
ONE PROCESS-WIDE VALUE
=============================================================================

The connector needs a single number: how long to wait for a TCP handshake.
It lives on a module-level NetConfig instance called `settings`:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION LIFECYCLE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. Process starts        settings = NetConfig()  (3000 ms)        │
    │                                                                      │
    │   2. Initialisation        configure(connect_timeout=500)           │
    │      (single thread!)      └── validated, then written              │
    │                                                                      │
    │   3. Normal operation      connect_with_timeout() reads it          │
    │      (any thread)          └── never written again                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Reads and writes are NOT synchronized. Set it before starting threads.
A caller that wants a different timeout for one call passes `timeout=`
to the connector instead of touching the global.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    1. Command-line arguments     python -m shipnet --connect-timeout 500
    2. Environment variables      SHIPNET_CONNECT_TIMEOUT=500
    3. Default values             (in this dataclass)

Only the CLI looks at the environment. The library core reads `settings`
and nothing else.

=============================================================================
"""

import os
import logging
from dataclasses import dataclass, replace


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class NetConfig:
    """
    Configuration for the socket helpers.

    All timeouts are integer milliseconds, matching what the OS socket
    options and the readiness poll are fed with.
    """

    # ─────────────────────────────────────────────────────────────────────
    # TIMEOUTS
    # ─────────────────────────────────────────────────────────────────────

    connect_timeout: int = 3000
    """
    Upper bound on a non-blocking connect, in milliseconds.
    The connector waits this long for the socket to become writable.
    """

    io_timeout: int = 3000
    """
    Send/receive timeout applied to a connected socket, in milliseconds.
    Independent of connect_timeout.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "WARNING"
    """
    Logging level used by the CLI (DEBUG shows every connect attempt).
    """

    @classmethod
    def from_env(cls) -> "NetConfig":
        """
        Create configuration from environment variables.

        SHIPNET_CONNECT_TIMEOUT   Connect timeout in ms (default: 3000)
        SHIPNET_IO_TIMEOUT        Send/receive timeout in ms (default: 3000)
        SHIPNET_LOG_LEVEL         Logging level (default: WARNING)
        """
        return cls(
            connect_timeout=int(os.getenv("SHIPNET_CONNECT_TIMEOUT", "3000")),
            io_timeout=int(os.getenv("SHIPNET_IO_TIMEOUT", "3000")),
            log_level=os.getenv("SHIPNET_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast at startup rather than on the first connect.
        """
        if self.connect_timeout < 0:
            raise ValueError(f"connect_timeout must be >= 0, got {self.connect_timeout}")

        if self.io_timeout < 0:
            raise ValueError(f"io_timeout must be >= 0, got {self.io_timeout}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

    @property
    def log_level_value(self) -> int:
        """Numeric logging level for logging.basicConfig()."""
        return getattr(logging, self.log_level.upper(), logging.WARNING)


# The process-wide instance read by the connector and the one-shot helper.
settings = NetConfig()


def configure(**changes) -> NetConfig:
    """
    Update the process-wide settings.

    Call this during single-threaded initialisation only. The new values
    are validated before anything is written, so a bad value leaves the
    previous settings in place.

        configure(connect_timeout=500)

    Raises:
        ValueError: If a value is invalid.
        TypeError: If a field name is unknown.
    """
    updated = replace(settings, **changes)
    updated.validate()

    for name, value in changes.items():
        setattr(settings, name, value)

    return settings
