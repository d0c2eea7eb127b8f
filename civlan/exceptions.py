# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan.exceptions

Exception hierarchy shared by the CI-V engine, the serial link and the
presence service.

Negative acknowledgements and ack timeouts are NOT exceptions; they are
reported through CommandResult. Exceptions are reserved for invalid
arguments (rejected before any I/O) and for I/O failures.
"""


class CivError(Exception):
    """Base exception for all civlan errors"""


class InvalidArgumentError(CivError, ValueError):
    """Unknown mode, out-of-range frequency, bad address or VFO"""


class TransportError(CivError):
    """Serial or network I/O failure (open, write, bind, closed link)"""


class ConfigError(CivError, ValueError):
    """Invalid station configuration"""


__all__ = [
    "CivError",
    "InvalidArgumentError",
    "TransportError",
    "ConfigError",
]
