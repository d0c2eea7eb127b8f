# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan Utilities Module

Provides logging setup, the blocking-I/O thread helper and small display
formatters shared by the station and any front end.
"""

import logging
from typing import List, Optional

from .async_thread import run_in_thread

__all__: List[str] = [
    'run_in_thread',
    'configure_logging',
    'format_hz',
]


def configure_logging(level: str = "INFO") -> None:
    """
    Configure package-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s %(name)s %(levelname)s: %(message)s'
    )


def format_hz(hz: Optional[int]) -> str:
    """Frequency with dot-grouped thousands, e.g. 14.200.000"""
    if hz is None:
        return "-"
    return f"{int(hz):,}".replace(",", ".")
