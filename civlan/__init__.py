# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan - Icom CI-V radio control with LAN band-conflict presence

Provides:
- CI-V frame encoding/decoding and serialized command/ack queue
- pyserial link to the radio
- UDP presence service and band conflict detection
"""

__version__ = "0.1.0"

from .core.framing import (
    CivCommand,
    Ack,
    FrequencyReport,
    ModeReport,
    Unrecognized,
    decode_frame,
    encode_frequency_bcd,
    decode_frequency_bcd,
)
from .core.sync import FrameSynchronizer
from .core.queue import CommandQueue, CommandResult
from .core.state import RadioState, band_from_hz
from .core.peers import PeerRecord, RemoteState
from .core.conflict import compute_conflicts, ConflictTracker
from .core.controller import RadioController

from .interfaces.transport import AsyncByteLink, LoopbackLink
from .interfaces.serial_link import SerialLink
from .interfaces.presence import PresenceService

from .config import StationConfig, parse_hex_byte
from .station import Station

from .exceptions import (
    CivError,
    InvalidArgumentError,
    TransportError,
    ConfigError,
)

from .utils import configure_logging, format_hz

__all__ = [
    # Core
    'CivCommand',
    'Ack',
    'FrequencyReport',
    'ModeReport',
    'Unrecognized',
    'decode_frame',
    'encode_frequency_bcd',
    'decode_frequency_bcd',
    'FrameSynchronizer',
    'CommandQueue',
    'CommandResult',
    'RadioState',
    'band_from_hz',
    'PeerRecord',
    'RemoteState',
    'compute_conflicts',
    'ConflictTracker',
    'RadioController',

    # Interfaces
    'AsyncByteLink',
    'LoopbackLink',
    'SerialLink',
    'PresenceService',

    # Application
    'StationConfig',
    'parse_hex_byte',
    'Station',

    # Exceptions
    'CivError',
    'InvalidArgumentError',
    'TransportError',
    'ConfigError',

    # Utilities
    'configure_logging',
    'format_hz',
    'get_version',

    # Metadata
    '__version__'
]


def get_version() -> str:
    """Return the package version."""
    return __version__
