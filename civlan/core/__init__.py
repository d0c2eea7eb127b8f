# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan Core Module - CI-V protocol engine and shared state

Contains:
- CI-V frame encoding/decoding and BCD frequency codec
- Byte-stream frame synchronizer
- Serialized command/ack queue
- Radio state, band plan and peer records
- Band conflict detection
"""

from .framing import (
    CivCommand,
    CivFrame,
    CivMessage,
    Ack,
    FrequencyReport,
    ModeReport,
    Unrecognized,
    build_frame,
    parse_frame,
    decode_frame,
    encode_frequency_bcd,
    decode_frequency_bcd,
    wake_preamble_count,
    mode_name,
    mode_to_byte,
)
from .sync import FrameSynchronizer
from .queue import CommandQueue, CommandResult
from .state import RadioState, band_from_hz, BAND_PLAN
from .peers import PeerRecord, RemoteState
from .conflict import compute_conflicts, ConflictTracker
from .controller import RadioController

__all__ = [
    # Framing
    'CivCommand',
    'CivFrame',
    'CivMessage',
    'Ack',
    'FrequencyReport',
    'ModeReport',
    'Unrecognized',
    'build_frame',
    'parse_frame',
    'decode_frame',
    'encode_frequency_bcd',
    'decode_frequency_bcd',
    'wake_preamble_count',
    'mode_name',
    'mode_to_byte',

    # Engine
    'FrameSynchronizer',
    'CommandQueue',
    'CommandResult',
    'RadioController',

    # State
    'RadioState',
    'band_from_hz',
    'BAND_PLAN',
    'PeerRecord',
    'RemoteState',
    'compute_conflicts',
    'ConflictTracker',
]
