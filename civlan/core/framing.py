# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan.core.framing

Icom CI-V frame encoding and decoding.

Implements:
- Frame construction with optional wake preamble (power-on at low baud)
- Structural frame parsing (tolerates 1+ leading preamble bytes)
- Ack/NAK, frequency and mode report decoding
- 5-byte BCD frequency field, least-significant digit pair first
- Mode name <-> mode byte table
- Builders for the supported commands (frequency, mode, split, VFO, power)

All functions are pure; no state is kept here.

Frame layout:
    FE FE <to> <from> <cmd> [payload...] FD
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional, Union

from ..exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

# CI-V constants
PREAMBLE = 0xFE
TERMINATOR = 0xFD
ACK_OK = 0xFB
ACK_NG = 0xFA

DEFAULT_RIG_ADDRESS = 0x94
DEFAULT_CONTROLLER_ADDRESS = 0xE0

MIN_FRAME_LEN = 6
BCD_FREQ_LEN = 5
MAX_FREQUENCY_HZ = 9_999_999_999

DEFAULT_FILTER = 2


class CivCommand(IntEnum):
    """CI-V command bytes handled by civlan"""
    TRANSCEIVE_FREQUENCY = 0x00  # Unsolicited frequency broadcast
    TRANSCEIVE_MODE = 0x01       # Unsolicited mode broadcast
    READ_FREQUENCY = 0x03
    READ_MODE = 0x04
    SET_FREQUENCY = 0x05
    SET_MODE = 0x06
    SET_VFO = 0x07
    SET_SPLIT = 0x0F
    POWER = 0x18


FREQUENCY_COMMANDS = (CivCommand.TRANSCEIVE_FREQUENCY, CivCommand.READ_FREQUENCY)
MODE_COMMANDS = (CivCommand.TRANSCEIVE_MODE, CivCommand.READ_MODE)

MODES: Dict[str, int] = {
    "LSB": 0x00,
    "USB": 0x01,
    "AM": 0x02,
    "CW": 0x03,
    "RTTY": 0x04,
    "FM": 0x05,
    "CW-R": 0x07,
    "RTTY-R": 0x08,
}
_MODE_NAMES: Dict[int, str] = {value: name for name, value in MODES.items()}

# (minimum baud, extra preamble bytes), highest threshold first
WAKE_PREAMBLE_TABLE = (
    (115200, 150),
    (57600, 75),
    (38400, 50),
    (19200, 25),
    (9600, 13),
)
WAKE_PREAMBLE_MIN = 7


@dataclass(frozen=True)
class CivFrame:
    """Structural view of a received frame"""
    to: int
    src: int
    command: int
    payload: bytes
    raw: bytes


@dataclass(frozen=True)
class Ack:
    ok: bool


@dataclass(frozen=True)
class FrequencyReport:
    hz: int
    reply: bool = False  # Answer to our read, not a transceive broadcast


@dataclass(frozen=True)
class ModeReport:
    name: str
    raw_byte: int
    filter_byte: int
    reply: bool = False


@dataclass(frozen=True)
class Unrecognized:
    frame: CivFrame


CivMessage = Union[Ack, FrequencyReport, ModeReport, Unrecognized]


def check_byte(value: int, what: str) -> int:
    """Validate a CI-V address or command byte"""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFF:
        raise InvalidArgumentError(f"{what} must be a single byte (0-255), got {value!r}")
    return value


def build_frame(
    to: int,
    src: int,
    command: int,
    payload: bytes = b"",
    wake_preamble: int = 0
) -> bytes:
    """
    Build a complete CI-V frame.

    Args:
        to: Destination (rig) address
        src: Source (controller) address
        command: Command byte
        payload: Command-dependent payload bytes
        wake_preamble: Extra preamble bytes sent ahead of the frame

    Returns:
        Frame bytes ready for the serial line
    """
    check_byte(to, "Rig address")
    check_byte(src, "Controller address")
    check_byte(command, "Command")
    if wake_preamble < 0:
        raise InvalidArgumentError(f"Invalid wake preamble count: {wake_preamble}")

    frame = bytearray([PREAMBLE] * (wake_preamble + 2))
    frame += bytes([to, src, command])
    frame += bytes(payload)
    frame.append(TERMINATOR)
    return bytes(frame)


def parse_frame(frame: bytes) -> Optional[CivFrame]:
    """
    Split a raw frame into addresses, command and payload.

    Returns None if the frame is too short, unterminated, or has fewer
    than three header bytes after the preamble run.
    """
    if not frame or len(frame) < MIN_FRAME_LEN:
        return None
    if frame[-1] != TERMINATOR:
        return None

    i = 0
    while i < len(frame) and frame[i] == PREAMBLE:
        i += 1

    if len(frame) < i + 4:
        return None

    return CivFrame(
        to=frame[i],
        src=frame[i + 1],
        command=frame[i + 2],
        payload=bytes(frame[i + 3:-1]),
        raw=bytes(frame)
    )


def decode_frame(frame: bytes) -> Optional[CivMessage]:
    """
    Interpret a complete frame.

    The byte before the terminator is checked for an ack/NAK code before
    anything else; OK and NG frames carry no payload.

    Returns:
        Ack, FrequencyReport, ModeReport or Unrecognized, or None when the
        frame is malformed (including invalid BCD in a frequency report)
    """
    parsed = parse_frame(frame)
    if parsed is None:
        return None

    code = frame[-2]
    if code == ACK_OK:
        return Ack(ok=True)
    if code == ACK_NG:
        return Ack(ok=False)

    if parsed.command in FREQUENCY_COMMANDS and len(parsed.payload) >= BCD_FREQ_LEN:
        hz = decode_frequency_bcd(parsed.payload[:BCD_FREQ_LEN])
        if hz is None:
            logger.debug(f"Invalid BCD frequency in frame {frame.hex()}")
            return None
        return FrequencyReport(hz=hz, reply=parsed.command == CivCommand.READ_FREQUENCY)

    if parsed.command in MODE_COMMANDS and len(parsed.payload) >= 2:
        mode_byte = parsed.payload[0]
        return ModeReport(
            name=mode_name(mode_byte),
            raw_byte=mode_byte,
            filter_byte=parsed.payload[1],
            reply=parsed.command == CivCommand.READ_MODE
        )

    return Unrecognized(frame=parsed)


def encode_frequency_bcd(hz: int) -> bytes:
    """
    Encode a frequency as 5 BCD bytes, least-significant pair first.

    14.200.000 Hz -> "0014200000" -> 00 00 20 14 00
    """
    if isinstance(hz, bool) or not isinstance(hz, int):
        raise InvalidArgumentError(f"Frequency must be an integer number of Hz, got {hz!r}")
    if not 0 <= hz <= MAX_FREQUENCY_HZ:
        raise InvalidArgumentError(f"Frequency out of range: {hz} Hz")

    digits = f"{hz:010d}"
    out = bytearray()
    for i in range(len(digits), 0, -2):
        tens = int(digits[i - 2])
        ones = int(digits[i - 1])
        out.append((tens << 4) | ones)
    return bytes(out)


def decode_frequency_bcd(data: bytes) -> Optional[int]:
    """
    Decode a BCD frequency field (least-significant pair first).

    Returns None for an empty field or any nibble greater than 9.
    """
    if not data:
        return None

    digits = []
    for byte in reversed(data):
        tens = (byte >> 4) & 0x0F
        ones = byte & 0x0F
        if tens > 9 or ones > 9:
            return None
        digits.append(f"{tens}{ones}")

    text = "".join(digits).lstrip("0") or "0"
    return int(text)


def wake_preamble_count(baud: int) -> int:
    """Extra preamble bytes needed to wake a powered-off radio at this baud"""
    for threshold, count in WAKE_PREAMBLE_TABLE:
        if baud >= threshold:
            return count
    return WAKE_PREAMBLE_MIN


def mode_name(mode_byte: int) -> str:
    """Mode name for a mode byte; unknown bytes get a MODE_0xNN placeholder"""
    return _MODE_NAMES.get(mode_byte, f"MODE_0x{mode_byte:02x}")


def mode_to_byte(name: str) -> int:
    """Mode byte for a mode name (case-insensitive)"""
    key = str(name).strip().upper()
    if key not in MODES:
        raise InvalidArgumentError(f"Unknown mode: {name!r}")
    return MODES[key]


# Command builders

def read_frequency(to: int, src: int) -> bytes:
    return build_frame(to, src, CivCommand.READ_FREQUENCY)


def read_mode(to: int, src: int) -> bytes:
    return build_frame(to, src, CivCommand.READ_MODE)


def set_frequency(to: int, src: int, hz: int) -> bytes:
    return build_frame(to, src, CivCommand.SET_FREQUENCY, encode_frequency_bcd(hz))


def set_mode(to: int, src: int, name: str, filter_width: int = DEFAULT_FILTER) -> bytes:
    """Set mode; filter is clamped to 1-3"""
    mode_byte = mode_to_byte(name)
    filter_byte = max(1, min(3, int(filter_width)))
    return build_frame(to, src, CivCommand.SET_MODE, bytes([mode_byte, filter_byte]))


def set_split(to: int, src: int, on: bool) -> bytes:
    return build_frame(to, src, CivCommand.SET_SPLIT, bytes([0x01 if on else 0x00]))


def set_vfo(to: int, src: int, which: str) -> bytes:
    vfo = str(which).strip().upper()
    if vfo not in ("A", "B"):
        raise InvalidArgumentError(f"VFO must be A or B, got {which!r}")
    return build_frame(to, src, CivCommand.SET_VFO, bytes([0x01 if vfo == "B" else 0x00]))


def power_on(to: int, src: int, baud: int) -> bytes:
    """Power-on frame with a baud-dependent wake preamble"""
    return build_frame(
        to, src, CivCommand.POWER, b"\x01",
        wake_preamble=wake_preamble_count(baud)
    )


def power_off(to: int, src: int) -> bytes:
    return build_frame(to, src, CivCommand.POWER, b"\x00")
