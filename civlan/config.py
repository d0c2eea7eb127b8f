# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan.config

Station configuration as supplied by the front end (command line, saved
settings). Values are validated once here; the engine trusts them.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional

from .core.framing import DEFAULT_CONTROLLER_ADDRESS, DEFAULT_RIG_ADDRESS
from .core.queue import DEFAULT_ACK_TIMEOUT
from .exceptions import ConfigError
from .interfaces.presence import (
    DEFAULT_BROADCAST,
    DEFAULT_UDP_PORT,
    HEARTBEAT_INTERVAL,
    PEER_TIMEOUT,
    check_liveness,
)

logger = logging.getLogger(__name__)


def parse_hex_byte(text: Any, fallback: Optional[int] = None) -> Optional[int]:
    """
    Parse a CI-V address such as "94", "0x94" or "E0".

    Returns fallback when the text is not a hex byte.
    """
    if isinstance(text, int) and not isinstance(text, bool):
        return text if 0 <= text <= 0xFF else fallback
    if not isinstance(text, str):
        return fallback
    clean = text.strip()
    if clean.lower().startswith("0x"):
        clean = clean[2:]
    try:
        value = int(clean, 16)
    except ValueError:
        return fallback
    return value if 0 <= value <= 0xFF else fallback


def parse_line_level(value: Any, what: str = "line") -> bool:
    """Saved DTR/RTS level: 0/1, "0"/"1" or a bool"""
    if isinstance(value, bool):
        return value
    try:
        level = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{what} must be 0 or 1, got {value!r}") from None
    if level not in (0, 1):
        raise ConfigError(f"{what} must be 0 or 1, got {value!r}")
    return bool(level)


@dataclass
class StationConfig:
    """
    Boundary configuration for one station.

    Attributes:
        serial_port: Device path of the CI-V interface (None = no radio)
        baudrate: Serial line speed
        rig_address: CI-V address of the radio
        controller_address: CI-V address of this controller
        dtr: DTR level after open (None = untouched)
        rts: RTS level after open (None = untouched)
        ack_timeout: Seconds to wait for each ack
        name: Display name shown to peers
        presence: Enable LAN presence and conflict detection
        udp_port: Presence UDP port
        broadcast_address: Presence broadcast destination
        heartbeat_interval: Seconds between presence broadcasts
        peer_timeout: Seconds before a silent peer is dropped
    """
    serial_port: Optional[str] = None
    baudrate: int = 9600
    rig_address: int = DEFAULT_RIG_ADDRESS
    controller_address: int = DEFAULT_CONTROLLER_ADDRESS
    dtr: Optional[bool] = None
    rts: Optional[bool] = None
    ack_timeout: float = DEFAULT_ACK_TIMEOUT
    name: str = field(default_factory=socket.gethostname)
    presence: bool = True
    udp_port: int = DEFAULT_UDP_PORT
    broadcast_address: str = DEFAULT_BROADCAST
    heartbeat_interval: float = HEARTBEAT_INTERVAL
    peer_timeout: float = PEER_TIMEOUT

    def __post_init__(self):
        if self.baudrate <= 0:
            raise ConfigError(f"Invalid baud rate: {self.baudrate}")
        for attr in ("rig_address", "controller_address"):
            value = getattr(self, attr)
            if not isinstance(value, int) or not 0 <= value <= 0xFF:
                raise ConfigError(f"{attr} must be a single byte, got {value!r}")
        if self.ack_timeout <= 0:
            raise ConfigError(f"Invalid ack timeout: {self.ack_timeout}")
        if not 0 < self.udp_port < 65536:
            raise ConfigError(f"Invalid UDP port: {self.udp_port}")
        check_liveness(self.heartbeat_interval, self.peer_timeout)
        self.name = (self.name or "").strip() or socket.gethostname()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StationConfig":
        """
        Build a config from saved settings.

        Accepts the saved-selection keys ("path", "baud", "rigaddr",
        "ctrladdr") as well as the attribute names; unknown keys are
        ignored.
        """
        aliases = {
            "path": "serial_port",
            "port": "serial_port",
            "baud": "baudrate",
            "rigaddr": "rig_address",
            "ctrladdr": "controller_address",
            "label": "name",
            "udpPort": "udp_port",
            "broadcast": "broadcast_address",
        }
        known = set(cls.__dataclass_fields__)
        values: Dict[str, Any] = {}
        for key, value in data.items():
            attr = aliases.get(key, key)
            if attr not in known:
                logger.debug(f"Ignoring unknown config key {key!r}")
                continue
            values[attr] = value

        for attr, default in (("rig_address", DEFAULT_RIG_ADDRESS),
                              ("controller_address", DEFAULT_CONTROLLER_ADDRESS)):
            if attr in values:
                values[attr] = parse_hex_byte(values[attr], default)
        for attr in ("dtr", "rts"):
            if values.get(attr) is not None:
                values[attr] = parse_line_level(values[attr], attr)

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
