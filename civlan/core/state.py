# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan.core.state

Locally observed transceiver state and the amateur band plan.

RadioState is only changed by decoded frequency/mode reports and by
explicit operator changes (addresses, display name). The band is derived
from the frequency every time the frequency changes.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .framing import (
    DEFAULT_CONTROLLER_ADDRESS,
    DEFAULT_RIG_ADDRESS,
    CivMessage,
    FrequencyReport,
    ModeReport,
    check_byte,
)

logger = logging.getLogger(__name__)

# (name, low MHz, high MHz), both edges inclusive
BAND_PLAN: Tuple[Tuple[str, float, float], ...] = (
    ("160m", 1.8, 2.0),
    ("80m", 3.5, 4.0),
    ("60m", 5.0, 5.5),
    ("40m", 7.0, 7.3),
    ("30m", 10.1, 10.15),
    ("20m", 14.0, 14.35),
    ("17m", 18.068, 18.168),
    ("15m", 21.0, 21.45),
    ("12m", 24.89, 24.99),
    ("10m", 28.0, 29.7),
    ("6m", 50.0, 54.0),
    ("2m", 144.0, 148.0),
    ("70cm", 420.0, 450.0),
)


def band_from_hz(hz: Optional[int]) -> Optional[str]:
    """Band name for a frequency in Hz, or None outside every band"""
    if hz is None:
        return None
    mhz = hz / 1e6
    for name, low, high in BAND_PLAN:
        if low <= mhz <= high:
            return name
    return None


@dataclass
class RadioState:
    """
    Transceiver state as seen from this station.

    Attributes:
        instance_id: Stable identity announced to peers
        name: Display name announced to peers
        frequency_hz: Last reported frequency
        mode: Last reported mode name
        band: Derived from frequency_hz
        rig_address: CI-V address of the radio
        controller_address: CI-V address used for this controller
    """
    instance_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    frequency_hz: Optional[int] = None
    mode: Optional[str] = None
    band: Optional[str] = None
    rig_address: int = DEFAULT_RIG_ADDRESS
    controller_address: int = DEFAULT_CONTROLLER_ADDRESS
    filter_byte: Optional[int] = None

    def set_frequency(self, hz: Optional[int]) -> bool:
        """Record a new frequency and rederive the band. Returns True on change."""
        if hz == self.frequency_hz:
            return False
        self.frequency_hz = hz
        band = band_from_hz(hz)
        if band != self.band:
            logger.info(f"Band changed: {self.band or '-'} -> {band or '-'}")
        self.band = band
        return True

    def set_mode(self, mode: Optional[str], filter_byte: Optional[int] = None) -> bool:
        if mode == self.mode and filter_byte == self.filter_byte:
            return False
        self.mode = mode
        self.filter_byte = filter_byte
        return True

    def apply(self, message: Optional[CivMessage]) -> bool:
        """
        Fold a decoded message into the state.

        Returns:
            True if anything changed
        """
        if isinstance(message, FrequencyReport):
            return self.set_frequency(message.hz)
        if isinstance(message, ModeReport):
            return self.set_mode(message.name, message.filter_byte)
        return False

    def set_addresses(
        self,
        rig: Optional[int] = None,
        controller: Optional[int] = None
    ) -> None:
        for value, what in ((rig, "Rig address"), (controller, "Controller address")):
            if value is not None:
                check_byte(value, what)
        if rig is not None:
            self.rig_address = rig
        if controller is not None:
            self.controller_address = controller

    def announcement(self) -> Dict[str, Any]:
        """State block carried in presence datagrams"""
        return {
            "band": self.band,
            "frequencyHz": self.frequency_hz,
            "mode": self.mode,
        }

    def __repr__(self) -> str:
        return (f"RadioState(name={self.name!r}, freq={self.frequency_hz}, "
                f"mode={self.mode}, band={self.band}, "
                f"rig=0x{self.rig_address:02x}, ctrl=0x{self.controller_address:02x})")
