# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan.core.peers

Peer records kept by the presence service. Peers are keyed by instance
id, never by network address.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class RemoteState:
    """Radio state a peer last announced"""
    band: Optional[str] = None
    frequency_hz: Optional[int] = None
    mode: Optional[str] = None

    @classmethod
    def from_announcement(cls, data: Any) -> Optional["RemoteState"]:
        if not isinstance(data, Mapping):
            return None
        band = data.get("band")
        freq = data.get("frequencyHz")
        mode = data.get("mode")
        return cls(
            band=band if isinstance(band, str) else None,
            frequency_hz=freq if isinstance(freq, int) and not isinstance(freq, bool) else None,
            mode=mode if isinstance(mode, str) else None,
        )


@dataclass
class PeerRecord:
    id: str
    name: str
    source_address: str
    last_seen_at: float
    remote_state: Optional[RemoteState] = None

    @property
    def label(self) -> str:
        """Display name, falling back to a short id"""
        return self.name or self.id[:8]


PeerTable = Dict[str, PeerRecord]
