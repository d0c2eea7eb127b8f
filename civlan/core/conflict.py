# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan.core.conflict

Band conflict detection between this station and its LAN peers.
"""

import logging
from typing import List, Mapping, Optional, Tuple

from .peers import PeerRecord
from .state import RadioState

logger = logging.getLogger(__name__)


def compute_conflicts(
    state: RadioState,
    peers: Mapping[str, PeerRecord]
) -> List[PeerRecord]:
    """
    Peers announcing the same band as the local radio.

    Returns an empty list when the local band is unknown. Order follows
    the peer table.
    """
    if not state.band:
        return []
    return [
        peer for peer in peers.values()
        if peer.remote_state is not None and peer.remote_state.band == state.band
    ]


class ConflictTracker:
    """
    Remembers the last reported conflict so each distinct conflict is
    announced once. The key is (band, sorted peer ids).
    """

    def __init__(self):
        self.conflicts: List[PeerRecord] = []
        self._last_key: Optional[Tuple[str, Tuple[str, ...]]] = None

    def update(
        self,
        state: RadioState,
        peers: Mapping[str, PeerRecord]
    ) -> Tuple[List[PeerRecord], bool]:
        """
        Recompute conflicts.

        Returns:
            (conflicts, is_new) where is_new is True only when the
            conflicting set differs from the one last reported
        """
        self.conflicts = compute_conflicts(state, peers)
        if not self.conflicts:
            self._last_key = None
            return self.conflicts, False

        key = (state.band, tuple(sorted(peer.id for peer in self.conflicts)))
        if key == self._last_key:
            return self.conflicts, False
        self._last_key = key
        return self.conflicts, True
