# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan.core.sync

Byte-stream frame synchronizer for the CI-V serial line.

Bytes arrive in arbitrary chunks. The synchronizer keeps a buffer and
emits every complete PREAMBLE..TERMINATOR slice it can find, dropping
leading garbage. It resynchronizes on the next preamble byte after noise
or a truncated frame.
"""

import logging
from typing import Callable, List, Optional

from .framing import PREAMBLE, TERMINATOR

logger = logging.getLogger(__name__)

DEFAULT_MAX_BUFFER = 4096


class FrameSynchronizer:
    """
    Stateful CI-V frame accumulator.

    Args:
        on_frame: Optional callback invoked for each complete frame, in order
        max_buffer: Pending bytes kept while waiting for a terminator
    """

    def __init__(
        self,
        on_frame: Optional[Callable[[bytes], None]] = None,
        max_buffer: int = DEFAULT_MAX_BUFFER
    ):
        self.on_frame = on_frame
        self.max_buffer = max_buffer
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet part of a complete frame"""
        return len(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()

    def push(self, data: bytes) -> List[bytes]:
        """
        Append received bytes and extract complete frames.

        Args:
            data: Raw bytes as read from the line

        Returns:
            Complete frames found, oldest first
        """
        if not data:
            return []

        self._buffer += data
        frames: List[bytes] = []

        while True:
            start = self._buffer.find(PREAMBLE)
            if start == -1:
                if self._buffer:
                    logger.debug(f"Discarding {len(self._buffer)} bytes with no preamble")
                self._buffer.clear()
                break
            if start > 0:
                logger.debug(f"Skipping {start} bytes of leading garbage")
                del self._buffer[:start]

            end = self._buffer.find(TERMINATOR)
            if end == -1:
                if len(self._buffer) > self.max_buffer:
                    logger.warning(
                        f"Dropping {len(self._buffer)} byte partial frame (no terminator)"
                    )
                    self._buffer.clear()
                break

            frame = bytes(self._buffer[:end + 1])
            del self._buffer[:end + 1]
            frames.append(frame)
            if self.on_frame:
                self.on_frame(frame)

        return frames

    def __repr__(self) -> str:
        return f"FrameSynchronizer(pending={self.pending})"
