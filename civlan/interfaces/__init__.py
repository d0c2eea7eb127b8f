# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
civlan Transport Interfaces

Provides:
- Byte link base class and an in-memory loopback link
- pyserial link for the CI-V port
- UDP presence service for LAN peer discovery
"""

from .transport import AsyncByteLink, LoopbackLink
from .serial_link import SerialLink
from .presence import PresenceService, PROTOCOL_TAG

__all__ = [
    'AsyncByteLink',
    'LoopbackLink',
    'SerialLink',
    'PresenceService',
    'PROTOCOL_TAG',
]
