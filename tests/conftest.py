# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
Common test fixtures and pytest configuration.
"""

import logging
import socket
from typing import Generator

import pytest

from civlan.core.state import RadioState
from civlan.interfaces.transport import LoopbackLink


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> Generator[None, None, None]:
    """Configure logging for all tests"""
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    yield


@pytest.fixture
def radio_state() -> RadioState:
    return RadioState(instance_id="local-0000-id", name="shack-1")


@pytest.fixture
def loopback() -> LoopbackLink:
    """Loopback link (not yet opened)"""
    return LoopbackLink()


@pytest.fixture
def free_udp_port() -> int:
    """A UDP port nobody is bound to right now"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])
    finally:
        sock.close()


def pytest_configure(config: pytest.Config) -> None:
    """Pytest configuration hook"""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers",
        "hardware: mark test that requires an actual radio"
    )
