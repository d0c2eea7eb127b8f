# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tests/test_config.py

Station configuration parsing and validation.
"""

import socket

import pytest

from civlan.config import StationConfig, parse_hex_byte, parse_line_level
from civlan.exceptions import ConfigError


@pytest.mark.parametrize("text,expected", [
    ("94", 0x94),
    ("0x94", 0x94),
    ("E0", 0xE0),
    (" e0 ", 0xE0),
    (0x88, 0x88),
    ("zz", None),
    ("100", None),
    ("", None),
    (None, None),
    (True, None),
])
def test_parse_hex_byte(text, expected):
    assert parse_hex_byte(text) == expected


def test_parse_hex_byte_fallback():
    assert parse_hex_byte("nope", fallback=0x94) == 0x94


def test_defaults():
    config = StationConfig()
    assert config.serial_port is None
    assert config.baudrate == 9600
    assert config.rig_address == 0x94
    assert config.controller_address == 0xE0
    assert config.ack_timeout == 0.8
    assert config.udp_port == 41234
    assert config.heartbeat_interval == 2.0
    assert config.peer_timeout == 8.0
    assert config.name == socket.gethostname()


def test_blank_name_uses_hostname():
    assert StationConfig(name="   ").name == socket.gethostname()
    assert StationConfig(name=" Shack-1 ").name == "Shack-1"


@pytest.mark.parametrize("kwargs", [
    {"baudrate": 0},
    {"rig_address": 0x100},
    {"controller_address": -1},
    {"ack_timeout": 0},
    {"udp_port": 70000},
    {"heartbeat_interval": 2.0, "peer_timeout": 4.0},
])
def test_invalid(kwargs):
    with pytest.raises(ConfigError):
        StationConfig(**kwargs)


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        StationConfig(baudrate=-9600)


def test_from_saved_selection():
    config = StationConfig.from_mapping({
        "path": "COM9",
        "baud": 19200,
        "rigaddr": "88",
        "ctrladdr": "0xE1",
        "dtr": "1",
        "rts": 0,
        "label": "Shack-3",
        "udpPort": 50000,
        "lastSeen": 12345,
    })
    assert config.serial_port == "COM9"
    assert config.baudrate == 19200
    assert config.rig_address == 0x88
    assert config.controller_address == 0xE1
    assert config.dtr is True
    assert config.rts is False
    assert config.name == "Shack-3"
    assert config.udp_port == 50000


def test_from_mapping_bad_address_falls_back():
    config = StationConfig.from_mapping({"rigaddr": "xyz", "ctrladdr": "1FF"})
    assert config.rig_address == 0x94
    assert config.controller_address == 0xE0


def test_to_dict():
    data = StationConfig(serial_port="/dev/ttyUSB0", name="A").to_dict()
    assert data["serial_port"] == "/dev/ttyUSB0"
    assert data["name"] == "A"
    assert StationConfig(**data) == StationConfig(serial_port="/dev/ttyUSB0", name="A")


@pytest.mark.parametrize("heartbeat,timeout", [(0.1, 0.3), (2.0, 6.0)])
def test_timeout_of_exactly_three_heartbeats(heartbeat, timeout):
    config = StationConfig(heartbeat_interval=heartbeat, peer_timeout=timeout)
    assert config.peer_timeout == timeout


@pytest.mark.parametrize("value", ["true", "on", "2", 5, [1]])
def test_bad_line_level_rejected(value):
    with pytest.raises(ConfigError):
        StationConfig.from_mapping({"dtr": value})


@pytest.mark.parametrize("value,expected", [("1", True), (0, False), (True, True), (" 0 ", False)])
def test_line_level(value, expected):
    assert parse_line_level(value) is expected
