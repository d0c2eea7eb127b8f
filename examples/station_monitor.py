# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
examples/station_monitor.py

Monitor a CI-V radio and the LAN for band conflicts.

This example demonstrates:
- Opening the radio's CI-V port
- Polling frequency and mode through the command queue
- Joining the LAN presence group
- Printing the status line and conflict warnings
- Graceful shutdown on interrupt

Run with:
    python examples/station_monitor.py

Adjust the serial port, baud rate and rig address for your hardware.
"""

import asyncio
import logging

from civlan import Station, StationConfig, configure_logging

logger = logging.getLogger("station_monitor")

# Default configuration - modify for your setup
SERIAL_PORT = "/dev/ttyUSB0"      # Windows: "COM9"
BAUDRATE = 19200
RIG_ADDRESS = 0x94                # IC-7300 default
POLL_INTERVAL = 5.0


def on_conflict(band, peers) -> None:
    names = ", ".join(peer.label for peer in peers)
    print(f"!! Band conflict on {band} with: {names}")


async def main() -> None:
    configure_logging("INFO")
    config = StationConfig(
        serial_port=SERIAL_PORT,
        baudrate=BAUDRATE,
        rig_address=RIG_ADDRESS,
    )
    last_line = ""

    def on_status(station: Station) -> None:
        nonlocal last_line
        line = station.status_line()
        if line != last_line:
            last_line = line
            print(line)

    station = Station(config, on_status=on_status, on_conflict=on_conflict)
    await station.start()
    logger.info("Monitoring started - Ctrl+C to stop")

    try:
        while True:
            for command in (station.controller.read_frequency, station.controller.read_mode):
                result = await command()
                if not result.ok:
                    logger.info(f"{command.__name__}: {result.outcome}")
            await asyncio.sleep(POLL_INTERVAL)
    finally:
        await station.stop()
        print("Monitor stopped.")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
