"""MCP server entry point for the MH-Z19B CO2 sensor.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .driver import DEFAULT_TIMEOUT_MS, MHZ19B
from .protocol.commands import (
    Command,
    DETECTION_RANGE_2000,
    DETECTION_RANGE_5000,
    SPAN_POINT_MIN,
)
from .registry import PortRegistry

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "mhz19b",
    instructions="MCP server for the MH-Z19B infrared CO2 sensor on a UART port",
)

_registry = PortRegistry()

COMMAND_DESCRIPTIONS = {
    Command.GAS_CONCENTRATION: "Read CO2 concentration (9-byte response)",
    Command.CALIBRATE_ZERO_POINT: "Calibrate zero point to 400 ppm",
    Command.CALIBRATE_SPAN_POINT: "Calibrate span point (>= 1000 ppm)",
    Command.AUTO_CALIBRATION: "Toggle automatic baseline calibration",
    Command.DETECTION_RANGE: "Set detection range (2000 or 5000 ppm)",
}


def _get_sensor(port: str) -> MHZ19B:
    """Get the opened driver for ``port``, raising if not connected."""
    sensor = _registry.get(port)
    if sensor is None or not sensor.is_open:
        raise RuntimeError(
            f"Not connected to {port}. Use the 'connect' tool first."
        )
    return sensor


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(port: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> dict[str, Any]:
    """Open the serial port the sensor is attached to.

    Args:
        port: Serial port, e.g. /dev/serial0 or /dev/ttyAMA0.
        timeout_ms: Read timeout in milliseconds (default 1000).
    """
    sensor = _registry.acquire(port, timeout_ms)
    sensor.open()
    return {"connected": True, "port": sensor.port_name, "timeout_ms": sensor.timeout_ms}


@mcp.tool()
def disconnect(port: str) -> dict[str, Any]:
    """Close the serial port."""
    sensor = _registry.get(port)
    if sensor is not None:
        sensor.close()
    return {"disconnected": True, "port": port}


# ─── MEASUREMENT TOOLS ────────────────────────────────────────────────

@mcp.tool()
def read_co2(port: str) -> dict[str, Any]:
    """Read the current CO2 concentration in ppm."""
    try:
        sensor = _get_sensor(port)
    except RuntimeError as e:
        return {"error": str(e)}
    return {"port": port, "co2_ppm": sensor.get_gas_concentration()}


# ─── CALIBRATION TOOLS ────────────────────────────────────────────────

@mcp.tool()
def calibrate_zero_point(port: str) -> dict[str, Any]:
    """Calibrate the zero point to 400 ppm.

    Only run this after the sensor has been in fresh outdoor air for at
    least 20 minutes.
    """
    try:
        sensor = _get_sensor(port)
    except RuntimeError as e:
        return {"error": str(e)}
    sensor.calibrate_zero_point()
    return {"port": port, "zero_point_ppm": 400}


@mcp.tool()
def calibrate_span_point(port: str, point: int) -> dict[str, Any]:
    """Calibrate the span point.

    Args:
        port: Serial port of the sensor.
        point: Span concentration in ppm; values below 1000 are raised to 1000.
    """
    try:
        sensor = _get_sensor(port)
    except RuntimeError as e:
        return {"error": str(e)}
    sensor.calibrate_span_point(point)
    return {"port": port, "span_point_ppm": max(point, SPAN_POINT_MIN)}


@mcp.tool()
def set_auto_calibration(port: str, enabled: bool) -> dict[str, Any]:
    """Enable or disable the sensor's automatic baseline calibration."""
    try:
        sensor = _get_sensor(port)
    except RuntimeError as e:
        return {"error": str(e)}
    sensor.set_auto_calibration(enabled)
    return {"port": port, "auto_calibration": enabled}


@mcp.tool()
def set_detection_range(port: str, range_ppm: int) -> dict[str, Any]:
    """Set the detection range.

    Args:
        port: Serial port of the sensor.
        range_ppm: 2000 or 5000.
    """
    if range_ppm not in (DETECTION_RANGE_2000, DETECTION_RANGE_5000):
        return {"error": "Detection range must be 2000 or 5000"}
    try:
        sensor = _get_sensor(port)
    except RuntimeError as e:
        return {"error": str(e)}
    sensor.set_detection_range(range_ppm)
    return {"port": port, "detection_range_ppm": range_ppm}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("mhz19b://ports")
def resource_ports() -> str:
    """Known ports with their open state and read timeout."""
    ports = []
    for port in _registry.ports():
        sensor = _registry.get(port)
        ports.append({
            "port": port,
            "open": sensor.is_open,
            "state": sensor.state.name,
            "timeout_ms": sensor.timeout_ms,
        })
    return json.dumps({"ports": ports})


@mcp.resource("mhz19b://protocol/commands")
def resource_commands() -> str:
    """Supported sensor commands."""
    commands = [
        {"code": f"0x{cmd.value:02X}", "name": cmd.name, "description": desc}
        for cmd, desc in COMMAND_DESCRIPTIONS.items()
    ]
    return json.dumps({"commands": commands})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def calibrate_sensor(port: str) -> str:
    """Walk through a zero point calibration of the sensor.

    Args:
        port: Serial port of the sensor.
    """
    return f"""Calibrate the MH-Z19B on {port}.
Steps:
- Use connect to open {port}
- Confirm the sensor has been in fresh outdoor air (about 400 ppm) for 20 minutes
- Use set_auto_calibration to turn automatic calibration off if the sensor
  is indoors most of the time
- Use calibrate_zero_point
- Use read_co2 a few times and check the readings settle near 400 ppm"""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main(registry: PortRegistry | None = None):
    """Run the MCP server with stdio transport.

    Args:
        registry: Driver registry the tools use; a fresh one by default.
    """
    global _registry
    _registry = registry if registry is not None else PortRegistry()
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
