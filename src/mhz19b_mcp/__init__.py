"""Driver and MCP server for the MH-Z19B infrared CO2 sensor."""

from .driver import MHZ19B, DriverState, DEFAULT_TIMEOUT_MS
from .registry import PortRegistry
