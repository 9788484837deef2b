"""Shared fixtures: a MagicMock stand-in for SerialConnection."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from mhz19b_mcp.transport.serial_connection import SerialConnection

# FF 86 03 0A ... : payload high=0x03 low=0x0A, valid checksum
CONCENTRATION_RESPONSE = bytes([0xFF, 0x86, 0x03, 0x0A, 0x00, 0x00, 0x00, 0x00, 0x6D])


def make_connection(port: str = "/dev/ttyTEST0", response: bytes = CONCENTRATION_RESPONSE) -> MagicMock:
    """Build a mock connection that tracks its open state like the real one."""
    conn = MagicMock(spec=SerialConnection)
    conn.port = port
    conn.is_open = False

    def _open(timeout_ms=None):
        conn.is_open = True

    def _close():
        conn.is_open = False

    conn.open.side_effect = _open
    conn.close.side_effect = _close
    conn.bytes_available.return_value = 0
    conn.read.side_effect = lambda size: response[:size]
    conn.write.side_effect = lambda data: len(data)
    return conn


@pytest.fixture
def connection() -> MagicMock:
    return make_connection()


@pytest.fixture
def connection_factory():
    """Factory fixture returning ``make_connection`` for multi-port tests."""
    return make_connection
