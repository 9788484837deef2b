"""Tests for the frame checksum."""

import pytest

from mhz19b_mcp.protocol.framing import checksum


def test_checksum_gas_concentration():
    """The fixed read command's trailing byte is 0x79."""
    base = bytes([0xFF, 0x01, 0x86, 0x00, 0x00, 0x00, 0x00, 0x00])
    assert checksum(base) == 0x79


def test_checksum_zero_point():
    base = bytes([0xFF, 0x01, 0x87, 0x00, 0x00, 0x00, 0x00, 0x00])
    assert checksum(base) == 0x78


def test_checksum_ignores_start_byte():
    """Only offsets 1-7 contribute."""
    a = bytes([0xFF, 0x01, 0x99, 0x13, 0x88, 0x00, 0x00, 0x00])
    b = bytes([0x00, 0x01, 0x99, 0x13, 0x88, 0x00, 0x00, 0x00])
    assert checksum(a) == checksum(b)


def test_checksum_ignores_trailing_byte():
    """A full 9-byte frame yields the checksum of its first 8 bytes."""
    base = bytes([0xFF, 0x01, 0x86, 0x00, 0x00, 0x00, 0x00, 0x00])
    assert checksum(base + b"\x79") == checksum(base)


@pytest.mark.parametrize(
    "base",
    [
        bytes([0xFF, 0x01, 0x88, 0x03, 0xE8, 0x00, 0x00, 0x00]),
        bytes([0xFF, 0x01, 0x79, 0xA0, 0x00, 0x00, 0x00, 0x00]),
        bytes([0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF]),
        bytes(8),
    ],
)
def test_checksum_matches_datasheet_rule(base):
    """checksum == (0x100 - (sum & 0xFF)) & 0xFF, and the frame sums to zero."""
    expected = (0x100 - (sum(base[1:8]) & 0xFF)) & 0xFF
    assert checksum(base) == expected
    assert (sum(base[1:8]) + checksum(base)) % 256 == 0


def test_checksum_too_short():
    with pytest.raises(ValueError):
        checksum(b"\xFF\x01\x86")
