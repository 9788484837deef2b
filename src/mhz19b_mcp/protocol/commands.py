"""Command codes and frame builders for the MH-Z19B command set.

See the Winsen MH-Z19B datasheet (ver 1.0) for the command reference.
"""

from __future__ import annotations

from enum import IntEnum

from .framing import build_frame


class Command(IntEnum):
    """Command byte identifiers."""

    GAS_CONCENTRATION = 0x86
    CALIBRATE_ZERO_POINT = 0x87
    CALIBRATE_SPAN_POINT = 0x88
    AUTO_CALIBRATION = 0x79
    DETECTION_RANGE = 0x99


# Fixed frames; the trailing checksum is precomputed and never rebuilt.
CMD_GAS_CONCENTRATION = b"\xFF\x01\x86\x00\x00\x00\x00\x00\x79"
CMD_CALIBRATE_ZERO_POINT = b"\xFF\x01\x87\x00\x00\x00\x00\x00\x78"
CMD_AUTO_CALIBRATION_ON = b"\xFF\x01\x79\xA0\x00\x00\x00\x00\xE6"
CMD_AUTO_CALIBRATION_OFF = b"\xFF\x01\x79\x00\x00\x00\x00\x00\x86"

AUTO_CALIBRATION_ON = 0xA0
AUTO_CALIBRATION_OFF = 0x00

GAS_CONCENTRATION_RESPONSE_SIZE = 9

SPAN_POINT_MIN = 1000  # ppm
DETECTION_RANGE_2000 = 2000
DETECTION_RANGE_5000 = 5000


def _uint16(value: int, name: str) -> bytes:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"{name} must be 0-65535, got {value}")
    return value.to_bytes(2, "big")


def build_command(command: Command, params: bytes = b"") -> bytes:
    """Build a 9-byte frame for a command, computing its checksum."""
    return build_frame(command.value, params)


def build_gas_concentration() -> bytes:
    """Build the gas concentration read command (0x86)."""
    return CMD_GAS_CONCENTRATION


def build_calibrate_zero_point() -> bytes:
    """Build the zero point calibration command (0x87), anchoring 400 ppm."""
    return CMD_CALIBRATE_ZERO_POINT


def build_calibrate_span_point(point: int) -> bytes:
    """Build a span point calibration command (0x88).

    Args:
        point: Span concentration in ppm. Values below ``SPAN_POINT_MIN``
            are raised to it.
    """
    point = max(point, SPAN_POINT_MIN)
    return build_command(Command.CALIBRATE_SPAN_POINT, _uint16(point, "Span point"))


def build_auto_calibration(enabled: bool) -> bytes:
    """Build the self-calibration toggle command (0x79)."""
    return CMD_AUTO_CALIBRATION_ON if enabled else CMD_AUTO_CALIBRATION_OFF


def build_detection_range(range_ppm: int) -> bytes:
    """Build a detection range command (0x99).

    Args:
        range_ppm: Upper bound of the measuring range, sent big-endian.
    """
    return build_command(Command.DETECTION_RANGE, _uint16(range_ppm, "Detection range"))
