"""Frame builder and parser for the 9-byte MH-Z19B UART protocol.

Frame layout::

    +-------+---------+---------+---------------------------+----------+
    | Start | Address | Command |        Parameters         | Checksum |
    | 0xFF  | 0x01    | 1 byte  | 5 bytes (zero padded)     | 1 byte   |
    +-------+---------+---------+---------------------------+----------+

Responses use the same size and start byte; offset 1 echoes the command
and offsets 2-7 carry the payload.

- Checksum: two's-complement negation of the low byte of the sum of
  offsets 1-7, i.e. ``(0x100 - (sum & 0xFF)) & 0xFF``. A valid frame's
  bytes 1-8 therefore sum to zero modulo 256.
"""

from __future__ import annotations

from dataclasses import dataclass

FRAME_SIZE = 9
START_BYTE = 0xFF
SENSOR_ADDRESS = 0x01
PARAM_COUNT = 5


@dataclass(frozen=True)
class Frame:
    """A parsed 9-byte sensor frame."""

    command: int
    payload: bytes
    checksum: int

    @property
    def checksum_valid(self) -> bool:
        return checksum(bytes([START_BYTE, self.command]) + self.payload) == self.checksum

    def __repr__(self) -> str:
        return (
            f"Frame(command=0x{self.command:02X}, "
            f"payload={self.payload.hex(' ')}, checksum=0x{self.checksum:02X})"
        )


def checksum(data: bytes) -> int:
    """Compute the checksum byte over offsets 1-7 of ``data``.

    Args:
        data: At least 8 bytes; only offsets 1 through 7 contribute.
    """
    if len(data) < FRAME_SIZE - 1:
        raise ValueError(
            f"Checksum needs at least {FRAME_SIZE - 1} bytes, got {len(data)}"
        )
    total = sum(data[1:FRAME_SIZE - 1])
    return (~(total & 0xFF) + 1) & 0xFF


def build_frame(command: int, params: bytes = b"") -> bytes:
    """Build a 9-byte command frame with its checksum.

    Args:
        command: Single-byte command code.
        params: Up to 5 parameter bytes, zero-padded on the right.

    Returns:
        A 9-byte ``bytes`` object ready to write to the UART.
    """
    if not 0 <= command <= 0xFF:
        raise ValueError(f"Command must be 0-255, got {command}")
    if len(params) > PARAM_COUNT:
        raise ValueError(
            f"At most {PARAM_COUNT} parameter bytes allowed, got {len(params)}"
        )
    base = bytes([START_BYTE, SENSOR_ADDRESS, command]) + params
    base += b"\x00" * (FRAME_SIZE - 1 - len(base))
    return base + bytes([checksum(base)])


def parse_frame(data: bytes) -> Frame | None:
    """Parse a 9-byte response.

    Returns:
        A ``Frame``, or ``None`` if the size or start byte is wrong.
        The checksum is not enforced here; see ``Frame.checksum_valid``.
    """
    if len(data) != FRAME_SIZE:
        return None
    if data[0] != START_BYTE:
        return None
    return Frame(command=data[1], payload=bytes(data[2:8]), checksum=data[8])


def _legacy_byte_value(value: int) -> int:
    # Signed decimal text of the byte, read back as hexadecimal.
    signed = value - 0x100 if value > 0x7F else value
    return int(str(signed), 16)


def decode_concentration(response: bytes) -> int:
    """Decode the CO2 concentration (ppm) from a gas concentration response.

    Each payload byte at offsets 2 and 3 is rendered as its signed decimal
    numeral and parsed as hexadecimal before being combined as
    ``high * 256 + low``. This keeps readings identical to those of the
    deployed loggers; payload ``03 0A`` decodes to 784, not 778. Use
    :func:`datasheet_concentration` for the plain big-endian value.
    """
    if len(response) < 4:
        raise ValueError(f"Response too short: {len(response)} bytes")
    high = _legacy_byte_value(response[2])
    low = _legacy_byte_value(response[3])
    return high * 256 + low


def datasheet_concentration(response: bytes) -> int:
    """Decode the concentration as ``(high << 8) | low`` per the datasheet."""
    if len(response) < 4:
        raise ValueError(f"Response too short: {len(response)} bytes")
    return (response[2] << 8) | response[3]
