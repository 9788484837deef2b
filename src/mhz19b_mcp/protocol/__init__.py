"""Protocol layer: 9-byte framing, checksum, command builders, and decoding."""

from .framing import build_frame, parse_frame, checksum, decode_concentration
from .commands import Command, build_command
