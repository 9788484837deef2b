"""UART connection to the MH-Z19B built on pyserial.

The sensor talks 9600 baud, 8 data bits, no parity, 1 stop bit. Reads
block until the requested byte count arrives or the read timeout expires.
"""

from __future__ import annotations

import logging

import serial

logger = logging.getLogger(__name__)

BAUDRATE = 9600
DATA_BITS = serial.EIGHTBITS
STOP_BITS = serial.STOPBITS_ONE
PARITY = serial.PARITY_NONE
READ_TIMEOUT_MS = 1000


class SerialConnection:
    """Manages the serial handle for a single port.

    Usage::

        conn = SerialConnection("/dev/serial0")
        conn.open(timeout_ms=1000)
        conn.write(frame_bytes)
        response = conn.read(9)
        conn.close()
    """

    def __init__(self, port: str, baudrate: int = BAUDRATE) -> None:
        self._port = port
        self._serial = serial.Serial()
        self._serial.port = port
        self._serial.baudrate = baudrate
        self._serial.bytesize = DATA_BITS
        self._serial.stopbits = STOP_BITS
        self._serial.parity = PARITY
        self._serial.timeout = READ_TIMEOUT_MS / 1000

    @property
    def port(self) -> str:
        return self._port

    @property
    def is_open(self) -> bool:
        return bool(self._serial.is_open)

    def set_timeout(self, timeout_ms: int) -> None:
        """Set the blocking read timeout, applied immediately if open."""
        self._serial.timeout = timeout_ms / 1000

    def open(self, timeout_ms: int = READ_TIMEOUT_MS) -> None:
        """Open and configure the port.

        Raises:
            ConnectionError: If the port cannot be opened.
        """
        self.set_timeout(timeout_ms)
        if self._serial.is_open:
            # Left open by a failed close; reuse the handle.
            logger.debug("%s already open, timeout %.3fs", self._port, self._serial.timeout)
            return
        try:
            self._serial.open()
        except (serial.SerialException, OSError) as e:
            raise ConnectionError(f"Could not open serial port {self._port}: {e}") from e
        logger.debug(
            "Opened %s at %d baud, timeout %.3fs",
            self._port,
            self._serial.baudrate,
            self._serial.timeout,
        )

    def close(self) -> None:
        """Close the port.

        Raises:
            ConnectionError: If the port cannot be closed cleanly.
        """
        try:
            self._serial.close()
        except (serial.SerialException, OSError) as e:
            raise ConnectionError(f"Could not close serial port {self._port}: {e}") from e

    def _require_open(self) -> None:
        if not self._serial.is_open:
            raise ConnectionError(f"Serial port {self._port} is not open")

    def bytes_available(self) -> int:
        """Number of received bytes waiting in the input buffer."""
        self._require_open()
        try:
            return self._serial.in_waiting
        except (serial.SerialException, OSError) as e:
            raise IOError(f"Could not query input buffer on {self._port}: {e}") from e

    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes written.

        Raises:
            ConnectionError: If not open.
            IOError: If the write fails or is incomplete.
        """
        self._require_open()
        try:
            written = self._serial.write(data)
        except (serial.SerialException, OSError) as e:
            raise IOError(f"Write to {self._port} failed: {e}") from e
        if written is not None and written != len(data):
            raise IOError(
                f"Short write to {self._port}: {written} of {len(data)} bytes"
            )
        return len(data)

    def read(self, size: int) -> bytes:
        """Read exactly ``size`` bytes, blocking up to the read timeout.

        Raises:
            ConnectionError: If not open.
            IOError: If the read fails or times out before ``size`` bytes.
        """
        self._require_open()
        try:
            data = self._serial.read(size)
        except (serial.SerialException, OSError) as e:
            raise IOError(f"Read from {self._port} failed: {e}") from e
        if len(data) != size:
            raise IOError(
                f"Short read from {self._port}: {len(data)} of {size} bytes"
            )
        return bytes(data)
