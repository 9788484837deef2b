"""MH-Z19B infrared CO2 sensor driver.

Refer to https://www.winsen-sensor.com/d/files/infrared-gas-sensor/mh-z19b-co2-ver1_0.pdf

A driver owns one :class:`SerialConnection` and guards it with a
two-state open/close machine: ``open()`` on an opened driver and
``close()`` on a closed one are no-ops, so the port is never physically
reopened or reclosed. Commands are not serialized internally; callers
sharing a driver must not issue commands concurrently.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum

from .protocol.commands import (
    DETECTION_RANGE_2000,
    DETECTION_RANGE_5000,
    GAS_CONCENTRATION_RESPONSE_SIZE,
    SPAN_POINT_MIN,
    build_auto_calibration,
    build_calibrate_span_point,
    build_calibrate_zero_point,
    build_detection_range,
    build_gas_concentration,
)
from .protocol.framing import decode_concentration, parse_frame
from .transport.serial_connection import SerialConnection

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 1000


class DriverState(Enum):
    CLOSED = 0
    OPENED = 1


class MHZ19B:
    """Driver for one MH-Z19B attached to a serial port.

    Usage::

        with MHZ19B("/dev/serial0") as sensor:
            sensor.set_detection_range_5000()
            ppm = sensor.get_gas_concentration()

    Normally obtained through :class:`~mhz19b_mcp.registry.PortRegistry`
    so that each port has a single driver.
    """

    def __init__(
        self,
        port: str,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        connection: SerialConnection | None = None,
    ) -> None:
        if not port:
            raise ValueError("Port identifier must not be empty")
        self._port = port
        self._connection = connection if connection is not None else SerialConnection(port)
        self._timeout_ms = timeout_ms
        self._state = DriverState.CLOSED
        self._lock = threading.Lock()
        self._log_prefix = f"[{port}] "

    def __enter__(self) -> MHZ19B:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"MHZ19B(port={self._port!r}, state={self._state.name}, "
            f"timeout_ms={self._timeout_ms})"
        )

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @timeout_ms.setter
    def timeout_ms(self, value: int) -> None:
        with self._lock:
            self._timeout_ms = value
            if self._state is DriverState.OPENED:
                self._connection.set_timeout(value)

    @property
    def is_open(self) -> bool:
        """Whether the underlying serial port is open."""
        return self._connection.is_open

    @property
    def port_name(self) -> str:
        return self._connection.port

    @property
    def log_prefix(self) -> str:
        return self._log_prefix

    # ─── LIFECYCLE ───────────────────────────────────────────────────

    def open(self) -> None:
        """Open and configure the serial port unless already opened.

        Raises:
            ConnectionError: If the port cannot be opened. The driver
                stays closed.
        """
        with self._lock:
            logger.info(
                "%sbefore - state:%s timeout:%d",
                self._log_prefix, self._state.name, self._timeout_ms,
            )
            try:
                if self._state is DriverState.CLOSED:
                    logger.info("%sopening serial port...", self._log_prefix)
                    try:
                        self._connection.open(self._timeout_ms)
                    except ConnectionError:
                        logger.warning("%sfailed to open serial port.", self._log_prefix)
                        raise
                    self._state = DriverState.OPENED
                    logger.info("%sopened serial port.", self._log_prefix)
            finally:
                logger.info(
                    "%safter - state:%s timeout:%d",
                    self._log_prefix, self._state.name, self._timeout_ms,
                )

    def close(self) -> None:
        """Close the serial port unless already closed.

        The driver is considered closed even when the port fails to close.

        Raises:
            ConnectionError: If the port reports an error while closing.
        """
        with self._lock:
            logger.info(
                "%sbefore - state:%s timeout:%d",
                self._log_prefix, self._state.name, self._timeout_ms,
            )
            try:
                if self._state is DriverState.OPENED:
                    self._state = DriverState.CLOSED
                    if self._connection.is_open:
                        logger.info("%sclosing serial port...", self._log_prefix)
                        try:
                            self._connection.close()
                        except ConnectionError:
                            logger.warning("%sfailed to close serial port.", self._log_prefix)
                            raise
                        logger.info("%sclosed serial port.", self._log_prefix)
                    else:
                        logger.info("%salready closed.", self._log_prefix)
            finally:
                logger.info(
                    "%safter - state:%s timeout:%d",
                    self._log_prefix, self._state.name, self._timeout_ms,
                )

    # ─── TRANSACTIONS ────────────────────────────────────────────────

    def _require_opened(self) -> None:
        if self._state is not DriverState.OPENED:
            raise ConnectionError(f"{self._log_prefix}driver is not open; call open() first")

    def _write(self, frame: bytes) -> None:
        self._require_opened()
        length = self._connection.bytes_available()
        if length > 0:
            try:
                self._connection.read(length)
            except IOError:
                logger.warning("%sfailed to read.", self._log_prefix)
                raise
            logger.info("%sdeleted unread buffer length:%d", self._log_prefix, length)

        logger.debug("%swrite: %s", self._log_prefix, frame.hex(" "))
        try:
            self._connection.write(frame)
        except IOError:
            logger.warning("%sfailed to write.", self._log_prefix)
            raise

    def _read(self, size: int) -> bytes:
        try:
            data = self._connection.read(size)
        except IOError:
            logger.warning("%sfailed to read.", self._log_prefix)
            raise
        logger.debug("%s read: %s", self._log_prefix, data.hex(" "))
        return data

    # ─── COMMANDS ────────────────────────────────────────────────────

    def get_gas_concentration(self) -> int:
        """Read the CO2 concentration in ppm.

        Raises:
            ConnectionError: If the driver is not open.
            IOError: If the write fails or no full response arrives in time.
        """
        self._write(build_gas_concentration())
        received = self._read(GAS_CONCENTRATION_RESPONSE_SIZE)

        frame = parse_frame(received)
        if frame is None or not frame.checksum_valid:
            logger.warning(
                "%sunexpected response: %s", self._log_prefix, received.hex(" ")
            )
        return decode_concentration(received)

    def calibrate_zero_point(self) -> None:
        """Calibrate the zero point to 400 ppm.

        The sensor should have been in fresh air for at least 20 minutes.
        """
        self._write(build_calibrate_zero_point())
        logger.info("%sset the calibration zero point to 400 ppm.", self._log_prefix)

    def calibrate_span_point(self, point: int) -> None:
        """Calibrate the span point; values under 1000 ppm are raised to 1000."""
        if point < SPAN_POINT_MIN:
            logger.info(
                "%ssince span needs at least %d ppm, set it to %d ppm.",
                self._log_prefix, SPAN_POINT_MIN, SPAN_POINT_MIN,
            )
            point = SPAN_POINT_MIN
        self._write(build_calibrate_span_point(point))
        logger.info("%sset the calibration span point to %d ppm.", self._log_prefix, point)

    def set_auto_calibration(self, enabled: bool) -> None:
        self._write(build_auto_calibration(enabled))
        logger.info(
            "%sset auto calibration to %s.", self._log_prefix, "ON" if enabled else "OFF"
        )

    def set_detection_range(self, range_ppm: int) -> None:
        """Set the upper bound of the measuring range in ppm."""
        self._write(build_detection_range(range_ppm))
        logger.info("%sset the detection range to %d ppm.", self._log_prefix, range_ppm)

    def set_detection_range_2000(self) -> None:
        self.set_detection_range(DETECTION_RANGE_2000)

    def set_detection_range_5000(self) -> None:
        self.set_detection_range(DETECTION_RANGE_5000)
