"""Process-wide registry holding one driver per serial port."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from .driver import DEFAULT_TIMEOUT_MS, MHZ19B
from .transport.serial_connection import SerialConnection

logger = logging.getLogger(__name__)


class PortRegistry:
    """Maps port identifiers to their single :class:`MHZ19B` driver.

    Drivers are created on first lookup and kept for the lifetime of the
    registry. Every :meth:`acquire` also sets the driver's read timeout,
    so callers sharing a port end up with the last requested timeout.
    """

    def __init__(
        self,
        connection_factory: Callable[[str], SerialConnection] = SerialConnection,
    ) -> None:
        self._connection_factory = connection_factory
        self._drivers: dict[str, MHZ19B] = {}
        self._lock = threading.Lock()

    def acquire(self, port: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> MHZ19B:
        """Return the driver for ``port``, creating it if needed.

        Args:
            port: Port identifier, e.g. ``/dev/serial0``.
            timeout_ms: Read timeout to apply to the driver.
        """
        with self._lock:
            driver = self._drivers.get(port)
            if driver is None:
                driver = MHZ19B(port, timeout_ms, connection=self._connection_factory(port))
                self._drivers[port] = driver
                logger.debug("Created driver for %s", port)
            driver.timeout_ms = timeout_ms
            return driver

    def get(self, port: str) -> MHZ19B | None:
        """Return the driver for ``port`` without creating one."""
        with self._lock:
            return self._drivers.get(port)

    def ports(self) -> list[str]:
        with self._lock:
            return sorted(self._drivers)

    def __contains__(self, port: object) -> bool:
        with self._lock:
            return port in self._drivers

    def __len__(self) -> int:
        with self._lock:
            return len(self._drivers)
