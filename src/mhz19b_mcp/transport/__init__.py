"""Transport layer: the UART connection to the sensor."""

from .serial_connection import SerialConnection
