"""Polling monitor: read the CO2 concentration on a fixed interval.

Run as ``mhz19b-monitor /dev/serial0``. With ``--external-tool`` only
``co2:<ppm>`` lines are written to stdout so another program can consume
them.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Callable

from .driver import DEFAULT_TIMEOUT_MS, MHZ19B
from .protocol.commands import DETECTION_RANGE_2000, DETECTION_RANGE_5000
from .registry import PortRegistry

logger = logging.getLogger(__name__)

DEFAULT_PORT = "/dev/serial0"
DEFAULT_INTERVAL = 10.0  # seconds
LOG_FORMAT = "[%(module)-15s][%(funcName)-15s][%(lineno)-3d] %(message)s"


def poll(
    sensor: MHZ19B,
    interval: float = DEFAULT_INTERVAL,
    count: int | None = None,
    emit: Callable[[str], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Read the sensor every ``interval`` seconds.

    Args:
        sensor: An opened driver.
        interval: Seconds to wait between readings.
        count: Stop after this many readings; ``None`` polls forever.
        emit: Receives each ``co2:<ppm>`` line. Defaults to logging it.
        sleep: Wait function, replaceable in tests.

    Returns:
        The number of readings taken.
    """
    if emit is None:
        emit = logger.info
    taken = 0
    while count is None or taken < count:
        value = sensor.get_gas_concentration()
        emit(f"co2:{value}")
        taken += 1
        if count is not None and taken >= count:
            break
        sleep(interval)
    return taken


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mhz19b-monitor",
        description="Poll an MH-Z19B CO2 sensor over UART.",
    )
    parser.add_argument("port", nargs="?", default=DEFAULT_PORT,
                        help=f"serial port (default: {DEFAULT_PORT})")
    parser.add_argument("--interval", type=float, default=DEFAULT_INTERVAL,
                        help="seconds between readings (default: %(default)s)")
    parser.add_argument("--timeout-ms", type=int, default=DEFAULT_TIMEOUT_MS,
                        help="read timeout in milliseconds (default: %(default)s)")
    parser.add_argument("--count", type=int, default=None,
                        help="stop after this many readings")
    parser.add_argument("--range", dest="range_ppm", type=int,
                        choices=[DETECTION_RANGE_2000, DETECTION_RANGE_5000],
                        default=DETECTION_RANGE_5000,
                        help="detection range in ppm (default: %(default)s)")
    parser.add_argument("--auto-calibration", action=argparse.BooleanOptionalAction,
                        default=False,
                        help="enable the sensor's automatic baseline calibration")
    parser.add_argument("--external-tool", action="store_true",
                        help="print bare co2:<ppm> lines to stdout only")
    return parser


def main(argv: list[str] | None = None, registry: PortRegistry | None = None) -> int:
    """Entry point for ``mhz19b-monitor``. Returns the process exit status."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.external_tool else logging.INFO,
        format=LOG_FORMAT,
    )
    if args.external_tool:
        def emit(line: str) -> None:
            print(line, flush=True)
    else:
        emit = None

    if registry is None:
        registry = PortRegistry()
    sensor = registry.acquire(args.port, args.timeout_ms)
    try:
        with sensor:
            sensor.set_detection_range(args.range_ppm)
            sensor.set_auto_calibration(args.auto_calibration)
            poll(sensor, interval=args.interval, count=args.count, emit=emit)
    except KeyboardInterrupt:
        logger.warning("Interrupted, stopping")
    except OSError as e:
        logger.warning("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
