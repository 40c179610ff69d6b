"""
Meter daemon entry point -- power poll loop + energy poll loop.

Runs up to two threads:
1. **Power thread**: polls power at ``poll_interval_s`` (directly, or
   derived from energy samples) and records it in the power window.
2. **Energy thread**: polls the energy meter reading at
   ``poll_interval_s`` and records it in the energy window. Only started
   when an ``Energy`` read is configured.

Each loop writes the health file after every poll.

Handles SIGTERM and SIGINT for graceful shutdown inside Docker:
- Sets a ``shutdown_event`` that stops both loops.
- Waits for the loops to finish their current iteration.

An invalid configuration terminates the process with exit status 1.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-014)

TODO:
- None
"""

import logging
import signal
import sys
import threading
from types import FrameType

from pydantic import ValidationError

from httpmeter.src.config import MeterSettings
from httpmeter.src.health import record_poll, write_health_file
from httpmeter.src.logging_config import setup_logging
from httpmeter.src.meter import HttpElectricityMeter
from httpmeter.src.reads import MeterValueName

logger = logging.getLogger(__name__)

# Module-level shutdown event shared between signal handlers and loops.
shutdown_event = threading.Event()


def _poll_power_loop(
    meter: HttpElectricityMeter,
    settings: MeterSettings,
) -> None:
    """Continuously poll power and record it in the power window.

    Runs until ``shutdown_event`` is set. Any single-poll failure
    (including extraction errors) is logged and skipped; the loop
    continues with the next interval.
    """
    log_extra = {"appliance_id": meter.appliance_id}
    while not shutdown_event.is_set():
        try:
            power = meter.update_power()
            record_poll(MeterValueName.POWER.value, power is not None)
            if power is not None:
                logger.info(
                    "%s: power = %sW", meter.appliance_id, power, extra=log_extra
                )
        except Exception:
            record_poll(MeterValueName.POWER.value, False)
            logger.exception(
                "Unexpected error in power poll loop", extra=log_extra
            )

        write_health_file(meter, settings.health_file_path)
        shutdown_event.wait(timeout=settings.poll_interval_s)


def _poll_energy_loop(
    meter: HttpElectricityMeter,
    settings: MeterSettings,
) -> None:
    """Continuously poll energy and record it in the energy window.

    Runs until ``shutdown_event`` is set. Any single-poll failure is
    logged and skipped.
    """
    log_extra = {"appliance_id": meter.appliance_id}
    while not shutdown_event.is_set():
        try:
            energy = meter.update_energy()
            record_poll(MeterValueName.ENERGY.value, energy is not None)
            if energy is not None:
                logger.info(
                    "%s: energy = %s kWh",
                    meter.appliance_id,
                    energy,
                    extra=log_extra,
                )
        except Exception:
            record_poll(MeterValueName.ENERGY.value, False)
            logger.exception(
                "Unexpected error in energy poll loop", extra=log_extra
            )

        write_health_file(meter, settings.health_file_path)
        shutdown_event.wait(timeout=settings.poll_interval_s)


def _signal_handler(
    signum: int,
    _frame: FrameType | None,
) -> None:
    """Handle SIGTERM/SIGINT by signalling shutdown.

    Sets ``shutdown_event`` so all loops exit cleanly.
    """
    sig_name = signal.Signals(signum).name
    logger.info("Received %s, initiating graceful shutdown", sig_name)
    shutdown_event.set()


def _load_settings() -> MeterSettings:
    """Load settings, terminating the process if they are invalid."""
    try:
        return MeterSettings()
    except ValidationError as exc:
        logger.error("Terminating because of incorrect configuration: %s", exc)
        sys.exit(1)


def main() -> None:
    """Meter daemon entry point.

    Loads configuration from environment variables, builds the meter,
    registers signal handlers, then starts the poll threads. The main
    thread blocks on ``shutdown_event`` until a signal is received.
    """
    setup_logging()

    settings = _load_settings()
    setup_logging(settings.log_level)

    meter = HttpElectricityMeter.from_settings(settings)

    # Register signal handlers for graceful shutdown.
    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)

    logger.info(
        "%s: Meter daemon starting -- poll every %ds, measurement "
        "interval %ds, power from energy: %s",
        meter.appliance_id,
        settings.poll_interval_s,
        settings.measurement_interval_s,
        meter.calculates_power_from_energy,
    )

    threads = [
        threading.Thread(
            target=_poll_power_loop,
            args=(meter, settings),
            daemon=True,
            name="power-poll-thread",
        )
    ]
    if meter.energy_read is not None:
        threads.append(
            threading.Thread(
                target=_poll_energy_loop,
                args=(meter, settings),
                daemon=True,
                name="energy-poll-thread",
            )
        )

    for thread in threads:
        thread.start()

    # Block until a signal sets the shutdown event.
    shutdown_event.wait()

    logger.info("Shutdown event received, stopping loops")

    # Give threads a moment to exit their current iteration.
    for thread in threads:
        thread.join(timeout=5)

    logger.info("%s: Meter daemon shut down cleanly", meter.appliance_id)


if __name__ == "__main__":
    main()
