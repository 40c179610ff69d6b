"""
HTTP electricity meter: read selection, polling, and aggregates.

``HttpElectricityMeter`` ties the configured reads to the acquisition
pipeline. A power poll uses the first ``Power`` read; without one, power
is derived from the energy samples collected by the energy poll. An
energy poll uses the first ``Energy`` read.

The daemon loops in ``main`` call ``update_power()`` and
``update_energy()`` once per poll interval; appliance control code reads
the aggregates (``min_power``, ``average_power``, ``max_power``,
``energy()``) and drives the energy counter.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-010)

TODO:
- None
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from httpmeter.src.deriver import derive_power
from httpmeter.src.logging_config import appliance_logger
from httpmeter.src.pipeline import acquire
from httpmeter.src.protocol import create_content_protocol_handler
from httpmeter.src.reads import (
    HttpRead,
    MeterValueName,
    first_read,
    validate_reads,
)
from httpmeter.src.window import EnergyCounter, EnergyWindow, PowerWindow

if TYPE_CHECKING:
    from httpmeter.src.config import MeterSettings

logger = logging.getLogger(__name__)

# Defaults used when the configuration does not override the intervals.
DEFAULT_MEASUREMENT_INTERVAL_S = 60
DEFAULT_POLL_INTERVAL_S = 10


def _now_ms() -> int:
    return int(time.time() * 1000)


class HttpElectricityMeter:
    """Electricity meter reading power and energy via HTTP requests.

    Args:
        appliance_id: Identifier of the metered appliance (log prefix).
        reads: Ordered role-tagged reads.
        content_protocol: ``"json"`` or ``None`` for raw responses.
        measurement_interval_s: Length of the power/energy windows.
        poll_interval_s: Seconds between polls of each loop.
        timeout: HTTP request timeout in seconds.
        clock: Millisecond clock, injectable for tests.

    Raises:
        MeterConfigurationError: If neither a Power nor an Energy read is
            configured.
        ValueError: If the content protocol is not supported.
    """

    def __init__(
        self,
        appliance_id: str,
        reads: Sequence[HttpRead],
        content_protocol: str | None = None,
        *,
        measurement_interval_s: int = DEFAULT_MEASUREMENT_INTERVAL_S,
        poll_interval_s: int = DEFAULT_POLL_INTERVAL_S,
        timeout: float = 5.0,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        validate_reads(reads)
        self.appliance_id = appliance_id
        self._log = appliance_logger(logger, appliance_id)
        self.reads = tuple(reads)
        self.measurement_interval_s = measurement_interval_s
        self.poll_interval_s = poll_interval_s
        self._timeout = timeout
        self._clock = clock
        self._handler = create_content_protocol_handler(content_protocol)
        self._power_window = PowerWindow(measurement_interval_s)
        self._energy_window = EnergyWindow(measurement_interval_s)
        self._energy_counter = EnergyCounter()

    @classmethod
    def from_settings(cls, settings: MeterSettings) -> HttpElectricityMeter:
        """Build a meter from validated daemon settings."""
        return cls(
            settings.appliance_id,
            settings.http_reads,
            settings.content_protocol,
            measurement_interval_s=settings.measurement_interval_s,
            poll_interval_s=settings.poll_interval_s,
            timeout=settings.http_timeout_s,
        )

    # ------------------------------------------------------------------
    # Read selection
    # ------------------------------------------------------------------

    @property
    def power_read(self) -> HttpRead | None:
        return first_read(MeterValueName.POWER, self.reads)

    @property
    def energy_read(self) -> HttpRead | None:
        return first_read(MeterValueName.ENERGY, self.reads)

    @property
    def calculates_power_from_energy(self) -> bool:
        """True when power has to be derived from energy samples."""
        return self.power_read is None

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def poll_power(self) -> float | None:
        """Return the current power in W, or ``None`` if unavailable."""
        power_read = self.power_read
        if power_read is not None:
            return acquire(
                power_read,
                self._handler,
                appliance_id=self.appliance_id,
                timeout=self._timeout,
            )

        power = derive_power(self._energy_window.samples())
        if power is not None:
            self._log.debug(
                "%s: Calculated power from energy: %sW",
                self.appliance_id,
                power,
            )
        return power

    def poll_energy(self) -> float | None:
        """Return the current meter reading in kWh, or ``None``."""
        return acquire(
            self.energy_read,
            self._handler,
            appliance_id=self.appliance_id,
            timeout=self._timeout,
        )

    def update_power(self, now_ms: int | None = None) -> float | None:
        """Poll power once and record it in the power window.

        An unavailable reading leaves the window untouched.
        """
        power = self.poll_power()
        if power is not None:
            self._power_window.add(
                now_ms if now_ms is not None else self._clock(), power
            )
        return power

    def update_energy(self, now_ms: int | None = None) -> float | None:
        """Poll energy once and record it in the energy window.

        An unavailable reading leaves the window untouched.
        """
        energy = self.poll_energy()
        if energy is not None:
            self._energy_window.add(
                now_ms if now_ms is not None else self._clock(), energy
            )
        return energy

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    @property
    def min_power(self) -> int:
        power = self._power_window.min_power
        self._log.debug("%s: min power = %dW", self.appliance_id, power)
        return power

    @property
    def average_power(self) -> int:
        power = self._power_window.average_power
        self._log.debug("%s: average power = %dW", self.appliance_id, power)
        return power

    @property
    def max_power(self) -> int:
        power = self._power_window.max_power
        self._log.debug("%s: max power = %dW", self.appliance_id, power)
        return power

    def energy(self) -> float:
        """Energy in kWh counted since the counter was last reset.

        Issues an HTTP request to the Energy read so that a running period
        is measured against a fresh meter reading. If that request fails,
        the newest energy sample is used instead.

        Raises:
            ValueExtractionError: If the energy response cannot be decoded
                or the extraction pattern does not match.
            ValueError: If the extracted text is not a number.
        """
        return self._energy_counter.energy(self._current_energy())

    def counted_energy(self) -> float:
        """Counted energy in kWh using only the newest energy sample.

        Does not touch the network, so it is safe for status reporting.
        """
        latest = self._energy_window.latest()
        return self._energy_counter.energy(
            latest.energy_kwh if latest is not None else None
        )

    def is_on(self) -> bool:
        """True if the appliance currently draws power."""
        power = self.poll_power()
        return power is not None and power > 0

    # ------------------------------------------------------------------
    # Energy counter
    # ------------------------------------------------------------------

    def start_energy_meter(self) -> None:
        self._log.debug("%s: Start energy meter ...", self.appliance_id)
        energy = self._current_energy()
        if energy is None:
            self._log.warning(
                "%s: Cannot start energy meter, no energy reading available",
                self.appliance_id,
            )
            return
        self._energy_counter.start(energy)
        self._log.debug(
            "%s: Current energy meter value: %s kWh", self.appliance_id, energy
        )

    def stop_energy_meter(self) -> None:
        self._log.debug("%s: Stop energy meter ...", self.appliance_id)
        energy = self._current_energy()
        if energy is None:
            self._log.warning(
                "%s: Cannot stop energy meter, no energy reading available",
                self.appliance_id,
            )
            return
        self._energy_counter.stop(energy)
        self._log.debug(
            "%s: Current energy meter value: %s kWh", self.appliance_id, energy
        )

    def reset_energy_meter(self) -> None:
        self._log.debug("%s: Reset energy meter ...", self.appliance_id)
        self._energy_counter.reset()

    def _current_energy(self) -> float | None:
        """Poll the meter reading, falling back to the newest sample."""
        energy = self.poll_energy()
        if energy is not None:
            return energy
        latest = self._energy_window.latest()
        return latest.energy_kwh if latest is not None else None
