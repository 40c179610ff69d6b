"""
Rolling measurement windows and the energy counter.

- ``PowerWindow`` keeps the polled power values of the last measurement
  interval and reports min / average / max.
- ``EnergyWindow`` keeps the polled energy samples of the last
  measurement interval; they feed the power derivation.
- ``EnergyCounter`` tracks consumption between ``start()`` and
  ``stop()`` calls, across several start/stop periods until ``reset()``.

The power and energy poll loops run on separate threads, so every class
guards its state with a lock.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-009)

TODO:
- None
"""

import threading
from collections import deque

from httpmeter.src.deriver import Sample


class PowerWindow:
    """Power values (W) polled within the last measurement interval.

    Args:
        measurement_interval_s: Window length in seconds.
    """

    def __init__(self, measurement_interval_s: int) -> None:
        self._interval_ms = measurement_interval_s * 1000
        self._values: deque[tuple[int, float]] = deque()
        self._lock = threading.Lock()

    def add(self, timestamp_ms: int, power_w: float) -> None:
        """Append a value and drop values older than the window."""
        with self._lock:
            self._values.append((timestamp_ms, power_w))
            _prune(self._values, timestamp_ms - self._interval_ms)

    def values(self) -> list[float]:
        with self._lock:
            return [power for _, power in self._values]

    @property
    def min_power(self) -> int:
        values = self.values()
        return round(min(values)) if values else 0

    @property
    def average_power(self) -> int:
        values = self.values()
        return round(sum(values) / len(values)) if values else 0

    @property
    def max_power(self) -> int:
        values = self.values()
        return round(max(values)) if values else 0


class EnergyWindow:
    """Energy samples (kWh) polled within the last measurement interval.

    Args:
        measurement_interval_s: Window length in seconds.
    """

    def __init__(self, measurement_interval_s: int) -> None:
        self._interval_ms = measurement_interval_s * 1000
        self._samples: deque[Sample] = deque()
        self._lock = threading.Lock()

    def add(self, timestamp_ms: int, energy_kwh: float) -> None:
        """Append a sample and drop samples older than the window.

        The newest sample defines the window end; samples are kept in
        arrival order. The newest sample before the window start is kept
        as well, so a pair to difference exists even when the poll
        interval exceeds the measurement interval.
        """
        with self._lock:
            self._samples.append(Sample(timestamp_ms, energy_kwh))
            cutoff = timestamp_ms - self._interval_ms
            while (
                len(self._samples) > 1
                and self._samples[1].timestamp_ms < cutoff
            ):
                self._samples.popleft()

    def samples(self) -> list[Sample]:
        """Return a copy of the samples, oldest first."""
        with self._lock:
            return list(self._samples)

    def latest(self) -> Sample | None:
        with self._lock:
            return self._samples[-1] if self._samples else None


class EnergyCounter:
    """Consumption counter over one or more start/stop periods.

    Values passed in are absolute meter readings in kWh. A reading below
    the period's start value (meter replaced or reset) contributes 0.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._start_value: float | None = None
        self._total: float = 0.0

    @property
    def running(self) -> bool:
        with self._lock:
            return self._start_value is not None

    def start(self, value: float) -> None:
        """Start a counting period at meter reading *value*.

        Starting an already running counter is a no-op.
        """
        with self._lock:
            if self._start_value is None:
                self._start_value = value

    def stop(self, value: float) -> None:
        """Close the running period at meter reading *value*."""
        with self._lock:
            if self._start_value is not None:
                self._total += max(value - self._start_value, 0.0)
                self._start_value = None

    def reset(self) -> None:
        with self._lock:
            self._start_value = None
            self._total = 0.0

    def energy(self, current: float | None = None) -> float:
        """Return the counted energy in kWh.

        Args:
            current: Latest meter reading, used to include the running
                period. Ignored while the counter is stopped.
        """
        with self._lock:
            energy = self._total
            if self._start_value is not None and current is not None:
                energy += max(current - self._start_value, 0.0)
            return energy


def _prune(values: deque[tuple[int, float]], cutoff_ms: int) -> None:
    while values and values[0][0] < cutoff_ms:
        values.popleft()
