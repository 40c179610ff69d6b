"""
Power derivation from cumulative energy samples.

Meters that only expose an energy counter (kWh) still need to report
instantaneous power. The derivation differences consecutive samples::

    power_w = diff_energy_kwh * 1000 W/kW * 3_600_000 ms/h / diff_time_ms

Negative results (counter reset, rounding jitter) are clamped to 0.
Pairs whose timestamp does not increase are skipped.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-008)

TODO:
- None
"""

from collections.abc import Iterable
from dataclasses import dataclass

from httpmeter.src.normalizer import to_float32

# kWh per ms -> W
_KWH_PER_MS_TO_W: float = 1000.0 * 3_600_000.0


@dataclass(frozen=True)
class Sample:
    """A cumulative energy reading taken at ``timestamp_ms``."""

    timestamp_ms: int
    energy_kwh: float


def calculate_power(samples: Iterable[Sample]) -> list[float]:
    """Calculate power values from consecutive energy samples.

    Args:
        samples: Energy samples ordered by timestamp ascending.

    Returns:
        One power value in W per consecutive pair with an increasing
        timestamp, in traversal order. Empty if no such pair exists.
    """
    power_values: list[float] = []
    previous: Sample | None = None
    for current in samples:
        if previous is not None and current.timestamp_ms > previous.timestamp_ms:
            diff_time_ms = current.timestamp_ms - previous.timestamp_ms
            diff_energy_kwh = current.energy_kwh - previous.energy_kwh
            power = diff_energy_kwh * _KWH_PER_MS_TO_W / diff_time_ms
            power_values.append(to_float32(max(power, 0.0)))
        previous = current
    return power_values


def derive_power(samples: Iterable[Sample]) -> float | None:
    """Return the most recent derived power value in W.

    Returns:
        The last value of :func:`calculate_power`, or ``None`` when fewer
        than two usable samples are available. ``None`` means "no data
        yet", which is different from a measured 0 W.
    """
    power_values = calculate_power(samples)
    if not power_values:
        return None
    return power_values[-1]
