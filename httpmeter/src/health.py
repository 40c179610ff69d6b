"""
Meter daemon health check reporting poll outcomes and current readings.

Exposes ``get_health_status()`` which returns a dict summarizing the
current operational state of the meter daemon. Also provides
``write_health_file()`` for Docker healthcheck integration via a JSON
file on disk.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-012)

TODO:
- None
"""

from __future__ import annotations

import json
import logging
import threading
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Module-level state: role name -> (last poll ok, monotonic timestamp).
_last_polls: dict[str, tuple[bool, float]] = {}
_lock = threading.Lock()

# Default health file path (inside the Docker volume).
HEALTH_FILE_PATH = "/data/health.json"


def record_poll(role: str, ok: bool) -> None:
    """Record the outcome of a power or energy poll."""
    with _lock:
        _last_polls[role] = (ok, time.monotonic())


def get_health_status(meter: Any) -> dict[str, Any]:
    """Build a health status dict for the meter daemon.

    Checks:
    - **polls**: per role (``Power``/``Energy``), whether the most recent
      poll produced a value and how many seconds ago it ran.
    - **min_power_w** / **average_power_w** / **max_power_w**: power
      aggregates over the measurement interval.
    - **energy_kwh**: energy counted since the last counter reset,
      based on the newest energy sample (no HTTP request).
    - **power_from_energy**: whether power is derived from energy.

    Args:
        meter: The HttpElectricityMeter instance.

    Returns:
        Dict with health status fields.
    """
    with _lock:
        last_polls = dict(_last_polls)
    now = time.monotonic()
    polls = {
        role: {
            "last_poll_success": ok,
            "last_poll_elapsed_s": round(now - ts, 1),
        }
        for role, (ok, ts) in last_polls.items()
    }

    aggregates: dict[str, float | None] = {
        "min_power_w": None,
        "average_power_w": None,
        "max_power_w": None,
        "energy_kwh": None,
    }
    try:
        aggregates = {
            "min_power_w": meter.min_power,
            "average_power_w": meter.average_power,
            "max_power_w": meter.max_power,
            "energy_kwh": meter.counted_energy(),
        }
    except Exception:
        logger.warning(
            "Health check: failed to read meter aggregates",
            exc_info=True,
        )

    return {
        "appliance_id": meter.appliance_id,
        "polls": polls,
        **aggregates,
        "power_from_energy": meter.calculates_power_from_energy,
        "checked_at": datetime.now(tz=UTC).isoformat(),
    }


def write_health_file(
    meter: Any,
    path: str = HEALTH_FILE_PATH,
) -> None:
    """Write health status to a JSON file for Docker healthcheck.

    The Docker healthcheck can verify this file exists and was
    recently updated. Errors during write are logged but not raised.

    Args:
        meter: The HttpElectricityMeter instance.
        path: Filesystem path for the health file.
    """
    try:
        status = get_health_status(meter)
        Path(path).write_text(
            json.dumps(status), encoding="utf-8"
        )
    except Exception:
        logger.warning(
            "Health check: failed to write health file",
            exc_info=True,
        )


def reset() -> None:
    """Reset module-level state (for testing only)."""
    with _lock:
        _last_polls.clear()
