"""
Shared test fixtures for meter daemon tests.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-011)

TODO:
- None
"""

import json

import pytest

# All MeterSettings environment variable names, used for cleanup.
_ALL_METER_ENV_VARS = (
    "APPLIANCE_ID",
    "HTTP_READS",
    "CONTENT_PROTOCOL",
    "MEASUREMENT_INTERVAL_S",
    "POLL_INTERVAL_S",
    "HTTP_TIMEOUT_S",
    "HEALTH_FILE_PATH",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_meter_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all meter env vars and isolate from .env files before each test.

    This runs automatically for every test in the meter test suite.
    Individual tests or fixtures then set only the vars they need.
    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_METER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def power_read_config() -> dict:
    """A JSON power read as it appears in HTTP_READS."""
    return {
        "role": "Power",
        "url": "http://192.168.1.50/status",
        "field_path": "meters[0].power",
        "extraction_pattern": r"(\d+[.,]?\d*)",
    }


@pytest.fixture()
def energy_read_config() -> dict:
    """A POST energy read with a scale factor (Wh -> kWh)."""
    return {
        "role": "Energy",
        "url": "http://192.168.1.50/rpc",
        "body": '{"method": "EMData.GetStatus"}',
        "content_type": "application/json",
        "field_path": "result.total_act_energy",
        "scale_factor": 0.001,
    }


@pytest.fixture()
def env_vars_full(
    monkeypatch: pytest.MonkeyPatch,
    power_read_config: dict,
    energy_read_config: dict,
) -> dict[str, str]:
    """Set all required and optional environment variables for MeterSettings.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "APPLIANCE_ID": "F-00000001-000000000001-00",
        "HTTP_READS": json.dumps([power_read_config, energy_read_config]),
        "CONTENT_PROTOCOL": "json",
        "MEASUREMENT_INTERVAL_S": "120",
        "POLL_INTERVAL_S": "20",
        "HTTP_TIMEOUT_S": "2.5",
        "HEALTH_FILE_PATH": "/tmp/test-health.json",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(
    monkeypatch: pytest.MonkeyPatch,
    power_read_config: dict,
) -> dict[str, str]:
    """Set only the required environment variables (no optional ones).

    Optional variables should fall back to their defaults.
    """
    env = {"HTTP_READS": json.dumps([power_read_config])}
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env
