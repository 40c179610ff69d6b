"""
Meter daemon configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
no hardcoded meter URLs or credentials.

``HTTP_READS`` is a JSON list of reads, for example::

    HTTP_READS='[{"role": "Power", "url": "http://192.168.1.50/status",
                  "field_path": "meters[0].power",
                  "extraction_pattern": "(\\\\d+[.,]?\\\\d*)"}]'

CHANGELOG:
- 2026-10-18: Initial creation (STORY-011)

TODO:
- None
"""

import logging

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from httpmeter.src.meter import (
    DEFAULT_MEASUREMENT_INTERVAL_S,
    DEFAULT_POLL_INTERVAL_S,
)
from httpmeter.src.protocol import create_content_protocol_handler
from httpmeter.src.reads import HttpRead, validate_reads


class MeterSettings(BaseSettings):
    """Meter daemon configuration.

    All values are loaded from environment variables. ``HTTP_READS`` is
    required; everything else has a default.

    Attributes:
        appliance_id: Identifier of the metered appliance.
        http_reads: Ordered list of role-tagged HTTP reads.
        content_protocol: ``json`` to decode JSON responses, unset for
            raw text responses.
        measurement_interval_s: Seconds covered by the power and energy
            windows.
        poll_interval_s: Seconds between meter polls.
        http_timeout_s: HTTP request timeout in seconds.
        health_file_path: JSON health file for the Docker healthcheck.
        log_level: Root log level name.
    """

    appliance_id: str = "meter"
    http_reads: list[HttpRead]
    content_protocol: str | None = None
    measurement_interval_s: int = DEFAULT_MEASUREMENT_INTERVAL_S
    poll_interval_s: int = DEFAULT_POLL_INTERVAL_S
    http_timeout_s: float = 5.0
    health_file_path: str = "/data/health.json"
    log_level: str = "INFO"

    @field_validator("content_protocol")
    @classmethod
    def content_protocol_must_be_supported(cls, v: str | None) -> str | None:
        """Validate the protocol name (exact, case-sensitive match)."""
        create_content_protocol_handler(v)
        return v or None

    @field_validator("measurement_interval_s", "poll_interval_s")
    @classmethod
    def interval_must_be_positive(cls, v: int) -> int:
        """Validate intervals are at least 1 second."""
        if v < 1:
            raise ValueError("intervals must be >= 1 second")
        return v

    @field_validator("http_timeout_s")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("HTTP_TIMEOUT_S must be > 0")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_exist(cls, v: str) -> str:
        """Validate and upper-case the log level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown LOG_LEVEL '{v}'")
        return level

    @model_validator(mode="after")
    def _reads_must_meter_power_or_energy(self) -> "MeterSettings":
        """Reject configurations without a Power or Energy read."""
        validate_reads(self.http_reads)
        return self

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
