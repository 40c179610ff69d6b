"""
HTTP read descriptors and the rules for selecting them.

An ``HttpRead`` describes one acquisition: which URL to call, whether to
POST a body, where the value sits in the response, and how to scale it.
Each read carries a role (``Power`` or ``Energy``). A meter holds an
ordered list of reads; for each role the first declared read is used.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-004)

TODO:
- None
"""

import re
from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class MeterValueName(str, Enum):
    """Role of a read: what the extracted value represents."""

    POWER = "Power"
    ENERGY = "Energy"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"


class MeterConfigurationError(ValueError):
    """Raised when the configured reads cannot drive a meter."""


class HttpRead(BaseModel):
    """One role-tagged HTTP read.

    Attributes:
        role: ``Power`` (W) or ``Energy`` (kWh).
        url: Target URL.
        body: Request body. Its presence switches the request to POST.
        content_type: Content-Type header sent with ``body``.
        username: Optional HTTP basic auth user.
        password: Optional HTTP basic auth password.
        field_path: Path into the decoded content envelope (JSON only).
        extraction_pattern: Regular expression applied to the decoded
            string. ``None`` uses the whole string.
        scale_factor: Multiplier applied to the parsed number.
    """

    model_config = ConfigDict(frozen=True)

    role: MeterValueName
    url: str
    body: str | None = None
    content_type: str | None = None
    username: str | None = None
    password: str | None = None
    field_path: str | None = None
    extraction_pattern: str | None = None
    scale_factor: float | None = None

    @property
    def method(self) -> HttpMethod:
        """POST when a body is configured, GET otherwise."""
        return HttpMethod.POST if self.body is not None else HttpMethod.GET

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v: str) -> str:
        """Validate that the read URL is an absolute http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"url must start with http:// or https:// (got: '{v}')"
            )
        return v

    @field_validator("extraction_pattern")
    @classmethod
    def extraction_pattern_must_compile(cls, v: str | None) -> str | None:
        """Validate that the extraction pattern is a valid regex."""
        if v is not None:
            try:
                re.compile(v, re.ASCII)
            except re.error as exc:
                raise ValueError(
                    f"extraction_pattern is not a valid regex: {exc}"
                ) from exc
        return v


def first_read(
    role: MeterValueName,
    reads: Sequence[HttpRead] | None,
) -> HttpRead | None:
    """Return the first read declared for *role*, or ``None``."""
    for read in reads or ():
        if read.role == role:
            return read
    return None


def validate_reads(reads: Sequence[HttpRead] | None) -> None:
    """Check that the reads can meter power, energy, or both.

    Raises:
        MeterConfigurationError: If neither a ``Power`` nor an ``Energy``
            read is configured.
    """
    has_power = first_read(MeterValueName.POWER, reads) is not None
    has_energy = first_read(MeterValueName.ENERGY, reads) is not None
    if not (has_power or has_energy):
        raise MeterConfigurationError(
            "At least one read with role 'Power' or 'Energy' is required"
        )
