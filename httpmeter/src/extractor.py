"""
Regular-expression value extractor for raw meter responses.

Meter firmwares rarely return a bare number. The extractor pulls the
numeric part out of a response string using the configured pattern, e.g.
``(\\d+[.,]?\\d*)`` against ``"23,5 kWh"`` yields ``"23,5"``.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-002)

TODO:
- None
"""

import re


class ValueExtractionError(ValueError):
    """Raised when a meter response cannot be turned into a value string.

    A non-matching pattern means the read is misconfigured (or the device
    changed its output format), so this is never defaulted to zero.
    """


def extract_value(value: str, pattern: str | None) -> str:
    """Return the first match of *pattern* in *value*.

    If the pattern defines capture groups, the first group is returned;
    otherwise the whole match. Without a pattern the input is returned
    unchanged.

    Args:
        value: Raw or envelope-decoded response text.
        pattern: Regular expression, or ``None`` for passthrough.

    Returns:
        The extracted substring.

    Raises:
        ValueExtractionError: If the pattern does not match.
    """
    if pattern is None:
        return value

    match = re.search(pattern, value, re.ASCII)
    if match is None:
        raise ValueExtractionError(
            f"Pattern {pattern!r} does not match response {value[:80]!r}"
        )
    if match.re.groups > 0 and match.group(1) is not None:
        return match.group(1)
    return match.group(0)
