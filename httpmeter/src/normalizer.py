"""
Numeric normalizer for extracted meter values.

Pure functions that turn an extracted value string into a float: the
decimal separator is normalized (``"23,5"`` becomes ``"23.5"``), the
string is parsed, the configured scale factor is applied, and the result
is narrowed to 32-bit float precision. No side effects, no I/O.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-005)

TODO:
- None
"""

import math
import re
import struct

# Plain decimal literal: optional sign, digits with optional fraction,
# optional exponent. Rejects "nan", "inf", "1_5" and non-ASCII digits.
_DECIMAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def normalize(extracted: str, scale_factor: float | None = None) -> float:
    """Convert an extracted value string into a scaled float.

    Args:
        extracted: Substring returned by the value extractor, e.g.
            ``"23,5"`` or ``"742"``.
        scale_factor: Optional multiplier (e.g. ``0.001`` to turn Wh into
            kWh). ``None`` means a factor of 1.

    Returns:
        The parsed and scaled value with 32-bit float precision.

    Raises:
        ValueError: If the normalized string is not a valid number.
    """
    parsable = extracted.replace(",", ".").strip()
    if _DECIMAL_RE.fullmatch(parsable) is None:
        raise ValueError(f"Not a valid number: {extracted!r}")
    value = float(parsable)
    if scale_factor is not None:
        value *= scale_factor
    return to_float32(value)


def to_float32(value: float) -> float:
    """Round *value* to the nearest IEEE 754 single-precision float.

    Values beyond the single-precision range become signed infinity.
    """
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)
