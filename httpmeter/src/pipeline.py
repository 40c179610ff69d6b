"""
Fetch-parse-derive pipeline: one HTTP read turned into one number.

``acquire()`` executes the read's HTTP request, unwraps the response with
the meter's content-protocol handler, extracts the numeric substring with
the read's pattern, and normalizes and scales it.

Failure modes are kept apart on purpose:

- No read configured or no HTTP response: ``None`` (unavailable). The
  next poll simply tries again.
- Response received but not understood (invalid JSON, unknown path,
  pattern without match, not a number): the exception propagates, since
  this points at a configuration problem rather than a transient one.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-007)

TODO:
- None
"""

import logging

from httpmeter.src import http_client
from httpmeter.src.extractor import extract_value
from httpmeter.src.normalizer import normalize
from httpmeter.src.protocol import ContentProtocolHandler
from httpmeter.src.reads import HttpRead

logger = logging.getLogger(__name__)


def acquire(
    read: HttpRead | None,
    handler: ContentProtocolHandler,
    *,
    appliance_id: str = "",
    timeout: float = 5.0,
) -> float | None:
    """Acquire the current value for *read*.

    Args:
        read: The read to execute, or ``None`` if the role has no read.
        handler: Content-protocol handler for the meter's responses.
        appliance_id: Appliance identifier used as log prefix.
        timeout: HTTP request timeout in seconds.

    Returns:
        The scaled value (W for power reads, kWh for energy reads), or
        ``None`` if no read is configured or the request failed.

    Raises:
        ValueExtractionError: If the response cannot be decoded or the
            extraction pattern does not match.
        ValueError: If the extracted text is not a number.
    """
    if read is None:
        return None

    log_extra = {"appliance_id": appliance_id}
    method = read.method
    logger.debug(
        "%s: url=%s httpMethod=%s data=%s path=%s "
        "valueExtractionRegex=%s factorToValue=%s",
        appliance_id,
        read.url,
        method.value,
        read.body,
        read.field_path,
        read.extraction_pattern,
        read.scale_factor,
        extra=log_extra,
    )
    response = http_client.execute(
        method.value,
        read.url,
        read.body,
        content_type=read.content_type,
        username=read.username,
        password=read.password,
        timeout=timeout,
    )
    if response is None:
        logger.debug(
            "%s: No response, %s unavailable",
            appliance_id,
            read.role.value,
            extra=log_extra,
        )
        return None

    logger.debug(
        "%s: Response: %s", appliance_id, response, extra=log_extra
    )
    decoded = handler.decode(response, read.field_path)
    extracted = extract_value(decoded, read.extraction_pattern)
    value = normalize(extracted, read.scale_factor)
    logger.debug(
        "%s: value=%s contentProtocolHandler=%s decoded=%s extracted=%s",
        appliance_id,
        value,
        handler.name,
        decoded,
        extracted,
        extra=log_extra,
    )
    return value
