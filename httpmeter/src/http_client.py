"""
HTTP executor for meter reads.

Sends a single GET or POST to the meter and returns the response body as
text. All network and HTTP errors are caught and logged at WARNING level
so a poll loop never crashes on a flaky device; the caller receives
``None`` and treats the reading as unavailable for this poll.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-006)

TODO:
- None
"""

import logging

import httpx

logger = logging.getLogger(__name__)

# Default request timeout in seconds.
_DEFAULT_TIMEOUT: float = 5.0


def execute(
    method: str,
    url: str,
    body: str | None = None,
    *,
    content_type: str | None = None,
    username: str | None = None,
    password: str | None = None,
    timeout: float = _DEFAULT_TIMEOUT,
) -> str | None:
    """Execute one HTTP request against a meter.

    Args:
        method: ``"GET"`` or ``"POST"``.
        url: Target URL (e.g. ``"http://192.168.1.50/status"``).
        body: Optional request body, sent as-is.
        content_type: Optional ``Content-Type`` header value.
        username: Optional HTTP basic auth user name.
        password: Optional HTTP basic auth password (used only with
            ``username``).
        timeout: HTTP request timeout in seconds. Defaults to 5.0.

    Returns:
        Response body text on a 2xx response, or ``None`` on any error.
    """
    headers = {"Content-Type": content_type} if content_type else {}
    auth = (username, password or "") if username else None

    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.request(
                method,
                url,
                content=body,
                headers=headers,
                auth=auth,
            )
            response.raise_for_status()
            return response.text

    except httpx.HTTPStatusError as exc:
        logger.warning(
            "Meter HTTP error %s for %s: %s",
            exc.response.status_code,
            url,
            exc,
        )
        return None

    except httpx.TimeoutException as exc:
        logger.warning("Meter request timeout for %s: %s", url, exc)
        return None

    except httpx.TransportError as exc:
        logger.warning("Meter connection error for %s: %s", url, exc)
        return None
