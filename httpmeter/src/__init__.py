"""
HTTP electricity meter daemon.

Polls a power meter or smart plug over HTTP, extracts power and energy
readings from the response body, and derives power from energy when the
device only reports a cumulative counter.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-001)

TODO:
- None
"""
