"""
Content-protocol handlers that unwrap a meter response before extraction.

Two handlers exist:

- ``RawContentProtocolHandler``: the response body is used as-is.
- ``JsonContentProtocolHandler``: the body is parsed as JSON and a field
  path such as ``power.watt``, ``$.meters[0].power`` or ``StatusSNS.ENERGY``
  is resolved to a string.

The handler is chosen once from the ``CONTENT_PROTOCOL`` setting via
``create_content_protocol_handler()``. Handlers are shared between the
power and energy poll threads, so ``decode()`` runs ``parse()`` and
``read_value()`` under a lock.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-003)

TODO:
- None
"""

import json
import re
import threading
from typing import Any

from httpmeter.src.extractor import ValueExtractionError

# Protocol name accepted in configuration (case-sensitive).
JSON_PROTOCOL = "json"

# One path segment: a key followed by any number of ``[index]`` suffixes.
_SEGMENT_RE = re.compile(r"^(?P<key>[^\[\]]*)(?P<indices>(\[\d+\])*)$")
_INDEX_RE = re.compile(r"\[(\d+)\]")


class ContentProtocolError(ValueExtractionError):
    """Raised when a response cannot be decoded or a path is unresolvable."""


class ContentProtocolHandler:
    """Base class for content-protocol handlers.

    Subclasses implement ``parse()`` and ``read_value()``. Callers sharing
    a handler across threads should use ``decode()``.
    """

    name: str = ""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def parse(self, content: str) -> None:
        raise NotImplementedError

    def read_value(self, path: str | None) -> str:
        raise NotImplementedError

    def decode(self, content: str, path: str | None) -> str:
        """Parse *content* and read the value at *path* as one step."""
        with self._lock:
            self.parse(content)
            return self.read_value(path)


class RawContentProtocolHandler(ContentProtocolHandler):
    """Passthrough handler: the response body is the value string."""

    name = "raw"

    def __init__(self) -> None:
        super().__init__()
        self._content: str = ""

    def parse(self, content: str) -> None:
        self._content = content

    def read_value(self, path: str | None) -> str:
        return self._content


class JsonContentProtocolHandler(ContentProtocolHandler):
    """Handler for JSON response bodies."""

    name = JSON_PROTOCOL

    def __init__(self) -> None:
        super().__init__()
        self._document: Any = None

    def parse(self, content: str) -> None:
        """Parse *content* as a JSON document.

        Raises:
            ContentProtocolError: If *content* is not valid JSON.
        """
        try:
            self._document = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ContentProtocolError(
                f"Response is not valid JSON: {exc}"
            ) from exc

    def read_value(self, path: str | None) -> str:
        """Resolve *path* against the parsed document.

        Scalars are returned in their JSON text form (``742``, ``23.5``,
        ``true``) except strings, which are returned unquoted. Objects and
        arrays are returned as compact JSON so an extraction pattern can
        still be applied to them.

        Raises:
            ContentProtocolError: If a path segment does not exist.
        """
        node = self._document
        for key, indices in _split_path(path):
            if key:
                if not isinstance(node, dict) or key not in node:
                    raise ContentProtocolError(
                        f"Path {path!r}: key {key!r} not found"
                    )
                node = node[key]
            for index in indices:
                if not isinstance(node, list) or index >= len(node):
                    raise ContentProtocolError(
                        f"Path {path!r}: index [{index}] out of range"
                    )
                node = node[index]

        if isinstance(node, str):
            return node
        return json.dumps(node, separators=(",", ":"))


def _split_path(path: str | None) -> list[tuple[str, list[int]]]:
    """Split a field path into ``(key, [indices])`` segments.

    An empty path, ``$`` or ``None`` refers to the document root.
    """
    if not path:
        return []
    if path.startswith("$"):
        path = path[1:].lstrip(".")
    if not path:
        return []

    segments = []
    for part in path.split("."):
        match = _SEGMENT_RE.match(part)
        if match is None:
            raise ContentProtocolError(f"Invalid field path {path!r}")
        indices = [int(i) for i in _INDEX_RE.findall(match.group("indices"))]
        segments.append((match.group("key"), indices))
    return segments


def create_content_protocol_handler(
    content_protocol: str | None,
) -> ContentProtocolHandler:
    """Build the handler for a configured content-protocol name.

    Args:
        content_protocol: ``"json"`` for JSON responses, ``None`` or an
            empty string for raw responses.

    Returns:
        A new handler instance.

    Raises:
        ValueError: If the protocol name is not supported.
    """
    if not content_protocol:
        return RawContentProtocolHandler()
    if content_protocol == JSON_PROTOCOL:
        return JsonContentProtocolHandler()
    raise ValueError(
        f"Unsupported content protocol {content_protocol!r} "
        f"(supported: {JSON_PROTOCOL!r})"
    )
