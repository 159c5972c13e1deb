from __future__ import annotations

from typing import Any


class StructuredChatError(Exception):
    """Base exception for every failure surfaced by this package."""


class ConfigError(StructuredChatError):
    """Missing or invalid configuration, or a target type that cannot be described."""


class TransportError(StructuredChatError):
    """Network-level failure: connection refused, DNS, timeout and the like."""


class UpstreamError(StructuredChatError):
    """Provider answered with a non-success HTTP status.

    `body` is the raw response text, untouched. Schema rejections
    ("format is not permitted", missing `required` entries, ...) only show up there.
    """

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"provider returned HTTP {status_code}: {body}")


class ProtocolError(StructuredChatError):
    """Success status, but the envelope is malformed, empty or a refusal."""

    def __init__(self, message: str, *, body: str | None = None) -> None:
        self.body = body
        super().__init__(message)


class DecodeError(StructuredChatError):
    """Assistant text is not valid JSON or does not fit the target type."""

    def __init__(self, message: str, *, content: str, errors: list[dict[str, Any]] | None = None) -> None:
        self.content = content
        self.errors = errors or []
        super().__init__(message)
