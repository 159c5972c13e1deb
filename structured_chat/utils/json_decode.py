from __future__ import annotations

from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from structured_chat.errors import DecodeError

T = TypeVar("T")


def decode_as(target: type[T] | Any, text: str) -> T:
    """
    Second decoding level: the assistant text into the caller's target type.

    Covers both failure kinds with one `DecodeError`:
    - text that is not JSON at all (pydantic reports `json_invalid`)
    - JSON that breaks the type: missing fields, wrong types, extra fields on
      models with `extra="forbid"`
    """
    try:
        return TypeAdapter(target).validate_json(text)
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        invalid_json = any(e.get("type") == "json_invalid" for e in errors)
        what = "not valid JSON" if invalid_json else f"does not match {getattr(target, '__name__', target)!s}"
        raise DecodeError(f"assistant content {what}: {exc}", content=text, errors=errors) from exc
