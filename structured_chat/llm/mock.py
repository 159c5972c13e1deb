from __future__ import annotations

import json
from collections import deque
from typing import Any, Iterable, Sequence

from structured_chat.schema.models import Message, Schema

_MAX_DEPTH = 12


class MockChatClient:
    """
    Deterministic mock backend, no network.

    Replays canned assistant texts in order; once they run out (or when none were
    given, as with `SC_LLM_BACKEND=mock`) it answers with a placeholder document
    built from the request schema.
    """

    def __init__(self, responses: Iterable[str | dict[str, Any]] = ()) -> None:
        self._responses: deque[str] = deque()
        for r in responses:
            self.push(r)
        self.calls: list[tuple[list[Message], Schema]] = []

    def push(self, response: str | dict[str, Any]) -> None:
        if not isinstance(response, str):
            response = json.dumps(response)
        self._responses.append(response)

    async def complete(self, messages: Sequence[Message], schema: Schema) -> str:
        self.calls.append((list(messages), schema))
        if self._responses:
            return self._responses.popleft()
        return json.dumps(sample_from_schema(schema.schema))

    async def aclose(self) -> None:
        return None


def sample_from_schema(document: dict[str, Any]) -> Any:
    """Smallest plausible instance of `document`: first enum value, one list item, every property."""
    return _sample(document, document, 0)


def _resolve(root: dict[str, Any], ref: str) -> dict[str, Any]:
    node: Any = root
    for part in ref.lstrip("#/").split("/"):
        node = node[part]
    return node


def _sample(node: dict[str, Any], root: dict[str, Any], depth: int) -> Any:
    if depth > _MAX_DEPTH:
        return None
    if "$ref" in node:
        return _sample(_resolve(root, node["$ref"]), root, depth + 1)
    if "const" in node:
        return node["const"]
    if node.get("enum"):
        return node["enum"][0]
    for key in ("anyOf", "oneOf", "allOf"):
        options = node.get(key)
        if options:
            non_null = [o for o in options if o.get("type") != "null"]
            return _sample((non_null or options)[0], root, depth + 1)

    kind = node.get("type")
    if isinstance(kind, list):
        kind = next((k for k in kind if k != "null"), "null")

    if kind == "object" or "properties" in node:
        return {name: _sample(sub, root, depth + 1) for name, sub in node.get("properties", {}).items()}
    if kind == "array" and node.get("prefixItems"):
        return [_sample(sub, root, depth + 1) for sub in node["prefixItems"]]
    if kind == "array":
        count = max(node.get("minItems", 1), 1)
        items = node.get("items") or {}
        return [_sample(items, root, depth + 1) for _ in range(count)]
    if kind == "string":
        return "mock"
    if kind in ("integer", "number"):
        value = 1 if kind == "integer" else 0.5
        value = max(value, node.get("minimum", value))
        return min(value, node.get("maximum", value))
    if kind == "boolean":
        return True
    return None
