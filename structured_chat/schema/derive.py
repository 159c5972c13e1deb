"""
Target type -> JSON Schema accepted by strict structured output.

The generated document goes through two transforms before it is sent:
- every `"format"` keyword is dropped (the provider rejects `int64`, `double`,
  `date-time`, ... annotations),
- titles are removed according to a `TitlePolicy`.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from enum import Enum
from typing import Any, Callable

from pydantic import PydanticUserError, TypeAdapter
from pydantic.json_schema import GenerateJsonSchema

from structured_chat.errors import ConfigError
from structured_chat.schema.models import Schema

logger = logging.getLogger(__name__)

JsonNode = dict[str, Any]

# Provider constraints on `json_schema.name`.
_NAME_INVALID = re.compile(r"[^A-Za-z0-9_-]+")
_NAME_MAX = 64
_DIGEST_HEX = 8
_READABLE_MAX = _NAME_MAX - _DIGEST_HEX - 1

# Keywords whose value is instance data or a tag->$ref table, never a sub-schema.
_DATA_KEYWORDS = frozenset({"const", "default", "discriminator", "enum", "examples"})
# Keywords whose value maps arbitrary names (field names, def names) to sub-schemas.
_NAMED_SCHEMA_KEYWORDS = frozenset({"properties", "patternProperties", "$defs", "definitions", "dependentSchemas"})


class TitlePolicy(str, Enum):
    KEEP = "keep"
    STRIP_ROOT = "strip_root"
    STRIP_ALL = "strip_all"


class StrictJsonSchema(GenerateJsonSchema):
    """Lists every field under `required`, defaulted ones included, as strict mode demands."""

    def field_is_required(self, field, total: bool) -> bool:
        return True


def qualified_name(target: Any) -> str:
    if isinstance(target, type):
        return f"{target.__module__}.{target.__qualname__}"
    # typing constructs: list[pkg.Item], typing.Optional[...], ...
    return repr(target)


def schema_name(target: Any) -> str:
    """
    Deterministic `^[A-Za-z0-9_-]+$` name for `target`.

    Separators and generic brackets collapse to `_`, which can make distinct
    qualified names read the same, so a short digest of the full name is appended.
    """
    qualname = qualified_name(target)
    readable = _NAME_INVALID.sub("_", qualname)
    readable = re.sub(r"_{2,}", "_", readable).strip("_") or "schema"
    digest = hashlib.blake2s(qualname.encode("utf-8"), digest_size=_DIGEST_HEX // 2).hexdigest()
    return f"{readable[:_READABLE_MAX]}-{digest}"


def walk_schema(node: Any, visit: Callable[[JsonNode], None]) -> None:
    """
    Call `visit` on every schema object under `node` (including `node`).

    Objects and arrays are descended generically, so `items`, `anyOf`, `$defs`
    and friends need no special casing. Name->schema maps such as `properties`
    are descended but not visited themselves: a field called "format" is a
    field, not a keyword. `visit` may mutate the node it receives.
    """
    if isinstance(node, list):
        for item in node:
            walk_schema(item, visit)
        return
    if not isinstance(node, dict):
        return

    visit(node)
    for key, value in list(node.items()):
        if key in _DATA_KEYWORDS:
            continue
        if key in _NAMED_SCHEMA_KEYWORDS and isinstance(value, dict):
            for sub in value.values():
                walk_schema(sub, visit)
        else:
            walk_schema(value, visit)


def strip_format(document: JsonNode) -> JsonNode:
    walk_schema(document, lambda n: n.pop("format", None))
    return document


def apply_title_policy(document: JsonNode, policy: TitlePolicy) -> JsonNode:
    if policy is TitlePolicy.STRIP_ROOT:
        document.pop("title", None)
    elif policy is TitlePolicy.STRIP_ALL:
        walk_schema(document, lambda n: n.pop("title", None))
    return document


def generate_json_schema(target: Any) -> JsonNode:
    """Plain pydantic JSON Schema for `target`, as an independent JSON document."""
    try:
        document = TypeAdapter(target).json_schema(mode="validation", schema_generator=StrictJsonSchema)
    except PydanticUserError as exc:
        raise ConfigError(f"cannot build a JSON Schema for {qualified_name(target)}: {exc}") from exc

    # Round-trip through text: proves the document is serializable and detaches
    # it from anything pydantic may cache.
    try:
        return json.loads(json.dumps(document))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"JSON Schema for {qualified_name(target)} is not serializable: {exc}") from exc


def derive_schema(target: Any, *, title_policy: TitlePolicy = TitlePolicy.STRIP_ROOT) -> Schema:
    """
    Build the strict `Schema` for `target`.

    Every field is listed as required, including fields with defaults: the model
    always sends them and validation accepts them. Other strict-mode rules
    (`additionalProperties: false` via `extra="forbid"`) are up to the target
    type; a violation comes back from the provider as an `UpstreamError`.
    """
    document = generate_json_schema(target)
    strip_format(document)
    apply_title_policy(document, title_policy)

    name = schema_name(target)
    logger.debug("derived schema %s (title_policy=%s)", name, title_policy.value)
    return Schema(name=name, schema=document, strict=True)
