from __future__ import annotations

import re
from datetime import datetime
from typing import Generic, Literal, TypeVar, Union
from uuid import UUID

import pytest
from pydantic import BaseModel, ConfigDict, Field

from structured_chat.errors import ConfigError
from structured_chat.schema import TitlePolicy, derive_schema, schema_name, walk_schema
from structured_chat.utils import decode_as

NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")

T = TypeVar("T")


class SimpleResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    summary: str = Field(description="Summary of the text")
    tone: str = Field(description="Tone of the text")
    word_count: int = Field(description="Number of words in the text")
    flair: float = Field(description="Flair from 0 to 1")


class NestedResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    responses: list[SimpleResponse] = Field(description="A list of responses to the message")


class Event(BaseModel):
    id: UUID
    at: datetime
    score: float


class Timeline(BaseModel):
    title: str
    format: str  # a field, not the keyword
    events: list[Event]
    latest: Event | None


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int


class Outer:
    class Inner(BaseModel):
        value: int


def _nodes_with_key(document, key: str) -> list[dict]:
    """Independent walker: every schema object that carries `key` as a keyword."""
    found = []

    def visit(node, is_schema: bool):
        if isinstance(node, list):
            for item in node:
                visit(item, True)
            return
        if not isinstance(node, dict):
            return
        if is_schema and key in node:
            found.append(node)
        for k, v in node.items():
            if k in ("properties", "$defs") and isinstance(v, dict):
                for sub in v.values():
                    visit(sub, True)
            elif k not in ("enum", "const", "default", "examples"):
                visit(v, True)

    visit(document, True)
    return found


@pytest.mark.parametrize(
    "target",
    [SimpleResponse, NestedResponse, Timeline, Page[SimpleResponse], Page[Event], Outer.Inner, list[SimpleResponse]],
)
def test_name_is_provider_safe(target):
    name = schema_name(target)
    assert NAME_RE.match(name), name
    assert len(name) <= 64


def test_name_is_deterministic():
    assert schema_name(SimpleResponse) == schema_name(SimpleResponse)
    assert derive_schema(Page[Event]).name == derive_schema(Page[Event]).name


def test_name_readable_part_comes_from_qualified_name():
    assert schema_name(SimpleResponse).startswith(f"{__name__.replace('.', '_')}_SimpleResponse-")
    assert "Outer_Inner-" in schema_name(Outer.Inner)


def test_generic_parameters_give_distinct_names():
    assert schema_name(Page[SimpleResponse]) != schema_name(Page[Event])


def test_sanitized_lookalikes_do_not_collide():
    a = type("Thing", (), {"__module__": "pkg.a_b"})
    b = type("b_Thing", (), {"__module__": "pkg.a"})
    assert schema_name(a).split("-")[0] == schema_name(b).split("-")[0]
    assert schema_name(a) != schema_name(b)


def test_very_long_names_are_truncated():
    long_mod = "pkg." + ".".join(["segment"] * 20)
    cls = type("VeryLongTypeName", (), {"__module__": long_mod})
    name = schema_name(cls)
    assert len(name) == 64
    assert NAME_RE.match(name)


def test_strict_is_always_true():
    assert derive_schema(SimpleResponse).strict is True
    assert derive_schema(NestedResponse, title_policy=TitlePolicy.KEEP).strict is True


def test_format_is_removed_everywhere_including_defs():
    schema = derive_schema(Timeline, title_policy=TitlePolicy.KEEP).schema
    # the raw pydantic schema does carry formats (uuid, date-time) inside $defs
    assert "$defs" in schema and "Event" in schema["$defs"]
    assert _nodes_with_key(schema, "format") == []


def test_field_named_format_is_kept():
    schema = derive_schema(Timeline).schema
    assert "format" in schema["properties"]
    assert "format" in schema["required"]


def test_title_policy_strip_root_is_default():
    schema = derive_schema(NestedResponse).schema
    assert "title" not in schema
    assert schema["properties"]["responses"]["title"] == "Responses"
    assert schema["$defs"]["SimpleResponse"]["title"] == "SimpleResponse"


def test_title_policy_keep():
    schema = derive_schema(SimpleResponse, title_policy=TitlePolicy.KEEP).schema
    assert schema["title"] == "SimpleResponse"


def test_title_policy_strip_all():
    schema = derive_schema(Timeline, title_policy=TitlePolicy.STRIP_ALL).schema
    assert _nodes_with_key(schema, "title") == []
    # field literally named "title" survives
    assert "title" in schema["properties"]


def test_descriptions_and_required_fields_are_kept():
    schema = derive_schema(SimpleResponse).schema
    assert set(schema["required"]) == set(SimpleResponse.model_fields)
    assert schema["properties"]["flair"]["description"] == "Flair from 0 to 1"
    assert schema["additionalProperties"] is False


def test_nested_list_uses_ref_into_defs():
    schema = derive_schema(NestedResponse).schema
    items = schema["properties"]["responses"]["items"]
    assert items == {"$ref": "#/$defs/SimpleResponse"}
    assert set(schema["$defs"]["SimpleResponse"]["required"]) == {"summary", "tone", "word_count", "flair"}


def test_document_valid_for_schema_decodes():
    doc = '{"summary": "greeting", "tone": "friendly", "word_count": 2, "flair": 0.5}'
    value = decode_as(SimpleResponse, doc)
    assert value.word_count == 2


def test_walk_schema_visits_combinators():
    document = {
        "anyOf": [{"type": "string", "format": "email"}, {"type": "null"}],
        "items": [{"type": "integer", "format": "int64"}],
        "not": {"format": "uuid"},
        "default": {"format": "data, not a schema"},
    }
    seen = []
    walk_schema(document, seen.append)
    assert len(seen) == 5
    walk_schema(document, lambda n: n.pop("format", None))
    assert document["anyOf"][0] == {"type": "string"}
    assert document["items"][0] == {"type": "integer"}
    assert document["not"] == {}
    assert document["default"] == {"format": "data, not a schema"}


def test_derived_schema_is_independent_copy():
    first = derive_schema(SimpleResponse)
    first.schema["properties"].clear()
    assert derive_schema(SimpleResponse).schema["properties"]


class Opaque:
    pass


class HoldsOpaque(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    thing: Opaque


def test_undescribable_type_is_config_error():
    with pytest.raises(ConfigError):
        derive_schema(HoldsOpaque)


class FormatOption(BaseModel):
    kind: Literal["format"]
    pattern: str


class TitleOption(BaseModel):
    kind: Literal["title"]
    text: str


class Holder(BaseModel):
    option: Union[FormatOption, TitleOption] = Field(discriminator="kind")


@pytest.mark.parametrize("policy", list(TitlePolicy))
def test_discriminator_mapping_survives_transforms(policy):
    schema = derive_schema(Holder, title_policy=policy).schema
    mapping = schema["properties"]["option"]["discriminator"]["mapping"]
    assert mapping == {"format": "#/$defs/FormatOption", "title": "#/$defs/TitleOption"}
    assert schema["$defs"]["FormatOption"]["properties"]["kind"].get("const") == "format"


class WithDefault(BaseModel):
    x: int = 0
    label: str = "none"
    note: Union[str, None] = None


def test_defaulted_fields_are_required():
    schema = derive_schema(WithDefault).schema
    assert set(schema["required"]) == {"x", "label", "note"}
    assert decode_as(WithDefault, '{"x": 3, "label": "a", "note": null}') == WithDefault(x=3, label="a")
