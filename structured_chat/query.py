from __future__ import annotations

from typing import Any, Sequence, TypeVar

from structured_chat.llm.base import ChatBackend
from structured_chat.schema.derive import TitlePolicy, derive_schema
from structured_chat.schema.models import Message
from structured_chat.utils.json_decode import decode_as

T = TypeVar("T")


async def query(
    messages: Sequence[Message],
    target: type[T] | Any,
    *,
    client: ChatBackend,
    title_policy: TitlePolicy = TitlePolicy.STRIP_ROOT,
) -> T:
    """Ask the model for a value of `target`: derive schema, complete, decode."""
    schema = derive_schema(target, title_policy=title_policy)
    content = await client.complete(messages, schema)
    return decode_as(target, content)
