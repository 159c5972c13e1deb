from __future__ import annotations

from typing import Protocol, Sequence

from structured_chat.schema.models import Message, Schema


class ChatBackend(Protocol):
    async def complete(self, messages: Sequence[Message], schema: Schema) -> str:
        """Return the raw assistant text, constrained by `schema`."""
        raise NotImplementedError

    async def aclose(self) -> None:
        raise NotImplementedError
