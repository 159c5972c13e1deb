from __future__ import annotations

from structured_chat.config import Settings, get_settings
from structured_chat.errors import ConfigError

from .base import ChatBackend
from .mock import MockChatClient
from .openai_compat import ChatClient


def build_client(settings: Settings) -> ChatBackend:
    backend = settings.llm_backend
    if backend == "mock":
        return MockChatClient()
    if backend == "openai":
        return ChatClient(settings)
    raise ConfigError(f"unknown llm_backend={backend!r}, expected openai|mock")


_client: ChatBackend | None = None


def get_client() -> ChatBackend:
    """Process-wide client, built from `get_settings()` on first use."""
    global _client
    if _client is None:
        _client = build_client(get_settings())
    return _client


async def close_client() -> None:
    global _client
    if _client is not None:
        client, _client = _client, None
        await client.aclose()
