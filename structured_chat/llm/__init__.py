from .base import ChatBackend
from .factory import build_client, close_client, get_client
from .mock import MockChatClient
from .openai_compat import ChatClient, parse_envelope

__all__ = [
    "ChatBackend",
    "ChatClient",
    "MockChatClient",
    "build_client",
    "close_client",
    "get_client",
    "parse_envelope",
]
