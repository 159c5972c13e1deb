from .errors import (
    ConfigError,
    DecodeError,
    ProtocolError,
    StructuredChatError,
    TransportError,
    UpstreamError,
)
from .llm import ChatBackend, ChatClient, MockChatClient, build_client, get_client
from .query import query
from .schema import Message, Role, Schema, TitlePolicy, derive_schema
from .utils import decode_as

__all__ = [
    "ChatBackend",
    "ChatClient",
    "ConfigError",
    "DecodeError",
    "Message",
    "MockChatClient",
    "ProtocolError",
    "Role",
    "Schema",
    "StructuredChatError",
    "TitlePolicy",
    "TransportError",
    "UpstreamError",
    "build_client",
    "decode_as",
    "derive_schema",
    "get_client",
    "query",
]
