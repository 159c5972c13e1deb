from .derive import TitlePolicy, derive_schema, schema_name, strip_format, walk_schema
from .models import CompletionRequest, CompletionResponse, Message, ResponseFormat, Role, Schema

__all__ = [
    "CompletionRequest",
    "CompletionResponse",
    "Message",
    "ResponseFormat",
    "Role",
    "Schema",
    "TitlePolicy",
    "derive_schema",
    "schema_name",
    "strip_format",
    "walk_schema",
]
