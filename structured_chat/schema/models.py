from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class Schema:
    """Named JSON Schema sent as `response_format.json_schema`."""

    name: str
    schema: dict[str, Any]
    strict: bool = True


class Role(str, Enum):
    DEVELOPER = "developer"
    SYSTEM = "system"  # still used by most OpenAI-compatible gateways
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def developer(cls, content: str) -> "Message":
        return cls(role=Role.DEVELOPER, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)


class ResponseFormat(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["json_schema"] = "json_schema"
    json_schema: Schema


class CompletionRequest(BaseModel):
    """Body of one POST to /chat/completions."""

    model_config = ConfigDict(frozen=True)

    model: str
    messages: list[Message]
    response_format: ResponseFormat

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# Response envelope. Only what we read is declared; other provider fields are ignored.


class ResponseMessage(BaseModel):
    content: str | None = None
    refusal: str | None = None


class Choice(BaseModel):
    message: ResponseMessage


class CompletionResponse(BaseModel):
    choices: list[Choice]
