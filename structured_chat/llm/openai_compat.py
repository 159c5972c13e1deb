from __future__ import annotations

import logging
from typing import Sequence

import httpx
from pydantic import ValidationError

from structured_chat.config import Settings
from structured_chat.errors import ConfigError, ProtocolError, TransportError, UpstreamError
from structured_chat.schema.models import (
    CompletionRequest,
    CompletionResponse,
    Message,
    ResponseFormat,
    Schema,
)

logger = logging.getLogger(__name__)


class ChatClient:
    """
    OpenAI-compatible ChatCompletions client with strict structured output, via raw HTTP.

    One `complete()` call is one POST: no retries, no caching. The underlying
    `httpx.AsyncClient` is created on first use and then shared read-only by
    every in-flight call.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.url = f"{settings.base_url.rstrip('/')}/chat/completions"
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        # No await between the check and the assignment, so concurrent
        # coroutines on one loop cannot create two clients.
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.timeout_s),
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Release pooled connections. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def build_request(self, messages: Sequence[Message], schema: Schema) -> CompletionRequest:
        return CompletionRequest(
            model=self.settings.model,
            messages=list(messages),
            response_format=ResponseFormat(json_schema=schema),
        )

    async def complete(self, messages: Sequence[Message], schema: Schema) -> str:
        """Return `choices[0].message.content` as text; decoding it is up to the caller."""
        request = self.build_request(messages, schema)
        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }

        try:
            r = await self._get_client().post(self.url, json=request.to_payload(), headers=headers)
        except httpx.InvalidURL as exc:
            raise ConfigError(f"invalid endpoint {self.url!r}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"request to {self.url} failed: {exc!r}") from exc

        body = r.text
        if not r.is_success:
            logger.warning("[LLM] model=%s schema=%s status=%s", request.model, schema.name, r.status_code)
            raise UpstreamError(r.status_code, body)

        content = parse_envelope(body)

        chars_in = sum(len(m.content) for m in request.messages)
        logger.info(
            "[LLM] model=%s schema=%s chars_in=%d chars_out=%d",
            request.model,
            schema.name,
            chars_in,
            len(content),
        )
        return content


def parse_envelope(body: str) -> str:
    """First decoding level: the provider envelope around the assistant text."""
    try:
        envelope = CompletionResponse.model_validate_json(body)
    except ValidationError as exc:
        raise ProtocolError(f"malformed completion envelope: {exc}", body=body) from exc

    if not envelope.choices:
        raise ProtocolError("no completion returned", body=body)

    # Only the first choice is consulted.
    message = envelope.choices[0].message
    if message.content is None:
        if message.refusal:
            raise ProtocolError(f"model refused: {message.refusal}", body=body)
        raise ProtocolError("completion has no content", body=body)
    return message.content
