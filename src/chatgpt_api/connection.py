"""Connection to the OpenAI chat completion API."""

from __future__ import annotations

import logging

import httpx

from chatgpt_api.cancellation import CancellationToken, run_cancellable
from chatgpt_api.errors import APIError, ConfigurationError
from chatgpt_api.memory import ChatMemory, SimpleChatMemory
from chatgpt_api.request import build_request_body, validate_options
from chatgpt_api.response import decode_response, is_success
from chatgpt_api.streaming import ChunkStream, decode_stream
from chatgpt_api.types import (
    ChatCompletionRequestBody,
    ChatCompletionResponseBody,
    Message,
    RequestOptions,
    Role,
)

_DEFAULT_BASE_URL = "https://api.openai.com"
_CHAT_PATH = "/v1/chat/completions"
_DEFAULT_TIMEOUT_S = 60.0


class ChatCompletionAPIConnection:
    """Binds the chat completion API to a conversation memory.

    Each call records the user message into memory before sending the whole
    conversation. :meth:`complete_chat` also records the assistant replies;
    :meth:`complete_chat_as_stream` does not, since the reply only exists as
    deltas (see :class:`chatgpt_api.streaming.ChunkAccumulator`).

    The memory is not synchronized. Calls sharing one memory must not run
    concurrently.
    """

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        *,
        api_key: str,
        chat_memory: ChatMemory | None = None,
        prompt: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
    ) -> None:
        if not api_key:
            raise ConfigurationError("api_key must be set.")

        self._chat_memory = chat_memory if chat_memory is not None else SimpleChatMemory()
        # recorded ahead of the first user message
        self._pending_prompt = Message(role=Role.SYSTEM, content=prompt) if prompt else None
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_s)
        self._url = (base_url or _DEFAULT_BASE_URL).rstrip("/") + _CHAT_PATH
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @property
    def chat_memory(self) -> ChatMemory:
        return self._chat_memory

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this connection created it."""
        if self._owns_client:
            await self._client.aclose()

    async def complete_chat(
        self,
        content: str,
        cancellation_token: CancellationToken | None = None,
        options: RequestOptions | None = None,
    ) -> ChatCompletionResponseBody:
        """Send ``content`` and return the complete response.

        Every returned choice is recorded into memory in order. On failure the
        memory keeps the user message without any reply.
        """
        options = options or RequestOptions()
        if cancellation_token is not None:
            cancellation_token.raise_if_cancellation_requested()
        if options.stream:
            raise ConfigurationError("stream=True requires complete_chat_as_stream.")
        validate_options(options)

        await self._record_user_message(content)
        request_body = build_request_body(self._chat_memory.messages, options)

        response = await run_cancellable(
            self._client.send(self._build_request(request_body), stream=True),
            cancellation_token,
        )
        try:
            await run_cancellable(response.aread(), cancellation_token)
        finally:
            await response.aclose()

        self._logger.debug("Status code: %s", response.status_code)
        self._logger.debug("Response body: %s", response.text)

        if not is_success(response.status_code):
            _raise_api_error(response)
        response_body = decode_response(response.status_code, response.text)
        for choice in response_body.choices:
            await self._chat_memory.add_message(choice.message)
        return response_body

    async def complete_chat_as_stream(
        self,
        content: str,
        cancellation_token: CancellationToken | None = None,
        options: RequestOptions | None = None,
    ) -> ChunkStream:
        """Send ``content`` and return the response as a stream of chunks.

        The request is always sent with ``stream`` enabled. A non-success
        status raises :class:`APIError` before any chunk is returned. Streamed
        replies are not recorded into memory. Consume the stream with
        ``async with`` (or call ``aclose``) to release the response early.
        """
        options = options or RequestOptions()
        if cancellation_token is not None:
            cancellation_token.raise_if_cancellation_requested()
        validate_options(options)

        await self._record_user_message(content)
        request_body = build_request_body(self._chat_memory.messages, options, stream=True)

        response = await run_cancellable(
            self._client.send(self._build_request(request_body), stream=True),
            cancellation_token,
        )
        self._logger.debug("Status code: %s", response.status_code)

        if not is_success(response.status_code):
            try:
                await run_cancellable(response.aread(), cancellation_token)
            finally:
                await response.aclose()
            self._logger.debug("Response body: %s", response.text)
            _raise_api_error(response)

        return decode_stream(
            response.aiter_lines(),
            cancellation_token=cancellation_token,
            close=response.aclose,
        )

    async def _record_user_message(self, content: str) -> None:
        if self._pending_prompt is not None:
            prompt, self._pending_prompt = self._pending_prompt, None
            await self._chat_memory.add_message(prompt)
        await self._chat_memory.add_message(Message(role=Role.USER, content=content))

    def _build_request(self, request_body: ChatCompletionRequestBody) -> httpx.Request:
        payload = request_body.to_payload()
        self._logger.debug("Request body: %s", payload)
        return self._client.build_request("POST", self._url, headers=self._headers, json=payload)


def _raise_api_error(response: httpx.Response) -> None:
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise APIError(response.text, response.status_code) from exc
    raise APIError(response.text, response.status_code)
