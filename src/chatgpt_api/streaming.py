"""Server-sent event decoding for streamed chat completions."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from types import TracebackType

from pydantic import ValidationError

from chatgpt_api.cancellation import CancellationToken
from chatgpt_api.errors import StreamDecodeError
from chatgpt_api.types import ChatCompletionStreamResponseChunk, FunctionCall, Message, Role

_DATA_PREFIX = "data:"
_DONE = "[DONE]"
_IGNORED_FIELDS = ("event:", "id:", "retry:")

_logger = logging.getLogger(__name__)


class ChunkStream(AsyncIterator[ChatCompletionStreamResponseChunk]):
    """Lazy, forward-only sequence of stream chunks.

    The ``close`` callback releases the underlying response. It runs exactly
    once, whichever way the stream ends: the ``[DONE]`` frame, end of input,
    a decode error, cancellation, or :meth:`aclose` (also via ``async with``),
    even when the stream was never iterated.
    """

    def __init__(
        self,
        lines: AsyncIterable[str],
        *,
        cancellation_token: CancellationToken | None = None,
        close: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._close = close
        self._released = False
        self._chunks = self._decode(lines, cancellation_token)

    def __aiter__(self) -> ChunkStream:
        return self

    async def __anext__(self) -> ChatCompletionStreamResponseChunk:
        return await self._chunks.__anext__()

    async def __aenter__(self) -> ChunkStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def closed(self) -> bool:
        return self._released

    async def aclose(self) -> None:
        """Stop decoding and release the underlying response."""
        try:
            await self._chunks.aclose()
        finally:
            await self._release()

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._close is not None:
            await self._close()

    async def _decode(
        self,
        lines: AsyncIterable[str],
        cancellation_token: CancellationToken | None,
    ) -> AsyncIterator[ChatCompletionStreamResponseChunk]:
        iterator = lines.__aiter__()
        try:
            while True:
                if cancellation_token is not None:
                    cancellation_token.raise_if_cancellation_requested()
                try:
                    line = await iterator.__anext__()
                except StopAsyncIteration:
                    return

                _logger.debug("Response delta: %s", line)
                data = _frame_data(line)
                if data is None:
                    continue
                if data == _DONE:
                    return
                yield _parse_chunk(data)
        finally:
            try:
                aclose = getattr(iterator, "aclose", None)
                if aclose is not None:
                    await aclose()
            finally:
                await self._release()


def decode_stream(
    lines: AsyncIterable[str],
    *,
    cancellation_token: CancellationToken | None = None,
    close: Callable[[], Awaitable[None]] | None = None,
) -> ChunkStream:
    """Decode ``data:`` frames from an iterable of text lines."""
    return ChunkStream(lines, cancellation_token=cancellation_token, close=close)


def _frame_data(line: str) -> str | None:
    """Return the payload of an event line, or ``None`` if it carries none."""
    line = line.strip()
    if not line or line.startswith(":") or line.startswith(_IGNORED_FIELDS):
        return None
    if line.startswith(_DATA_PREFIX):
        line = line[len(_DATA_PREFIX) :].strip()
    return line or None


def _parse_chunk(data: str) -> ChatCompletionStreamResponseChunk:
    try:
        return ChatCompletionStreamResponseChunk.model_validate_json(data)
    except ValidationError as exc:
        raise StreamDecodeError(f"Response delta could not be decoded: {data}") from exc


class ChunkAccumulator:
    """Reassembles streamed deltas into complete messages, one per choice.

    Streamed replies are never recorded into memory by the connection; feed
    the chunks through an accumulator and add :meth:`messages` yourself.
    """

    def __init__(self) -> None:
        self._roles: dict[int, Role] = {}
        self._contents: dict[int, list[str]] = {}
        self._function_names: dict[int, str] = {}
        self._function_arguments: dict[int, list[str]] = {}
        self.finish_reasons: dict[int, str] = {}

    def add(self, chunk: ChatCompletionStreamResponseChunk) -> None:
        for choice in chunk.choices:
            index = choice.index
            delta = choice.delta
            self._roles.setdefault(index, Role.ASSISTANT)
            self._contents.setdefault(index, [])
            if delta.role is not None:
                self._roles[index] = delta.role
            if delta.content:
                self._contents[index].append(delta.content)
            if delta.function_call is not None:
                if delta.function_call.name:
                    self._function_names[index] = delta.function_call.name
                if delta.function_call.arguments:
                    self._function_arguments.setdefault(index, []).append(
                        delta.function_call.arguments
                    )
            if choice.finish_reason is not None:
                self.finish_reasons[index] = choice.finish_reason

    def messages(self) -> list[Message]:
        """Messages accumulated so far, ordered by choice index."""
        result: list[Message] = []
        for index in sorted(self._roles):
            function_call = None
            if index in self._function_names:
                function_call = FunctionCall(
                    name=self._function_names[index],
                    arguments="".join(self._function_arguments.get(index, [])),
                )
            result.append(
                Message(
                    role=self._roles[index],
                    content="".join(self._contents[index]),
                    function_call=function_call,
                )
            )
        return result
