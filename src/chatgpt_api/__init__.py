"""Async binding for the OpenAI chat completion API."""

from .cancellation import CancellationToken
from .connection import ChatCompletionAPIConnection
from .errors import (
    APIError,
    ChatGPTAPIError,
    ConfigurationError,
    MalformedResponseError,
    OperationCancelledError,
    StreamDecodeError,
)
from .memory import ChatMemory, FiniteQueueChatMemory, SimpleChatMemory
from .streaming import ChunkAccumulator, ChunkStream
from .types import (
    ChatCompletionResponseBody,
    ChatCompletionStreamResponseChunk,
    Function,
    FunctionCall,
    FunctionCallSpecifying,
    Message,
    Model,
    RequestOptions,
    Role,
)

__all__ = [
    "APIError",
    "CancellationToken",
    "ChatCompletionAPIConnection",
    "ChatCompletionResponseBody",
    "ChatCompletionStreamResponseChunk",
    "ChatGPTAPIError",
    "ChatMemory",
    "ChunkAccumulator",
    "ChunkStream",
    "ConfigurationError",
    "FiniteQueueChatMemory",
    "Function",
    "FunctionCall",
    "FunctionCallSpecifying",
    "MalformedResponseError",
    "Message",
    "Model",
    "OperationCancelledError",
    "RequestOptions",
    "Role",
    "SimpleChatMemory",
    "StreamDecodeError",
]
