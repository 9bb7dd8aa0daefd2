"""Wire models for the chat completion API."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

FunctionCallMode = Literal["auto", "none"]


class Role(str, Enum):
    """Author of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    FUNCTION = "function"


class Model(str, Enum):
    """Well-known chat model identifiers. Any model string is accepted."""

    TURBO = "gpt-3.5-turbo"
    TURBO_0613 = "gpt-3.5-turbo-0613"
    TURBO_16K = "gpt-3.5-turbo-16k"
    TURBO_16K_0613 = "gpt-3.5-turbo-16k-0613"
    FOUR = "gpt-4"
    FOUR_0613 = "gpt-4-0613"
    FOUR_32K = "gpt-4-32k"
    FOUR_32K_0613 = "gpt-4-32k-0613"


class FunctionCall(BaseModel):
    """Function invocation requested by the assistant."""

    name: str
    # JSON text as produced by the model, not guaranteed to be valid JSON
    arguments: str = ""


class Message(BaseModel):
    """Single chat message."""

    role: Role
    content: str | None = None
    name: str | None = None
    function_call: FunctionCall | None = None


class Function(BaseModel):
    """JSON-schema description of a function the model may call."""

    name: str
    description: str | None = None
    parameters: dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})


class FunctionCallSpecifying(BaseModel):
    """Forces the model to call the named function."""

    name: str


class RequestOptions(BaseModel):
    """Caller options for a chat completion request. ``None`` means unset."""

    model_config = ConfigDict(extra="forbid")

    model: str = Model.TURBO.value
    functions: list[Function] | None = None
    function_call: FunctionCallMode | None = None
    function_call_specifying: FunctionCallSpecifying | None = None
    temperature: float | None = None
    top_p: float | None = None
    n: int | None = Field(default=None, ge=1)
    stream: bool | None = None
    stop: list[str] | None = None
    max_tokens: int | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    logit_bias: dict[int, int] | None = None
    user: str | None = None

    @field_validator("model", mode="before")
    @classmethod
    def normalize_model(cls, value: Any) -> Any:
        return value.value if isinstance(value, Enum) else value


class ChatCompletionRequestBody(BaseModel):
    """Immutable request payload, serialized verbatim to the wire."""

    model_config = ConfigDict(frozen=True)

    model: str
    messages: list[Message]
    functions: list[Function] | None = None
    function_call: FunctionCallMode | FunctionCallSpecifying | None = None
    temperature: float | None = None
    top_p: float | None = None
    n: int | None = None
    stream: bool | None = None
    stop: list[str] | None = None
    max_tokens: int | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    logit_bias: dict[int, int] | None = None
    user: str | None = None

    @field_serializer("logit_bias")
    def _serialize_logit_bias(self, value: dict[int, int] | None) -> dict[str, int] | None:
        # JSON object keys are token ids as strings
        if value is None:
            return None
        return {str(token): bias for token, bias in value.items()}

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON payload with unset fields omitted."""
        return self.model_dump(mode="json", exclude_none=True)


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Choice(BaseModel):
    index: int = 0
    message: Message
    finish_reason: str | None = None


class ChatCompletionResponseBody(BaseModel):
    """Non-streaming chat completion response."""

    id: str | None = None
    object: str | None = None
    created: int | None = None
    model: str | None = None
    choices: list[Choice]
    usage: Usage | None = None

    @property
    def result_message(self) -> str:
        """Content of the first choice."""
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


class FunctionCallDelta(BaseModel):
    name: str | None = None
    arguments: str | None = None


class Delta(BaseModel):
    """Partial message fields carried by one stream chunk."""

    role: Role | None = None
    content: str | None = None
    function_call: FunctionCallDelta | None = None


class StreamChoice(BaseModel):
    index: int = 0
    delta: Delta = Field(default_factory=Delta)
    finish_reason: str | None = None


class ChatCompletionStreamResponseChunk(BaseModel):
    """One server-sent event frame of a streamed completion."""

    id: str | None = None
    object: str | None = None
    created: int | None = None
    model: str | None = None
    choices: list[StreamChoice]


class APIErrorBody(BaseModel):
    """Error object returned by the API under the ``error`` key."""

    message: str = ""
    type: str | None = None
    param: str | None = None
    code: str | int | None = None
