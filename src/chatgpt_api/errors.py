"""Package specific exception hierarchy."""

from __future__ import annotations

import json

from pydantic import ValidationError

from chatgpt_api.types import APIErrorBody


class ChatGPTAPIError(Exception):
    """Base exception for chatgpt_api package."""


class ConfigurationError(ChatGPTAPIError, ValueError):
    """Raised when the caller supplies an invalid combination of options."""


class APIError(ChatGPTAPIError):
    """Represents a non-success HTTP response from the chat completion API."""

    def __init__(self, raw_body: str, status_code: int) -> None:
        super().__init__(f"API error (status {status_code}): {raw_body}")
        self.raw_body = raw_body
        self.status_code = status_code

    @property
    def cause(self) -> BaseException | None:
        """Exception this error was raised from, if any."""
        return self.__cause__

    @property
    def error(self) -> APIErrorBody | None:
        """Structured error payload, if the body carries one."""
        try:
            data = json.loads(self.raw_body)
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict) or not isinstance(data.get("error"), dict):
            return None
        try:
            return APIErrorBody.model_validate(data["error"])
        except ValidationError:
            return None


class MalformedResponseError(ChatGPTAPIError):
    """Raised when a success response carries an unusable body."""


class StreamDecodeError(MalformedResponseError):
    """Raised when a streamed event frame cannot be decoded."""


class OperationCancelledError(ChatGPTAPIError):
    """Raised when a cancellation token is observed during a call."""

    def __init__(self) -> None:
        super().__init__("Operation was cancelled.")
