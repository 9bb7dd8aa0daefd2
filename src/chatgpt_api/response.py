"""Decoding of complete (non-streaming) responses."""

from __future__ import annotations

from pydantic import ValidationError

from chatgpt_api.errors import APIError, MalformedResponseError
from chatgpt_api.types import ChatCompletionResponseBody


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def ensure_success(status_code: int, body: str) -> None:
    """Raise :class:`APIError` for any non-2xx status."""
    if not is_success(status_code):
        raise APIError(body, status_code)


def decode_response(status_code: int, body: str) -> ChatCompletionResponseBody:
    """Validate a response and normalize message content.

    Messages sent back to the API must carry a content field, so a ``null``
    content (function call replies) is replaced by an empty string.
    """
    ensure_success(status_code, body)

    if not body or not body.strip():
        raise MalformedResponseError("Response body is empty.")
    try:
        response_body = ChatCompletionResponseBody.model_validate_json(body)
    except ValidationError as exc:
        raise MalformedResponseError(f"Response body could not be decoded: {body}") from exc

    if not response_body.choices:
        raise MalformedResponseError(f"Not found any choices in response body: {body}")

    for choice in response_body.choices:
        if choice.message.content is None:
            choice.message.content = ""

    return response_body
