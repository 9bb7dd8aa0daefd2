"""Request body construction."""

from __future__ import annotations

from collections.abc import Sequence

from chatgpt_api.errors import ConfigurationError
from chatgpt_api.types import ChatCompletionRequestBody, Message, RequestOptions


def validate_options(options: RequestOptions) -> None:
    """Fail fast on option combinations the API cannot accept."""

    if options.function_call is not None and options.function_call_specifying is not None:
        raise ConfigurationError(
            "You can use only one of function_call and function_call_specifying."
        )


def _with_content(message: Message) -> Message:
    # every message sent must carry a content field, even function call replies
    if message.content is not None:
        return message
    return message.model_copy(update={"content": ""})


def build_request_body(
    messages: Sequence[Message],
    options: RequestOptions,
    *,
    stream: bool | None = None,
) -> ChatCompletionRequestBody:
    """Build the request payload from a memory snapshot and caller options.

    ``messages`` must already contain the new user message. Options left unset
    stay unset so the API applies its own defaults. Passing ``stream=True``
    forces streaming regardless of ``options.stream``.
    """
    validate_options(options)

    return ChatCompletionRequestBody(
        model=options.model,
        messages=[_with_content(m) for m in messages],
        functions=options.functions,
        function_call=options.function_call_specifying or options.function_call,
        temperature=options.temperature,
        top_p=options.top_p,
        n=options.n,
        stream=True if stream else options.stream,
        stop=options.stop,
        max_tokens=options.max_tokens,
        presence_penalty=options.presence_penalty,
        frequency_penalty=options.frequency_penalty,
        logit_bias=options.logit_bias,
        user=options.user,
    )
