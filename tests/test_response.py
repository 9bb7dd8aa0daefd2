import json
import unittest

from chatgpt_api.errors import APIError, MalformedResponseError
from chatgpt_api.response import decode_response
from chatgpt_api.types import Role


def _body(*messages: dict) -> str:
    return json.dumps(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 1,
            "model": "gpt-3.5-turbo",
            "choices": [
                {"index": i, "message": m, "finish_reason": "stop"} for i, m in enumerate(messages)
            ],
            "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
        }
    )


class ResponseDecoderTests(unittest.TestCase):
    def test_success_returns_body(self) -> None:
        body = decode_response(200, _body({"role": "assistant", "content": "hello"}))
        self.assertEqual(len(body.choices), 1)
        self.assertEqual(body.choices[0].message.role, Role.ASSISTANT)
        self.assertEqual(body.result_message, "hello")
        self.assertEqual(body.usage.total_tokens, 5)

    def test_null_content_becomes_empty_string(self) -> None:
        body = decode_response(
            200,
            _body(
                {
                    "role": "assistant",
                    "content": None,
                    "function_call": {"name": "lookup", "arguments": "{}"},
                }
            ),
        )
        message = body.choices[0].message
        self.assertEqual(message.content, "")
        self.assertEqual(message.function_call.name, "lookup")

    def test_empty_choices_is_malformed(self) -> None:
        with self.assertRaises(MalformedResponseError):
            decode_response(200, json.dumps({"choices": []}))

    def test_empty_or_unparsable_body_is_malformed(self) -> None:
        for raw in ("", "   ", "not json", json.dumps({"id": "x"})):
            with self.subTest(raw=raw):
                with self.assertRaises(MalformedResponseError):
                    decode_response(200, raw)

    def test_non_success_is_api_error(self) -> None:
        raw = json.dumps({"error": {"message": "Rate limit reached", "type": "requests"}})
        with self.assertRaises(APIError) as ctx:
            decode_response(429, raw)
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.raw_body, raw)
        self.assertEqual(ctx.exception.error.message, "Rate limit reached")

    def test_non_success_with_any_body_is_api_error(self) -> None:
        for raw in ("", "<html>bad gateway</html>", _body({"role": "assistant", "content": "x"})):
            with self.subTest(raw=raw):
                with self.assertRaises(APIError) as ctx:
                    decode_response(502, raw)
                self.assertIsNone(ctx.exception.error)


if __name__ == "__main__":
    unittest.main()
