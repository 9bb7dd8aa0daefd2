import asyncio
import os

from chatgpt_api.connection import ChatCompletionAPIConnection
from chatgpt_api.errors import APIError
from chatgpt_api.streaming import ChunkAccumulator
from chatgpt_api.types import Model, RequestOptions


async def main() -> None:
    connection = ChatCompletionAPIConnection(
        api_key=os.environ.get("OPENAI_API_KEY", "DUMMY"),
        prompt="You are a terse assistant.",
    )
    options = RequestOptions(model=Model.TURBO, temperature=0.2)

    try:
        response = await connection.complete_chat("Say hello.", options=options)
        print("Reply:", response.result_message)

        accumulator = ChunkAccumulator()
        async with await connection.complete_chat_as_stream("Count to five.", options=options) as stream:
            async for chunk in stream:
                accumulator.add(chunk)
                for choice in chunk.choices:
                    print(choice.delta.content or "", end="", flush=True)
        print()

        # streamed replies are recorded by the caller
        for message in accumulator.messages():
            await connection.chat_memory.add_message(message)
    except APIError as e:
        print("Expected error:", e.status_code, e.error.message if e.error else e.raw_body)
    finally:
        await connection.aclose()


if __name__ == "__main__":
    asyncio.run(main())
