"""Conversation memory interfaces and in-process implementations.

Memories are not safe for concurrent mutation. When one memory is shared by
calls running concurrently, the caller must serialize access to it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from chatgpt_api.types import Message, Role


class ChatMemory(ABC):
    """Ordered, append-only record of a conversation."""

    @property
    @abstractmethod
    def messages(self) -> list[Message]:
        """Return a snapshot of the conversation in insertion order."""
        raise NotImplementedError

    @abstractmethod
    async def add_message(self, message: Message) -> None:
        """Append a message to the conversation."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        """Forget every message."""
        raise NotImplementedError


class SimpleChatMemory(ChatMemory):
    """Unbounded in-memory conversation."""

    def __init__(self, messages: Iterable[Message] | None = None) -> None:
        self._messages: list[Message] = list(messages or ())

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    async def add_message(self, message: Message) -> None:
        self._messages.append(message)

    def clear(self) -> None:
        self._messages.clear()


class FiniteQueueChatMemory(ChatMemory):
    """Keeps system messages plus the latest ``max_messages`` other messages."""

    def __init__(self, max_messages: int) -> None:
        if max_messages < 1:
            raise ValueError("max_messages must be positive")
        self._max_messages = max_messages
        self._messages: list[Message] = []

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    async def add_message(self, message: Message) -> None:
        self._messages.append(message)
        self._trim()

    def clear(self) -> None:
        self._messages.clear()

    def _trim(self) -> None:
        conversational = sum(1 for m in self._messages if m.role != Role.SYSTEM)
        overflow = conversational - self._max_messages
        if overflow <= 0:
            return
        kept: list[Message] = []
        for message in self._messages:
            if overflow > 0 and message.role != Role.SYSTEM:
                overflow -= 1
                continue
            kept.append(message)
        self._messages = kept
