"""Cooperative cancellation shared by every suspension point of a call."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable
from typing import TypeVar

from chatgpt_api.errors import OperationCancelledError

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal.

    A token may be shared by several calls; once cancelled it stays cancelled.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def raise_if_cancellation_requested(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError()

    async def wait(self) -> None:
        """Suspend until cancellation is requested."""
        await self._event.wait()


async def run_cancellable(awaitable: Awaitable[T], token: CancellationToken | None) -> T:
    """Await ``awaitable`` unless ``token`` is cancelled first.

    On cancellation the pending operation is cancelled and awaited before
    :class:`OperationCancelledError` is raised, so its resources are released.
    """
    if token is None:
        return await awaitable
    if token.is_cancellation_requested:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise OperationCancelledError()

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task.done():
        return task.result()

    task.cancel()
    try:
        # the operation may still finish before it observes the cancel
        return await task
    except asyncio.CancelledError:
        raise OperationCancelledError() from None
