"""Cooperative cancellation for in-flight generation requests.

A run owns one token; every generation request it issues gets a child
token. Cancelling the run token cancels the children, and a request awaited
through `CancellationToken.run` is cancelled as soon as its token fires
rather than at its next chunk.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class GenerationCancelled(Exception):
    """Raised inside a run when its token has been cancelled."""


class CancellationToken:
    """A revocable handle on a run or on one generation request."""

    def __init__(self, parent: CancellationToken | None = None) -> None:
        self._event = asyncio.Event()
        self._children: list[CancellationToken] = []
        if parent is not None:
            parent._children.append(self)
            if parent.cancelled:
                self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancel this token and its children. Idempotent."""
        self._event.set()
        for child in self._children:
            child.cancel()
        self._children.clear()

    def child(self) -> CancellationToken:
        return CancellationToken(parent=self)

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise GenerationCancelled()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` as a task unless the token fires first.

        A result that is already available wins over a cancellation that
        arrived in the same loop iteration.

        Raises:
            GenerationCancelled: If the token fires before the awaitable
                completes; the task is cancelled and awaited in that case
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise GenerationCancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        raise GenerationCancelled()
