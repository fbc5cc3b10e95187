"""Lazily-initialized shared awaitable.

The first caller starts the factory; every later caller awaits the same task.
A failed initialization is forgotten so the next caller retries.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class SharedFuture(Generic[T]):
    def __init__(self) -> None:
        self._task: Optional[asyncio.Task] = None

    @property
    def started(self) -> bool:
        return self._task is not None

    async def get(self, factory: Callable[[], Awaitable[T]]) -> T:
        if self._task is None:
            self._task = asyncio.ensure_future(factory())
        task = self._task
        try:
            # shield: one cancelled waiter must not cancel the shared work.
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            raise
        except Exception:
            if self._task is task:
                self._task = None
            raise

    def reset(self) -> None:
        """Forget the stored task. Intended for test harnesses."""

        self._task = None
