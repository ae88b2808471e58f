"""Cooperative cancellation tokens for registry calls.

A token is owned by the caller. Passing it to a client operation binds every
transport call made by that operation (including follow-up fetches) to it;
``cancel()`` aborts whatever is in flight at its next await point.
"""

from __future__ import annotations

import asyncio
from typing import Optional


class CancellationToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
