"""Subscription handle entity."""

from typing import Awaitable, Callable


class SubscriptionHandle:
    """Caller-side handle for one change subscription listener.

    Awaiting the handle itself (``await handle()``) is equivalent to
    ``await handle.unsubscribe()``. Unsubscribing is idempotent.
    """

    def __init__(self, signature: str, unsubscribe_fn: Callable[[], Awaitable[None]]):
        self._signature = signature
        self._unsubscribe_fn = unsubscribe_fn
        self._active = True

    @property
    def signature(self) -> str:
        return self._signature

    @property
    def active(self) -> bool:
        return self._active

    async def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        await self._unsubscribe_fn()

    async def __call__(self) -> None:
        await self.unsubscribe()

    def __repr__(self) -> str:
        state = "active" if self._active else "closed"
        return f"SubscriptionHandle(signature={self._signature!r}, {state})"
