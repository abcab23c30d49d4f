"""Subscription registry.

Keeps one upstream change channel per distinct subscription signature
(table + filters). Further subscribers with an equivalent spec join the
existing channel as extra listeners instead of opening a new one; the
channel is closed when its last listener unsubscribes.

Per-signature lifecycle: Unregistered -> Active -> Unregistered.
"""

import asyncio
import functools
import inspect
import itertools
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Union

from ....core.exceptions import EnrichmentDegraded, SubscriptionFailed
from ...cache.entities import CacheStore, derive_signature
from ...data_access.entities import ChangeChannel, ChangeEvent, QuerySpec, RemoteStore
from ...text_analysis.services import RecordEnricher
from ..entities.subscription_handle import SubscriptionHandle

logger = logging.getLogger(__name__)

SubscriptionCallback = Callable[[ChangeEvent], Union[None, Awaitable[None]]]


@dataclass(eq=False)
class _Registration:
    signature: str
    table: str
    channel: Optional[ChangeChannel] = None
    listeners: Dict[int, SubscriptionCallback] = field(default_factory=dict)


class SubscriptionRegistry:
    """Deduplicating registry of upstream change subscriptions."""

    def __init__(
        self,
        store: RemoteStore,
        cache: CacheStore,
        enricher: Optional[RecordEnricher] = None,
        open_timeout: float = 10.0,
    ):
        self._store = store
        self._cache = cache
        self._enricher = enricher
        self._open_timeout = open_timeout

        self._registrations: Dict[str, _Registration] = {}
        self._lock = asyncio.Lock()
        self._listener_ids = itertools.count(1)
        self._duplicates_blocked = 0

    @property
    def active_subscriptions(self) -> int:
        """Number of live upstream channels."""
        return len(self._registrations)

    @property
    def listener_count(self) -> int:
        return sum(len(r.listeners) for r in self._registrations.values())

    @property
    def duplicates_blocked(self) -> int:
        return self._duplicates_blocked

    def reset_metrics(self) -> None:
        self._duplicates_blocked = 0

    def is_active(self, signature: str) -> bool:
        return signature in self._registrations

    async def subscribe(self, spec: QuerySpec, callback: SubscriptionCallback) -> SubscriptionHandle:
        """Subscribe ``callback`` to row changes matching ``spec``.

        Raises:
            SubscriptionFailed: the upstream channel could not be opened
        """
        signature = derive_signature(spec)

        async with self._lock:
            registration = self._registrations.get(signature)
            if registration is not None:
                self._duplicates_blocked += 1
                logger.warning(f"Duplicate subscription detected for {signature}; reusing upstream channel")
                return self._attach(registration, callback)

            # Registered before opening so events delivered during the open are dispatched
            registration = _Registration(signature=signature, table=spec.table)
            handle = self._attach(registration, callback)
            self._registrations[signature] = registration
            handler = functools.partial(self._dispatch, registration)
            try:
                registration.channel = await asyncio.wait_for(
                    self._store.open_change_channel(spec.table, spec.filters, handler),
                    timeout=self._open_timeout,
                )
            except Exception as e:
                logger.error(f"Failed to open change channel for {spec.table}: {e}")
                raise SubscriptionFailed(spec.table, e) from e
            finally:
                if registration.channel is None:
                    self._registrations.pop(signature, None)
                    registration.listeners.clear()

            logger.info(f"Subscription opened on {spec.table} ({signature})")
            return handle

    async def close_all(self) -> None:
        """Close every upstream channel and drop all listeners."""
        async with self._lock:
            registrations = list(self._registrations.values())
            self._registrations.clear()
            for registration in registrations:
                registration.listeners.clear()

        for registration in registrations:
            await self._close_channel(registration)

    def _attach(self, registration: _Registration, callback: SubscriptionCallback) -> SubscriptionHandle:
        listener_id = next(self._listener_ids)
        registration.listeners[listener_id] = callback
        return SubscriptionHandle(
            registration.signature,
            functools.partial(self._detach, registration, listener_id),
        )

    async def _detach(self, registration: _Registration, listener_id: int) -> None:
        async with self._lock:
            if registration.listeners.pop(listener_id, None) is None:
                return
            if registration.listeners:
                return
            if self._registrations.get(registration.signature) is registration:
                del self._registrations[registration.signature]

        await self._close_channel(registration)
        logger.info(f"Subscription closed on {registration.table} ({registration.signature})")

    async def _close_channel(self, registration: _Registration) -> None:
        if registration.channel is None:
            return
        try:
            await self._store.close_channel(registration.channel)
        except Exception as e:
            logger.error(f"Error closing change channel for {registration.table}: {e}")

    def _is_live(self, registration: _Registration) -> bool:
        return self._registrations.get(registration.signature) is registration

    async def _dispatch(self, registration: _Registration, event: ChangeEvent) -> None:
        if not self._is_live(registration):
            return

        if self._enricher is not None and event.record is not None:
            try:
                enriched = await self._enricher.enrich([event.record], stage="subscription")
                event = event.with_record(enriched[0])
            except EnrichmentDegraded as e:
                logger.warning(str(e))

        if not self._is_live(registration):
            return

        await self._cache.invalidate_table(registration.table)

        listeners: List = list(registration.listeners.items())
        for listener_id, callback in listeners:
            # Listener may have unsubscribed while an earlier callback ran
            if listener_id not in registration.listeners or not self._is_live(registration):
                continue
            try:
                outcome = callback(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error(f"Subscription callback failed for {registration.signature}: {e}")
