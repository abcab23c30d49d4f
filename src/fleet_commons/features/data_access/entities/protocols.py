"""Data access protocols for fleet-commons.

Contracts consumed by the unified data access layer: the remote relational
store, its change channels, and the audit sink.
"""

from abc import abstractmethod
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

from .change_event import ChangeEvent
from .audit_event import AuditEvent
from .filters import Filter, OrderBy
from .mutation_spec import MutationOperation

Record = Dict[str, Any]
ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]


@runtime_checkable
class ChangeChannel(Protocol):
    """Protocol for an open upstream change subscription."""

    @property
    @abstractmethod
    def table(self) -> str:
        """Table the channel is scoped to."""
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether events may still be delivered."""
        ...


@runtime_checkable
class RemoteStore(Protocol):
    """Protocol for the remote relational store."""

    @abstractmethod
    async def read(
        self,
        table: str,
        select: str = "*",
        filters: Sequence[Filter] = (),
        order_by: Sequence[OrderBy] = (),
        limit: Optional[int] = None,
        any_of: Sequence[Filter] = (),
    ) -> List[Record]:
        """Read records.

        ``filters`` are AND-ed; ``any_of`` (when non-empty) is an OR group
        AND-ed with them.
        """
        ...

    @abstractmethod
    async def write(
        self,
        table: str,
        operation: MutationOperation,
        data: Any = None,
        filters: Sequence[Filter] = (),
        returning: str = "*",
        on_conflict: Sequence[str] = ("id",),
    ) -> List[Record]:
        """Execute a write and return the affected records."""
        ...

    @abstractmethod
    async def open_change_channel(
        self,
        table: str,
        filters: Sequence[Filter],
        handler: ChangeHandler,
    ) -> ChangeChannel:
        """Open a change subscription scoped to ``table`` and ``filters``.

        Raises on connection failure.
        """
        ...

    @abstractmethod
    async def close_channel(self, channel: ChangeChannel) -> None:
        """Tear down a change subscription. Closing twice is a no-op."""
        ...


@runtime_checkable
class AuditSink(Protocol):
    """Protocol for the append-only audit log."""

    @abstractmethod
    async def append(self, event: AuditEvent) -> None:
        """Append an audit event. Raises on failure."""
        ...
