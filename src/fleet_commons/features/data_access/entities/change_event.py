"""Change event entity delivered by upstream change channels."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional


class ChangeType(str, Enum):
    """Row-level change kinds."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A single row change on a subscribed table.

    A ``partial`` event carries only the row identity (``{"id": ...}``)
    because the full row did not fit in the upstream notification.
    """

    table: str
    event_type: ChangeType
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None
    partial: bool = False

    def __post_init__(self):
        if not isinstance(self.event_type, ChangeType):
            object.__setattr__(self, "event_type", ChangeType(str(self.event_type).upper()))

    @property
    def record(self) -> Optional[Dict[str, Any]]:
        """The new row if present, otherwise the old one."""
        return self.new if self.new is not None else self.old

    def with_record(self, record: Dict[str, Any]) -> "ChangeEvent":
        """Copy of this event with ``record`` substituted in place."""
        if self.new is not None:
            return replace(self, new=record)
        return replace(self, old=record)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ChangeEvent":
        """Build from a ``{table, type, new, old}`` notification payload.

        The reduced ``{table, type, id, partial}`` form yields a partial
        event whose row holds only the id.
        """
        if payload.get("partial"):
            event_type = ChangeType(str(payload.get("type") or payload.get("eventType")).upper())
            identity = {"id": payload.get("id")}
            deleted = event_type is ChangeType.DELETE
            return cls(
                table=payload["table"],
                event_type=event_type,
                new=None if deleted else identity,
                old=identity if deleted else None,
                partial=True,
            )
        return cls(
            table=payload["table"],
            event_type=payload.get("type") or payload.get("eventType"),
            new=payload.get("new"),
            old=payload.get("old"),
        )
