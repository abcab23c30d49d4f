"""Audit event entity appended after every successful mutation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict


@dataclass(frozen=True)
class AuditEvent:
    """Append-only audit record."""

    type: str
    message: str
    module: str
    severity: str = "info"
    metadata: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_mutation(cls, table: str, operation: str, record_count: int, module: str) -> "AuditEvent":
        occurred_at = datetime.now(timezone.utc)
        return cls(
            type=f"data_{operation}",
            message=f"{operation} operation on {table}",
            module=module,
            severity="info",
            metadata={
                "table": table,
                "operation": operation,
                "record_count": record_count,
                "timestamp": occurred_at.isoformat(),
            },
            occurred_at=occurred_at,
        )

    def to_row(self) -> Dict[str, Any]:
        """Row shape for the audit table."""
        return {
            "event_type": self.type,
            "event_message": self.message,
            "module": self.module,
            "severity": self.severity,
            "metadata": self.metadata,
        }
