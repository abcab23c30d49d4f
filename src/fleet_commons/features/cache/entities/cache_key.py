"""Cache key derivation.

Keys are content-addressed: a stable JSON serialization of the query shape
(sorted keys, normalized filter order) hashed with SHA-256. The table name
stays readable in the key so entries can be grouped for table-level
invalidation.
"""

import hashlib
import json
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Protocol


class KeyableSpec(Protocol):
    table: str

    def canonical(self) -> Dict[str, Any]: ...

    def signature_payload(self) -> Dict[str, Any]: ...


def _encode(value: Any) -> Dict[str, str]:
    # Tag non-JSON values with their type so "1.5" and Decimal("1.5") differ
    return {"__type__": type(value).__name__, "value": str(value)}


def content_digest(payload: Any) -> str:
    """SHA-256 hex digest of a stable serialization of ``payload``."""
    serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=_encode)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheKey:
    """Cache key for a query result."""

    table: str
    digest: str

    PREFIX: ClassVar[str] = "query"

    @classmethod
    def for_query(cls, spec: KeyableSpec) -> "CacheKey":
        """Derive the cache key for a read."""
        return cls(table=spec.table, digest=content_digest(spec.canonical()))

    @property
    def value(self) -> str:
        return f"{self.PREFIX}:{self.table}:{self.digest}"

    def __str__(self) -> str:
        return self.value


def derive_signature(spec: KeyableSpec) -> str:
    """Derive the subscription signature (table + filters) for a read."""
    return f"subscription:{spec.table}:{content_digest(spec.signature_payload())}"
