"""Record enrichment pipeline stage.

Best-effort post-processing of records through the text analysis gateway:
each long free-text field gains ``<field>_processed`` and
``<field>_language`` companions. Any gateway failure aborts the whole stage
with ``EnrichmentDegraded`` so callers can fall back to the raw records.
"""

import asyncio
import json
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ....core.exceptions import EnrichmentDegraded
from ..entities.protocols import TextAnalysisGateway

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

DEFAULT_EXCLUDED_TOKENS = frozenset({"id", "uuid", "url", "uri", "email"})


def field_tokens(name: str) -> List[str]:
    """Split a field name into lowercase tokens (snake_case and camelCase)."""
    spaced = _CAMEL_BOUNDARY.sub("_", name)
    return [t for t in _TOKEN_SPLIT.split(spaced.lower()) if t]


def contains_text_data(data: Any, min_length: int) -> bool:
    """Check whether any string in a nested payload exceeds ``min_length``."""
    if isinstance(data, str):
        return len(data) > min_length
    if isinstance(data, dict):
        return any(contains_text_data(v, min_length) for v in data.values())
    if isinstance(data, (list, tuple)):
        return any(contains_text_data(v, min_length) for v in data)
    return False


def serialize_payload(data: Any) -> str:
    return json.dumps(data, default=str, sort_keys=True)


class RecordEnricher:
    """Attaches text-analysis output to free-text fields of records."""

    VALIDATION_CONTEXT = "data_processing"

    def __init__(
        self,
        gateway: TextAnalysisGateway,
        min_length: int = 10,
        timeout_seconds: Optional[float] = 15.0,
        excluded_tokens: Iterable[str] = DEFAULT_EXCLUDED_TOKENS,
    ):
        self._gateway = gateway
        self.min_length = min_length
        self._timeout = timeout_seconds
        self._excluded = frozenset(t.lower() for t in excluded_tokens)

    def identify_text_fields(self, sample: Any) -> List[str]:
        """Pick free-text fields from a sample record.

        Identifier, URL and email-like field names are skipped.
        """
        if not isinstance(sample, dict):
            return []
        return [
            name for name, value in sample.items()
            if isinstance(value, str)
            and len(value) > self.min_length
            and not self._excluded.intersection(field_tokens(str(name)))
        ]

    async def enrich(self, records: Sequence[Dict[str, Any]], stage: str = "query") -> List[Dict[str, Any]]:
        """Enrich records, raising EnrichmentDegraded on any gateway failure."""
        records = list(records)
        if not records:
            return records

        fields = self.identify_text_fields(records[0])
        if not fields:
            return records

        try:
            return list(await asyncio.gather(
                *(self._enrich_one(record, fields) for record in records)
            ))
        except Exception as e:
            raise EnrichmentDegraded(stage, e) from e

    async def _enrich_one(self, record: Dict[str, Any], fields: List[str]) -> Dict[str, Any]:
        enriched = dict(record)
        for name in fields:
            value = record.get(name)
            if not isinstance(value, str) or len(value) <= self.min_length:
                continue
            result = await asyncio.wait_for(
                self._gateway.validate(value, self.VALIDATION_CONTEXT),
                timeout=self._timeout,
            )
            if result.success:
                enriched[f"{name}_processed"] = result.result
                enriched[f"{name}_language"] = result.language
        return enriched
