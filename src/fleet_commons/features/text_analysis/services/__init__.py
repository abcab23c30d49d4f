"""Text analysis services."""

from .record_enricher import RecordEnricher, contains_text_data, serialize_payload

__all__ = ["RecordEnricher", "contains_text_data", "serialize_payload"]
