"""Text analysis feature for fleet-commons.

- entities/: analysis result and gateway protocol
- adapters/: HTTP gateway (httpx)
- services/: record enrichment pipeline stage
"""

from .entities import AnalysisResult, TextAnalysisGateway
from .adapters import HttpTextAnalysisGateway
from .services import RecordEnricher, contains_text_data

__all__ = [
    "AnalysisResult",
    "TextAnalysisGateway",
    "HttpTextAnalysisGateway",
    "RecordEnricher",
    "contains_text_data",
]
