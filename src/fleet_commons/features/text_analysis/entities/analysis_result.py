"""Text analysis result entity."""

from dataclasses import dataclass
from typing import Any, List, Optional


@dataclass(frozen=True)
class AnalysisResult:
    """Response from the text analysis provider."""

    success: bool
    result: Any = None
    confidence: float = 0.0
    language: Optional[str] = None
    error: Optional[str] = None
    processing_time_ms: float = 0.0
    model: Optional[str] = None

    @property
    def keywords(self) -> List[str]:
        """Keywords extracted by an ``analyze`` call, if any."""
        if isinstance(self.result, dict):
            keywords = self.result.get("keywords") or []
            return [str(k) for k in keywords if str(k).strip()]
        return []

    @classmethod
    def failure(cls, error: str, language: Optional[str] = None) -> "AnalysisResult":
        return cls(success=False, error=error, language=language)
