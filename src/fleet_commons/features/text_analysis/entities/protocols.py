"""Text analysis protocols for fleet-commons."""

from abc import abstractmethod
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from .analysis_result import AnalysisResult


@runtime_checkable
class TextAnalysisGateway(Protocol):
    """Protocol for the external text analysis capability.

    Implementations raise ``TextAnalysisError`` when the provider cannot be
    reached and return ``AnalysisResult(success=False)`` when it answers with
    a rejection.
    """

    @abstractmethod
    async def validate(self, text: str, context: str) -> AnalysisResult:
        """Validate and sanitize text."""
        ...

    @abstractmethod
    async def analyze(
        self,
        text: str,
        task: str = "analyze",
        context: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> AnalysisResult:
        """Run an analysis task (keywords, language, similarity)."""
        ...
