"""Text analysis entities."""

from .analysis_result import AnalysisResult
from .protocols import TextAnalysisGateway

__all__ = ["AnalysisResult", "TextAnalysisGateway"]
