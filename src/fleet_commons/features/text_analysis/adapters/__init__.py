"""Text analysis adapters."""

from .http_gateway import HttpTextAnalysisGateway

__all__ = ["HttpTextAnalysisGateway"]
