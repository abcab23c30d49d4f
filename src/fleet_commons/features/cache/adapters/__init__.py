"""Cache adapters."""

from .memory_adapter import MemoryCacheStore

__all__ = ["MemoryCacheStore"]
