"""Version information for fleet-commons."""

__version__ = "0.3.0"
