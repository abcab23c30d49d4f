"""Base exceptions for fleet-commons.

This module defines the root of the exception hierarchy. All exceptions carry
a machine-readable error code and structured details so a calling layer can
render its own message.
"""

from typing import Any, Dict, Optional


class FleetCommonsError(Exception):
    """Base exception for all fleet-commons errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


def create_error_response(exception: FleetCommonsError) -> Dict[str, Any]:
    """Create standardized error payload from exception.

    Args:
        exception: The fleet-commons exception

    Returns:
        Error response dictionary
    """
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
