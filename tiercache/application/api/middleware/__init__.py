"""
API Middleware

Centralized error handling for the HTTP surface.
"""

from .error_handler import ErrorHandlingMiddleware, add_error_handling_middleware

__all__ = ["ErrorHandlingMiddleware", "add_error_handling_middleware"]
