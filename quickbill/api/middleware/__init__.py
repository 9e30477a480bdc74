"""API middleware."""

from quickbill.api.middleware.error_handler import ErrorHandlerMiddleware
from quickbill.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
