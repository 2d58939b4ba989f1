"""HTTP middleware."""
from elections.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
