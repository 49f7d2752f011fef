from perkins_api.middleware.logging import (
    JSONFormatter,
    RequestLoggingMiddleware,
    get_correlation_id,
    setup_logging,
)

__all__ = [
    "JSONFormatter",
    "RequestLoggingMiddleware",
    "get_correlation_id",
    "setup_logging",
]
