"""Request logging for the storefront API.

Every non-excluded request gets a correlation id (taken from ``X-Request-ID``
when the storefront sends one) that is attached to all log records emitted
while the request is handled, and echoed back on the response.
"""
from __future__ import annotations

import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

logger = logging.getLogger("perkins.api")

# Attributes every LogRecord has; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        return True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request with its outcome and duration in ms."""

    def __init__(
        self,
        app,
        exclude_paths: Optional[Iterable[str]] = None,
        slow_request_ms: float = 1000.0,
    ):
        super().__init__(app)
        self.exclude_paths = frozenset(exclude_paths or ("/", "/health"))
        self.slow_request_ms = slow_request_ms

    def _level_for(self, status_code: int, elapsed_ms: float) -> int:
        if status_code >= 500:
            return logging.ERROR
        if status_code >= 400 or elapsed_ms > self.slow_request_ms:
            return logging.WARNING
        return logging.INFO

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.exclude_paths:
            return await call_next(request)

        correlation_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:16]
        token = correlation_id_var.set(correlation_id)
        request.state.correlation_id = correlation_id
        started = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.exception(
                    f"{request.method} {path} raised {type(e).__name__}",
                    extra={"method": request.method, "path": path},
                )
                raise

            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.log(
                self._level_for(response.status_code, elapsed_ms),
                f"{request.method} {path} -> {response.status_code} in {elapsed_ms}ms",
                extra={
                    "method": request.method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                },
            )
        finally:
            correlation_id_var.reset(token)

        response.headers["X-Request-ID"] = correlation_id
        return response


class JSONFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` fields are copied through."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(json_format: bool = True, level: str = "INFO"):
    """
    Install a single stderr handler on the root logger.

    Args:
        json_format: JSON lines outside dev, plain text in dev
        level: Root log level name
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler()
    handler.addFilter(CorrelationIdFilter())
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s [%(correlation_id)s] %(name)s: %(message)s")
        )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(numeric_level)

    # httpx logs every provider call at INFO
    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()
