"""Middlewares personalizados para el relay."""

from __future__ import annotations

import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from callrelay.core.logging import get_logger

logger = get_logger("callrelay.request")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Registra inicio y fin de cada request, excepto rutas ruidosas."""

    def __init__(self, app: ASGIApp, *, skip_prefixes: tuple[str, ...] = ()) -> None:
        super().__init__(app)
        self.skip_prefixes = skip_prefixes

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path.startswith(self.skip_prefixes):
            return await call_next(request)

        request_id = uuid4().hex
        start = time.perf_counter()
        client_ip = request.client.host if request.client else None
        base = {
            "request_id": request_id,
            "method": request.method,
            "path": path,
            "client_ip": client_ip,
        }

        logger.info("request.started", extra=base)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.failed",
                extra={**base, "duration_ms": round((time.perf_counter() - start) * 1000, 2)},
            )
            raise

        response.headers["x-request-id"] = request_id
        logger.info(
            "request.completed",
            extra={
                **base,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return response
