"""Request logging middleware."""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from agent_cloud.utils.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _run_id_from_path(path: str) -> str | None:
    # /api/v1/runs/{run_id}[/resume|/stream]
    parts = path.strip("/").split("/")
    if len(parts) >= 4 and parts[2] == "runs":
        return parts[3]
    return None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request and binds its id to every log line it produces.

    Workflow and provider logs emitted while serving the request carry the
    same ``request_id`` (and ``run_id`` for run routes).
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex

        context = {"request_id": request_id}
        run_id = _run_id_from_path(request.url.path)
        if run_id:
            context["run_id"] = run_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)

        logger.info("request.started", method=request.method, path=request.url.path)
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            "request.completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        structlog.contextvars.clear_contextvars()

        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
