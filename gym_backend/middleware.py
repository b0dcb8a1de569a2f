"""
Name: HTTP Middleware

Responsibilities:
  - Accept a caller's X-Request-Id when well formed, otherwise mint one
  - Bind request context for logging and reset it afterwards
  - Log completion with the authenticated principal (if any)
  - Record request metrics (latency, count)

Collaborators:
  - context.py: bind_request/reset_context
  - identity.auth_users: leaves the principal on request.state.username
  - metrics.py: Prometheus counters and histograms

Notes:
  - The endpoint runs in a child task, so the principal is read back from
    request.state rather than from the ContextVar
"""

import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .context import bind_request, reset_context
from .logger import logger
from .metrics import record_request_metrics

REQUEST_ID_HEADER = "X-Request-Id"

# R: Forwarded ids end up in logs; keep them short and printable
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


def resolve_request_id(incoming: str | None) -> str:
    if incoming and _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """R: Request correlation, completion logging and metrics."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        tokens = bind_request(request_id, request.method, request.url.path)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request failed",
                extra={"latency_ms": _elapsed_ms(start_time)},
            )
            raise
        else:
            response.headers[REQUEST_ID_HEADER] = request_id
            latency_seconds = time.perf_counter() - start_time
            logger.info(
                "request completed",
                extra={
                    "status_code": response.status_code,
                    "latency_ms": round(latency_seconds * 1000, 2),
                    "principal": getattr(request.state, "username", None),
                },
            )
            record_request_metrics(
                endpoint=request.url.path,
                method=request.method,
                status_code=response.status_code,
                latency_seconds=latency_seconds,
            )
            return response
        finally:
            reset_context(tokens)


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
