from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response as StarletteResponse

# Path templates only; "/" and "/health" are the whole surface
HTTP_REQUESTS_TOTAL = Counter(
    "servedby_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "servedby_http_request_duration_seconds",
    "HTTP request latency (seconds)",
    ["method", "path"],
    # The page makes three sequential outbound calls, so the tail is long
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

AGENT_LOOKUPS_TOTAL = Counter(
    "servedby_agent_lookups_total",
    "Outbound lookups by agent and outcome",
    ["agent", "outcome"],
)


def _path_template(request: Request) -> str:
    route = request.scope.get("route")
    if route and getattr(route, "path", None):
        return route.path
    return request.url.path


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts requests and observes latency per (method, path)."""

    def __init__(self, app, skip_predicate: Callable[[Request], bool] | None = None):
        super().__init__(app)
        self._skip = skip_predicate or (lambda req: False)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> StarletteResponse:
        if self._skip(request):
            return await call_next(request)

        start = time.time()
        response = await call_next(request)
        path = _path_template(request)

        HTTP_REQUESTS_TOTAL.labels(
            method=request.method, path=path, status=str(response.status_code)
        ).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=request.method, path=path).observe(
            time.time() - start
        )
        return response


def record_lookup(agent: str, ok: bool) -> None:
    AGENT_LOOKUPS_TOTAL.labels(agent=agent, outcome="ok" if ok else "error").inc()


def metrics_endpoint() -> Response:
    """Return the Prometheus metrics exposition."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
