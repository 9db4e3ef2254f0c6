from __future__ import annotations

import time

from fastapi import APIRouter, HTTPException, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

REQUEST_COUNT = Counter(
    "lnode_http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)
REQUEST_LATENCY = Histogram(
    "lnode_http_request_duration_seconds",
    "Request duration seconds",
    ["method", "route"],
)
PLATFORM_MIRROR = Counter(
    "lnode_platform_mirror_total",
    "Platform mirror steps by outcome",
    ["operation", "outcome"],
)


def _route_label(request: Request) -> str:
    # Templated path keeps ids and DevEUIs out of the label set.
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path if isinstance(path, str) else "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        start = time.monotonic()
        response = await call_next(request)
        duration = time.monotonic() - start
        method = request.method
        route = _route_label(request)
        REQUEST_COUNT.labels(method=method, route=route, status=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=method, route=route).observe(duration)
        return response


router = APIRouter(include_in_schema=False)


@router.get("/internal/metrics")
def metrics(request: Request) -> Response:
    token = request.app.state.config.metrics_token
    if token:
        supplied = request.headers.get("X-Metrics-Token", "")
        if supplied != token:
            raise HTTPException(status_code=401, detail="metrics token required")
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
