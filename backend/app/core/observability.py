"""
Prometheus instrumentation for the Assignment Approval API.

This module sets up:
- Request counters and latency histogram
- Workflow transition and approval-code counters
- The /metrics endpoint
"""

from __future__ import annotations

import logging
import re
import time

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

http_requests_total = Counter(
    "http_server_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"]
)

http_request_duration_seconds = Histogram(
    "http_server_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

http_exceptions_total = Counter(
    "http_server_exceptions_total",
    "Total unhandled exceptions",
    ["method", "path", "exception_type"]
)

assignment_transitions_total = Counter(
    "assignment_transitions_total",
    "Assignment status transitions committed by the workflow",
    ["action"]
)

approval_otp_events_total = Counter(
    "approval_otp_events_total",
    "Approval code requests and verification outcomes",
    ["outcome"]
)


def record_transition(action: str) -> None:
    assignment_transitions_total.labels(action=action).inc()


def record_otp_event(outcome: str) -> None:
    approval_otp_events_total.labels(outcome=outcome).inc()


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for all requests."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = self._normalize_path(request.url.path)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            http_exceptions_total.labels(
                method=method,
                path=path,
                exception_type=type(e).__name__
            ).inc()
            http_requests_total.labels(method=method, path=path, status=500).inc()
            http_request_duration_seconds.labels(method=method, path=path).observe(duration)
            raise

        duration = time.perf_counter() - start_time
        http_requests_total.labels(method=method, path=path, status=response.status_code).inc()
        http_request_duration_seconds.labels(method=method, path=path).observe(duration)
        return response

    def _normalize_path(self, path: str) -> str:
        """Replace numeric IDs in path with placeholder to reduce cardinality."""
        normalized = re.sub(r'/\d+', '/{id}', path)
        parts = normalized.split('/')[:6]
        return '/'.join(parts)


async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics endpoint handler."""
    return PlainTextResponse(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
