"""Request logging and metrics middleware"""
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from metrics import RequestMetrics

logger = logging.getLogger(__name__)

UNMATCHED_ROUTE = "unmatched"


def resolve_route_template(request: Request) -> str:
    """Path template of the route that served the request (/api/investments/{investment_id}).

    Routing stores the matched route in the scope, so this is only meaningful
    once the request has been dispatched. Requests stopped before routing
    (origin guard, body limit, unknown paths) are reported as unmatched.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request and feeds the duration / in-flight / total metrics"""

    def __init__(self, app, metrics: RequestMetrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next):
        method = request.method
        path = request.url.path

        logger.info(f"{method} {path}")
        self.metrics.started(method)
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start
            self.metrics.finished(method, resolve_route_template(request), 500, duration)
            logger.error(f"{method} {path} -> 500 ({duration * 1000:.1f}ms)")
            raise

        duration = time.perf_counter() - start
        self.metrics.finished(method, resolve_route_template(request), response.status_code, duration)
        logger.info(f"{method} {path} -> {response.status_code} ({duration * 1000:.1f}ms)")
        return response
