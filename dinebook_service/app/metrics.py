"""
Prometheus metrics for HTTP traffic
"""
import time

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from dinebook_service.config import get_settings

settings = get_settings()

REQUEST_COUNT = Counter(
    f"{settings.metrics_prefix}_http_requests_total",
    "Total number of HTTP requests",
    ["method", "route", "status_code"]
)

REQUEST_DURATION = Histogram(
    f"{settings.metrics_prefix}_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route", "status_code"]
)


def route_template(request: Request) -> str:
    """Path template of the matched route, e.g. /api/v1/bookings/{booking_id}"""
    route = request.scope.get("route")
    if route is None:
        return "unmatched"
    template = getattr(route, "path_format", None) or route.path

    # Routes of an included router may only carry the part below their prefix
    path = request.url.path
    if template.count("/") == path.count("/"):
        return template
    names = {str(value): name for name, value in request.scope.get("path_params", {}).items()}
    return "/".join(f"{{{names[part]}}}" if part in names else part for part in path.split("/"))


async def metrics_middleware(request: Request, call_next):
    """Count and time every request, labelled by route template"""
    start = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        labels = {
            "method": request.method,
            "route": route_template(request),
            "status_code": str(status_code),
        }
        REQUEST_COUNT.labels(**labels).inc()
        REQUEST_DURATION.labels(**labels).observe(time.perf_counter() - start)


def metrics_response() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
