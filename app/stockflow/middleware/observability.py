from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.stockflow.core.db_timing import get_db_time_ms, start_db_timer, stop_db_timer
from app.stockflow.core.logging import log_json
from app.stockflow.core.metrics import metrics

logger = logging.getLogger("stockflow.request")

# Path parameters copied into the request log so a transfer can be followed across calls.
_LOGGED_PATH_PARAMS = ("transfer_id", "item_id")


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def build_request_log_payload(
    *,
    request: Request,
    response: Response | None,
    latency_ms: float,
    db_time_ms: float | None,
) -> dict:
    state = request.state
    payload = {
        "event": "http_request",
        "trace_id": getattr(state, "trace_id", ""),
        "user_id": getattr(state, "user_id", None),
        "route": _route_template(request),
        "method": request.method,
        "status_code": response.status_code if response is not None else 500,
        "latency_ms": round(latency_ms, 2),
        "db_time_ms": None if db_time_ms is None else round(db_time_ms, 2),
        "error_code": getattr(state, "error_code", None),
        "error_class": getattr(state, "error_class", None),
    }
    path_params = request.scope.get("path_params") or {}
    for name in _LOGGED_PATH_PARAMS:
        if name in path_params:
            payload[name] = path_params[name]
    return payload


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        token = start_db_timer()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            latency_ms = (time.perf_counter() - started) * 1000
            payload = build_request_log_payload(
                request=request,
                response=response,
                latency_ms=latency_ms,
                db_time_ms=get_db_time_ms(),
            )
            stop_db_timer(token)
            level = logging.WARNING if payload["status_code"] >= 500 else logging.INFO
            log_json(logger, payload, level=level)
            metrics.record_http_request(
                route=payload["route"],
                method=payload["method"],
                status_code=payload["status_code"],
                latency_ms=latency_ms,
            )
