"""
Observability Middleware

Flask hooks tagging each request span with the caller and the membership
route it hit, and logging one line per completed request.
"""

import time
import logging
from flask import Flask, request, g
from opentelemetry import trace
from opentelemetry.instrumentation.flask import FlaskInstrumentor

logger = logging.getLogger(__name__)


def _acting_user_id():
    user_context = g.get('user_context')
    return user_context.user_id if user_context else None


def add_observability_middleware(app: Flask, instrument: bool = True):
    """Hook request timing, span attributes and access logging into ``app``."""

    if instrument:
        FlaskInstrumentor().instrument_app(app)

    @app.before_request
    def start_request_timer():
        g.start_time = time.time()
        g.trace_id = None

        span = trace.get_current_span()
        if span.is_recording():
            g.trace_id = format(span.get_span_context().trace_id, "032x")
            span.set_attributes({
                "http.target": request.path,
                "pawhub.blueprint": request.blueprint or "",
                "pawhub.endpoint": request.endpoint or ""
            })

    @app.after_request
    def log_request(response):
        duration_ms = round((time.time() - g.get('start_time', time.time())) * 1000, 2)
        user_id = _acting_user_id()

        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("http.duration_ms", duration_ms)
            if user_id:
                span.set_attribute("enduser.id", user_id)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"{request.method} {request.path} -> {response.status_code}",
            extra={
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "user_id": user_id,
                "trace_id": g.get('trace_id')
            }
        )

        if g.get('trace_id'):
            response.headers['X-Trace-Id'] = g.trace_id

        return response
