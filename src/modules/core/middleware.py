"""Request-scoped logging context.

Every log line emitted while serving a request carries ``correlation_id``;
orders and reviews services add their own ids on top through
``logger.bind``.
"""

import re
import time
from contextvars import ContextVar
from typing import Callable

import structlog
import uuid6
from django.http import HttpRequest, HttpResponse

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger(__name__)


def resolve_correlation_id(header_value: str | None) -> str:
    """Reuse a well-formed incoming id, otherwise mint a UUIDv7."""
    if header_value and REQUEST_ID_PATTERN.match(header_value):
        return header_value
    return str(uuid6.uuid7())


class CorrelationIdMiddleware:
    """Bind a per-request correlation ID to every log line.

    The ID is echoed back in the ``X-Request-ID`` response header so a
    client can quote it when reporting a failed order or payment.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = resolve_correlation_id(request.META.get("HTTP_X_REQUEST_ID"))
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        logger.info(
            "request_started",
            method=request.method,
            path=request.get_full_path(),
        )
        start = time.monotonic()

        response = self.get_response(request)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "request_finished",
            method=request.method,
            path=request.get_full_path(),
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )

        response[REQUEST_ID_HEADER] = cid
        return response
