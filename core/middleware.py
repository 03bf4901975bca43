import logging
import time
from typing import Callable

from django.http import HttpRequest, HttpResponse


request_logger = logging.getLogger("api.requests")


class ApiRequestLoggingMiddleware:
    """
    Log one line per API request: method, path, status, duration and user.
    Non-API paths (admin, static) are passed through untouched.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if not request.path.startswith("/api/"):
            return self.get_response(request)

        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000

        user = getattr(request, "user", None)
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        request_logger.log(
            level,
            "%s %s -> %s in %.1fms user=%s",
            request.method,
            request.path,
            response.status_code,
            elapsed_ms,
            user.pk if user is not None and user.is_authenticated else "anonymous",
        )
        return response
