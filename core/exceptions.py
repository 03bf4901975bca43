"""
API error types and the DRF exception handler that renders them.

Every error leaving an API view is a problem payload:

    {"type": ..., "title": ..., "status": ..., "detail": ..., "errors": {...}}
"""
from __future__ import annotations

import logging

from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InvalidInput(exceptions.ValidationError):
    """Caller supplied something unusable (empty file, bad extension, empty selection)."""

    default_detail = "Invalid input."
    default_code = "invalid_input"

    def __init__(self, field: str, message: str):
        super().__init__({field: [message]})
        self.field = field
        self.message = message


_TITLES = {
    status.HTTP_400_BAD_REQUEST: "One or more validation errors occurred.",
    status.HTTP_403_FORBIDDEN: "Forbidden",
    status.HTTP_404_NOT_FOUND: "Not Found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method Not Allowed",
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: "Unsupported Media Type",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "An error occurred while processing your request.",
}


def _problem(status_code: int, detail: str, errors: dict | None = None) -> dict:
    payload = {
        "type": f"https://httpstatuses.io/{status_code}",
        "title": _TITLES.get(status_code, "Error"),
        "status": status_code,
        "detail": detail,
    }
    if errors:
        payload["errors"] = errors
    return payload


def _flatten_errors(data) -> dict:
    if isinstance(data, dict):
        flattened = {}
        for field, messages in data.items():
            if isinstance(messages, (list, tuple)):
                flattened[field] = [str(m) for m in messages]
            else:
                flattened[field] = [str(messages)]
        return flattened
    if isinstance(data, (list, tuple)):
        return {"non_field_errors": [str(m) for m in data]}
    return {"non_field_errors": [str(data)]}


def problem_exception_handler(exc, context):
    """DRF `EXCEPTION_HANDLER`: wrap every handled error in a problem payload."""
    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.exception("Storage failure in %s", type(view).__name__ if view else "unknown view")
        return Response(
            _problem(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "The request could not be completed because of a storage error.",
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        errors = _flatten_errors(exc.detail)
        first = next(iter(errors.values()), ["Invalid input."])
        response.data = _problem(response.status_code, first[0], errors)
    elif isinstance(exc, Http404):
        response.data = _problem(response.status_code, "The requested resource was not found.")
    else:
        detail = response.data.get("detail") if isinstance(response.data, dict) else None
        response.data = _problem(response.status_code, str(detail or exc))
    return response
