"""DRF exception handler.

Known API exceptions (validation, authentication, throttling) keep DRF's
default rendering.  Anything else is an internal failure: it is logged with
its traceback and answered with an opaque 500 so storage details never leak
to storefront clients.
"""

from __future__ import annotations

import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.exception(
        "api.unhandled_error",
        view=view.__class__.__name__ if view else None,
        error_type=type(exc).__name__,
    )
    return Response(
        {"detail": "Internal server error.", "code": "internal_error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def error_response(detail: str, code: str, http_status: int) -> Response:
    """Body used by views when translating domain exceptions."""
    return Response({"detail": detail, "code": code}, status=http_status)


def validation_error_response(exc: ValueError) -> Response:
    """400 for DTO validation failures (pydantic or plain ``ValueError``)."""
    errors = getattr(exc, "errors", None)
    if callable(errors):
        detail = "; ".join(error["msg"] for error in errors())
    else:
        detail = str(exc)
    return error_response(detail, "validation_error", status.HTTP_400_BAD_REQUEST)
