"""DRF exception handler for the service.

Kept apart from ``exceptions`` because ``rest_framework.views`` loads the
authentication classes, which themselves raise from ``exceptions``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.db import DatabaseError
from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .exceptions import InternalError

logger = logging.getLogger(__name__)


def exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """Render persistence failures as ``InternalError`` and defer the rest to DRF."""

    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.exception(
            "Persistence failure in %s", view.__class__.__name__ if view else "unknown view"
        )
        exc = InternalError()

    response = drf_exception_handler(exc, context)
    if response is not None and isinstance(exc, exceptions.APIException):
        codes = exc.get_codes()
        if isinstance(codes, str):
            response.data["code"] = codes
        else:
            response.data = {"detail": "Validation failed.", "code": "invalid", "errors": response.data}
    return response
