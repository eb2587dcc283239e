"""Error taxonomy shared by every app in the service."""
from __future__ import annotations

from rest_framework import exceptions, status

ValidationError = exceptions.ValidationError
NotFound = exceptions.NotFound


class Unauthenticated(exceptions.AuthenticationFailed):
    default_detail = "Authentication credentials are missing or invalid."
    default_code = "unauthenticated"


class Forbidden(exceptions.PermissionDenied):
    default_detail = "Insufficient permissions."
    default_code = "forbidden"


class AccessDenied(exceptions.PermissionDenied):
    default_detail = "Access denied."
    default_code = "access_denied"


class InvalidAssignee(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid agent ID."
    default_code = "invalid_assignee"


class InvalidStatus(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid status."
    default_code = "invalid_status"


class InternalError(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error."
    default_code = "internal_error"

