"""Exact-role route guards. There is no role hierarchy."""
from __future__ import annotations

from rest_framework.permissions import BasePermission

from resolvenow_service.exceptions import Forbidden

from .models import User


class RolePermission(BasePermission):
    required_role: str
    message = Forbidden.default_detail
    code = Forbidden.default_code

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = request.user
        return bool(user and user.is_authenticated and user.role == self.required_role)


class IsAdmin(RolePermission):
    required_role = User.ADMIN


class IsAgent(RolePermission):
    required_role = User.AGENT
