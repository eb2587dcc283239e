"""Route registration for auth and user administration endpoints."""
from __future__ import annotations

from django.urls import include, path

from resolvenow_service.routers import OptionalSlashRouter, route

from .views import AdminUserViewSet, agents, login, profile, register

router = OptionalSlashRouter()
router.register("admin/users", AdminUserViewSet, basename="admin-user")

urlpatterns = [
    route("auth/register", register, name="auth-register"),
    route("auth/login", login, name="auth-login"),
    route("auth/profile", profile, name="auth-profile"),
    route("admin/agents", agents, name="admin-agents"),
    path("", include(router.urls)),
]
