"""Route registration for complaint, agent and admin endpoints."""
from __future__ import annotations

from django.urls import include, path

from resolvenow_service.routers import OptionalSlashRouter, route

from .views import (
    AdminComplaintViewSet,
    AgentComplaintViewSet,
    ComplaintViewSet,
    admin_stats,
    agent_stats,
    health,
    recent_complaints,
)

router = OptionalSlashRouter()
router.register("complaints", ComplaintViewSet, basename="complaint")
router.register("agent/complaints", AgentComplaintViewSet, basename="agent-complaint")
router.register("admin/complaints", AdminComplaintViewSet, basename="admin-complaint")

urlpatterns = [
    route("healthz", health, name="resolvenow-health"),
    route("agent/stats", agent_stats, name="agent-stats"),
    route(
        "agent/assigned-complaints",
        AgentComplaintViewSet.as_view({"get": "list"}),
        name="agent-assigned-complaints",
    ),
    route("admin/stats", admin_stats, name="admin-stats"),
    route("admin/recent-complaints", recent_complaints, name="admin-recent-complaints"),
    path("", include(router.urls)),
]
