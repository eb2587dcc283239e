"""Status counts for the admin, agent and user dashboards."""
from __future__ import annotations

from typing import Dict

from django.db.models import Count, QuerySet

from accounts.models import User

from .models import Complaint

STATUS_KEYS = {
    Complaint.PENDING: "pendingComplaints",
    Complaint.IN_PROGRESS: "inProgressComplaints",
    Complaint.RESOLVED: "resolvedComplaints",
    Complaint.CLOSED: "closedComplaints",
}


def _status_counts(queryset: QuerySet) -> Dict[str, int]:
    totals: Dict[str, int] = {key: 0 for key in STATUS_KEYS.values()}
    for entry in queryset.values("status").order_by().annotate(total=Count("id")):
        key = STATUS_KEYS.get(entry.get("status"))
        if key is not None:
            totals[key] = int(entry.get("total", 0))
    return totals


def global_stats() -> Dict[str, int]:
    counts = _status_counts(Complaint.objects.all())
    return {
        "totalComplaints": sum(counts.values()),
        "totalUsers": User.objects.filter(role=User.USER).count(),
        "totalAgents": User.objects.filter(role=User.AGENT).count(),
        **counts,
    }


def agent_stats(agent: User) -> Dict[str, int]:
    counts = _status_counts(Complaint.objects.filter(assigned_agent=agent))
    return {"assignedComplaints": sum(counts.values()), **counts}


def user_stats(user: User) -> Dict[str, int]:
    counts = _status_counts(Complaint.objects.filter(user=user))
    return {"totalComplaints": sum(counts.values()), **counts}
