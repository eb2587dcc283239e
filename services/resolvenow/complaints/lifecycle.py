"""Complaint lifecycle: creation, assignment, status transitions and resolution.

Every mutation is a single conditional ``UPDATE`` filtered on the complaint id
(and the assignee where the actor must be the assignee), so concurrent
requests serialize in the database rather than in application memory. The
realtime notification is sent after the write lands and never undoes it.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping

from django.conf import settings
from django.db import transaction
from django.db.models import DateTimeField, F, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from accounts.models import User
from realtime import notifier
from resolvenow_service.exceptions import (
    AccessDenied,
    Forbidden,
    InvalidAssignee,
    InvalidStatus,
    NotFound,
    ValidationError,
)

from .models import Complaint, Message
from .serializers import (
    ComplaintCreateSerializer,
    ComplaintSerializer,
    FeedbackSerializer,
    ResolutionSerializer,
)

logger = logging.getLogger(__name__)


def can_view(complaint: Complaint, principal: User) -> bool:
    """Owner, any admin, or the agent the complaint is assigned to."""

    if principal.role == User.ADMIN:
        return True
    if complaint.user_id == principal.pk:
        return True
    return principal.role == User.AGENT and complaint.assigned_agent_id == principal.pk


def get_complaint(complaint_id: int, principal: User) -> Complaint:
    complaint = (
        Complaint.objects.select_related("user", "assigned_agent").filter(pk=complaint_id).first()
    )
    if complaint is None:
        raise NotFound("Complaint not found.")
    if not can_view(complaint, principal):
        raise AccessDenied()
    return complaint


def create_complaint(owner: User, data: Mapping[str, Any]) -> Complaint:
    serializer = ComplaintCreateSerializer(data=data)
    serializer.is_valid(raise_exception=True)

    complaint = Complaint.objects.create(user=owner, **serializer.validated_data)
    complaint = _reload(complaint.pk)
    logger.info("Complaint %s created by user %s", complaint.pk, owner.pk)

    notifier.publish(
        notifier.GLOBAL,
        notifier.NEW_COMPLAINT,
        {"complaint": ComplaintSerializer(complaint).data, "message": "New complaint submitted"},
    )
    return complaint


def assign(complaint_id: int, agent_id: Any, acting_admin: User) -> Complaint:
    """Hand a complaint to an active agent and move it to ``in-progress``."""

    if acting_admin.role != User.ADMIN:
        raise Forbidden()

    try:
        agent_pk = int(agent_id)
    except (TypeError, ValueError) as exc:
        raise InvalidAssignee() from exc
    agent = User.objects.filter(pk=agent_pk, role=User.AGENT, is_active=True).first()
    if agent is None:
        raise InvalidAssignee()

    queryset = Complaint.objects.filter(pk=complaint_id)
    if settings.RESOLVENOW_STRICT_TRANSITIONS:
        queryset = queryset.filter(status__in=_allowed_sources(Complaint.IN_PROGRESS))
    updated = queryset.update(
        assigned_agent=agent, status=Complaint.IN_PROGRESS, updated_at=timezone.now()
    )
    if not updated:
        current = Complaint.objects.filter(pk=complaint_id).values("status").first()
        if current is None:
            raise NotFound("Complaint not found.")
        raise InvalidStatus(
            f"Cannot move complaint from {current['status']} to {Complaint.IN_PROGRESS}."
        )

    complaint = _reload(complaint_id)
    logger.info("Admin %s assigned complaint %s to agent %s", acting_admin.pk, complaint.pk, agent.pk)
    notifier.publish(
        notifier.GLOBAL,
        notifier.COMPLAINT_ASSIGNED,
        {
            "complaintId": complaint.pk,
            "agentName": agent.name,
            "message": "Complaint has been assigned to an agent",
        },
    )
    return complaint


def update_status(complaint_id: int, new_status: Any, acting_agent: User) -> Complaint:
    if not isinstance(new_status, str) or new_status not in Complaint.STATUS_ORDER:
        raise InvalidStatus()
    _require_agent(acting_agent)

    label = new_status.replace("-", " ")
    with transaction.atomic():
        complaint = _assignee_update(
            complaint_id, acting_agent, new_status, _status_fields(new_status)
        )
        record_system_message(
            complaint, acting_agent, f"Complaint status updated to: {label.upper()}"
        )
    logger.info("Agent %s moved complaint %s to %s", acting_agent.pk, complaint.pk, new_status)

    notifier.publish(
        complaint.pk,
        notifier.STATUS_UPDATED,
        {
            "complaintId": complaint.pk,
            "status": new_status,
            "message": f"Complaint status updated to {label}",
        },
    )
    return complaint


def resolve(complaint_id: int, data: Mapping[str, Any], acting_agent: User) -> Complaint:
    serializer = ResolutionSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    text = serializer.validated_data["resolution"]
    _require_agent(acting_agent)

    fields = _status_fields(Complaint.RESOLVED)
    fields["resolution"] = text
    with transaction.atomic():
        complaint = _assignee_update(complaint_id, acting_agent, Complaint.RESOLVED, fields)
        record_system_message(complaint, acting_agent, f"Complaint resolved: {text}")
    logger.info("Agent %s resolved complaint %s", acting_agent.pk, complaint.pk)

    notifier.publish(
        complaint.pk,
        notifier.COMPLAINT_RESOLVED,
        {
            "complaintId": complaint.pk,
            "resolution": text,
            "message": "Your complaint has been resolved",
        },
    )
    return complaint


def submit_feedback(complaint_id: int, owner: User, data: Mapping[str, Any]) -> Complaint:
    """Record the owner's rating once the complaint is resolved or closed."""

    serializer = FeedbackSerializer(data=data)
    serializer.is_valid(raise_exception=True)

    finished = [Complaint.RESOLVED, Complaint.CLOSED]
    updated = Complaint.objects.filter(
        pk=complaint_id, user=owner, status__in=finished, feedback_rating__isnull=True
    ).update(
        feedback_rating=serializer.validated_data["rating"],
        feedback_comment=serializer.validated_data["comment"],
        feedback_submitted_at=timezone.now(),
        updated_at=timezone.now(),
    )
    if not updated:
        current = (
            Complaint.objects.filter(pk=complaint_id)
            .values("user_id", "status", "feedback_rating")
            .first()
        )
        if current is None:
            raise NotFound("Complaint not found.")
        if current["user_id"] != owner.pk:
            raise AccessDenied()
        if current["status"] not in finished:
            raise InvalidStatus("Feedback can only be given on resolved or closed complaints.")
        raise ValidationError({"rating": ["Feedback has already been submitted."]})

    logger.info("Owner %s left feedback on complaint %s", owner.pk, complaint_id)
    return _reload(complaint_id)


def record_system_message(complaint: Complaint, sender: User, content: str) -> Message:
    return Message.objects.create(
        complaint=complaint,
        sender=sender,
        content=content,
        message_type=Message.SYSTEM,
    )


def _require_agent(principal: User) -> None:
    if principal.role != User.AGENT:
        raise Forbidden()


def _allowed_sources(target: str) -> Iterable[str]:
    """Statuses a complaint may move to ``target`` from."""

    if not settings.RESOLVENOW_STRICT_TRANSITIONS:
        return list(Complaint.STATUS_ORDER)
    rank = Complaint.STATUS_ORDER[target]
    return [status for status, order in Complaint.STATUS_ORDER.items() if order <= rank]


def _status_fields(new_status: str) -> Dict[str, Any]:
    now = timezone.now()
    fields: Dict[str, Any] = {"status": new_status, "updated_at": now}
    # resolved_at/closed_at are stamped on the first transition only.
    if new_status == Complaint.RESOLVED:
        fields["resolved_at"] = Coalesce(F("resolved_at"), Value(now, output_field=DateTimeField()))
    elif new_status == Complaint.CLOSED:
        fields["closed_at"] = Coalesce(F("closed_at"), Value(now, output_field=DateTimeField()))
    return fields


def _assignee_update(
    complaint_id: int, agent: User, target: str, fields: Dict[str, Any]
) -> Complaint:
    queryset = Complaint.objects.filter(pk=complaint_id, assigned_agent=agent)
    if settings.RESOLVENOW_STRICT_TRANSITIONS:
        queryset = queryset.filter(status__in=_allowed_sources(target))

    if not queryset.update(**fields):
        current = (
            Complaint.objects.filter(pk=complaint_id).values("assigned_agent_id", "status").first()
        )
        if current is None:
            raise NotFound("Complaint not found.")
        if current["assigned_agent_id"] != agent.pk:
            raise AccessDenied("Complaint is not assigned to you.")
        raise InvalidStatus(f"Cannot move complaint from {current['status']} to {target}.")
    return _reload(complaint_id)


def _reload(complaint_id: int) -> Complaint:
    return Complaint.objects.select_related("user", "assigned_agent").get(pk=complaint_id)
