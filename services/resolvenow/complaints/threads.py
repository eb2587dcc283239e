"""Per-complaint message threads."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from django.db.models import QuerySet
from django.utils import timezone

from accounts.models import User
from realtime import notifier

from .lifecycle import get_complaint
from .models import Message
from .serializers import MessageCreateSerializer, MessageSerializer

logger = logging.getLogger(__name__)


def post_message(complaint_id: int, sender: User, data: Mapping[str, Any]) -> Message:
    serializer = MessageCreateSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    complaint = get_complaint(complaint_id, sender)

    message = Message.objects.create(
        complaint=complaint,
        sender=sender,
        content=serializer.validated_data["content"],
    )
    logger.info("User %s posted message %s on complaint %s", sender.pk, message.pk, complaint.pk)

    notifier.publish(complaint.pk, notifier.NEW_MESSAGE, MessageSerializer(message).data)
    return message


def list_messages(complaint_id: int, principal: User) -> QuerySet:
    complaint = get_complaint(complaint_id, principal)
    return complaint.messages.select_related("sender").order_by("created_at", "id")


def mark_read(complaint_id: int, principal: User) -> int:
    """Mark everything the other party wrote as read; returns how many changed."""

    complaint = get_complaint(complaint_id, principal)
    return (
        Message.objects.filter(complaint=complaint, is_read=False)
        .exclude(sender=principal)
        .update(is_read=True, read_at=timezone.now())
    )
