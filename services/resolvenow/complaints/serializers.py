"""Serializers for complaints and thread messages."""
from __future__ import annotations

from typing import Any, Dict, Optional

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer

from .models import Complaint, Message


class ComplaintSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    assignedAgent = UserSummarySerializer(source="assigned_agent", read_only=True, allow_null=True)
    contactPhone = serializers.CharField(source="contact_phone", read_only=True)
    feedback = serializers.SerializerMethodField()
    resolvedAt = serializers.DateTimeField(source="resolved_at", read_only=True)
    closedAt = serializers.DateTimeField(source="closed_at", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Complaint
        fields = [
            "id",
            "title",
            "description",
            "category",
            "priority",
            "status",
            "user",
            "assignedAgent",
            "contactPhone",
            "address",
            "resolution",
            "feedback",
            "resolvedAt",
            "closedAt",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields

    def get_feedback(self, complaint: Complaint) -> Optional[Dict[str, Any]]:
        if complaint.feedback_rating is None:
            return None
        submitted_at = complaint.feedback_submitted_at
        return {
            "rating": complaint.feedback_rating,
            "comment": complaint.feedback_comment,
            "submittedAt": submitted_at.isoformat() if submitted_at else None,
        }


class ComplaintCreateSerializer(serializers.Serializer):
    title = serializers.CharField(min_length=5, max_length=200)
    description = serializers.CharField(min_length=10, max_length=2000)
    category = serializers.ChoiceField(choices=Complaint.CATEGORY_CHOICES)
    priority = serializers.ChoiceField(choices=Complaint.PRIORITY_CHOICES, default=Complaint.MEDIUM)
    contactPhone = serializers.CharField(
        source="contact_phone", max_length=32, required=False, allow_blank=True
    )
    address = serializers.CharField(max_length=500, required=False, allow_blank=True)


class MessageSerializer(serializers.ModelSerializer):
    messageType = serializers.CharField(source="message_type", read_only=True)
    sender = serializers.CharField(source="sender.display_role", read_only=True)
    senderName = serializers.CharField(source="sender.name", read_only=True)
    isRead = serializers.BooleanField(source="is_read", read_only=True)
    readAt = serializers.DateTimeField(source="read_at", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "content",
            "messageType",
            "sender",
            "senderName",
            "isRead",
            "readAt",
            "createdAt",
        ]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(min_length=1, max_length=1000)


class FeedbackSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


RESOLUTION_MAX_LENGTH = 2000


class ResolutionSerializer(serializers.Serializer):
    resolution = serializers.CharField(max_length=RESOLUTION_MAX_LENGTH)


class StatusUpdateSerializer(serializers.Serializer):
    # Raw value; the lifecycle decides whether it names a status.
    status = serializers.JSONField(default=None, allow_null=True)


class AssignSerializer(serializers.Serializer):
    agentId = serializers.JSONField(default=None, allow_null=True)
