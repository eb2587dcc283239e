"""API views for complaints, agent work queues and admin oversight."""
from __future__ import annotations

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response

from accounts.permissions import IsAdmin, IsAgent
from resolvenow_service.pagination import ComplaintPagination, StaffComplaintPagination

from . import lifecycle, stats, threads
from .models import Complaint
from .serializers import (
    AssignSerializer,
    ComplaintSerializer,
    MessageSerializer,
    StatusUpdateSerializer,
)


def _complaint_response(message: str, complaint: Complaint, status_code: int = status.HTTP_200_OK) -> Response:
    return Response(
        {"message": message, "complaint": ComplaintSerializer(complaint).data},
        status=status_code,
    )


class ComplaintViewSet(viewsets.GenericViewSet):
    """Complaint endpoints available to every authenticated principal."""

    serializer_class = ComplaintSerializer
    pagination_class = ComplaintPagination
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore[override]
        return Complaint.objects.select_related("assigned_agent").filter(user=self.request.user)

    def create(self, request: Request, *args, **kwargs) -> Response:
        complaint = lifecycle.create_complaint(request.user, request.data)
        return _complaint_response(
            "Complaint submitted successfully", complaint, status.HTTP_201_CREATED
        )

    def retrieve(self, request: Request, pk: str, *args, **kwargs) -> Response:
        complaint = lifecycle.get_complaint(int(pk), request.user)
        return Response({"complaint": self.get_serializer(complaint).data})

    @action(detail=False, methods=["get"], url_path="my-complaints")
    def my_complaints(self, request: Request) -> Response:
        """Complaints filed by the caller, newest first."""

        page = self.paginate_queryset(self.get_queryset())
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    @action(detail=False, methods=["get"], url_path="stats")
    def my_stats(self, request: Request) -> Response:
        return Response(stats.user_stats(request.user))

    @action(detail=True, methods=["get", "post"], url_path="messages")
    def messages(self, request: Request, pk: str, *args, **kwargs) -> Response:
        if request.method == "POST":
            message = threads.post_message(int(pk), request.user, request.data)
            return Response(
                {"message": "Message sent successfully", "messageData": MessageSerializer(message).data},
                status=status.HTTP_201_CREATED,
            )
        thread = threads.list_messages(int(pk), request.user)
        return Response({"messages": MessageSerializer(thread, many=True).data})

    @action(detail=True, methods=["post"], url_path="messages/read")
    def read(self, request: Request, pk: str, *args, **kwargs) -> Response:
        """Mark the other party's messages as read."""

        return Response({"updated": threads.mark_read(int(pk), request.user)})

    @action(detail=True, methods=["post"], url_path="feedback")
    def feedback(self, request: Request, pk: str, *args, **kwargs) -> Response:
        complaint = lifecycle.submit_feedback(int(pk), request.user, request.data)
        return _complaint_response("Feedback submitted successfully", complaint)


class AgentComplaintViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Work queue for the calling agent."""

    serializer_class = ComplaintSerializer
    permission_classes = [IsAgent]
    pagination_class = StaffComplaintPagination
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore[override]
        queryset = Complaint.objects.select_related("user").filter(assigned_agent=self.request.user)
        status_filter = self.request.query_params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset

    def retrieve(self, request: Request, pk: str, *args, **kwargs) -> Response:
        complaint = lifecycle.get_complaint(int(pk), request.user)
        return Response({"complaint": self.get_serializer(complaint).data})

    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request: Request, pk: str, *args, **kwargs) -> Response:
        """Move an assigned complaint to another status."""

        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint = lifecycle.update_status(
            int(pk), serializer.validated_data["status"], request.user
        )
        return _complaint_response("Complaint status updated successfully", complaint)

    @action(detail=True, methods=["put"], url_path="resolution")
    def resolution(self, request: Request, pk: str, *args, **kwargs) -> Response:
        """Record the resolution and mark the complaint resolved."""

        complaint = lifecycle.resolve(int(pk), request.data, request.user)
        return _complaint_response("Complaint resolved successfully", complaint)

    @action(detail=True, methods=["post"], url_path="messages")
    def messages(self, request: Request, pk: str, *args, **kwargs) -> Response:
        """Reply on the thread of an assigned complaint."""

        message = threads.post_message(int(pk), request.user, request.data)
        return Response(
            {"message": "Message sent successfully", "messageData": MessageSerializer(message).data},
            status=status.HTTP_201_CREATED,
        )


class AdminComplaintViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Filtered listing and assignment for administrators."""

    serializer_class = ComplaintSerializer
    permission_classes = [IsAdmin]
    pagination_class = StaffComplaintPagination
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore[override]
        queryset = Complaint.objects.select_related("user", "assigned_agent").all()
        params = self.request.query_params
        for param, field in (
            ("status", "status"),
            ("category", "category"),
            ("priority", "priority"),
            ("assignedAgent", "assigned_agent_id"),
        ):
            value = params.get(param)
            if not value:
                continue
            if field == "assigned_agent_id" and not value.isdigit():
                return queryset.none()
            queryset = queryset.filter(**{field: value})
        return queryset

    @action(detail=True, methods=["put"], url_path="assign")
    def assign(self, request: Request, pk: str, *args, **kwargs) -> Response:
        serializer = AssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint = lifecycle.assign(int(pk), serializer.validated_data["agentId"], request.user)
        return _complaint_response("Complaint assigned successfully", complaint)


@api_view(["GET"])
@permission_classes([IsAdmin])
def recent_complaints(request: Request) -> Response:
    try:
        limit = int(request.query_params.get("limit", 10))
    except ValueError:
        limit = 10
    limit = min(max(limit, 1), 100)
    queryset = Complaint.objects.select_related("user", "assigned_agent")[:limit]
    return Response({"complaints": ComplaintSerializer(queryset, many=True).data})


@api_view(["GET"])
@permission_classes([IsAdmin])
def admin_stats(request: Request) -> Response:
    return Response(stats.global_stats())


@api_view(["GET"])
@permission_classes([IsAgent])
def agent_stats(request: Request) -> Response:
    return Response(stats.agent_stats(request.user))


@api_view(["GET"])
@permission_classes([AllowAny])
def health(request: Request) -> Response:
    """Readiness endpoint for orchestration tooling."""

    return Response({"status": "ok", "service": "resolvenow"})
