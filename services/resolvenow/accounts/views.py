"""API views for authentication and user administration."""
from __future__ import annotations

import logging

from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response

from resolvenow_service.exceptions import Forbidden, ValidationError
from resolvenow_service.pagination import UserPagination

from .authentication import issue_token
from .models import User
from .permissions import IsAdmin
from .serializers import (
    ActiveUpdateSerializer,
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    RoleUpdateSerializer,
    UserSerializer,
    UserSummarySerializer,
)

logger = logging.getLogger(__name__)


def _session_payload(user: User, message: str) -> dict:
    return {
        "message": message,
        "token": issue_token(user),
        "user": {"id": user.pk, "name": user.name, "email": user.email, "role": user.role},
    }


@api_view(["POST"])
@permission_classes([AllowAny])
def register(request: Request) -> Response:
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    logger.info("Registered user %s", user.pk)
    return Response(
        _session_payload(user, "User registered successfully"),
        status=status.HTTP_201_CREATED,
    )


@api_view(["POST"])
@permission_classes([AllowAny])
def login(request: Request) -> Response:
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    credentials = serializer.validated_data

    user = User.objects.filter(email=credentials["email"]).first()
    if user is None or not user.check_password(credentials["password"]):
        raise ValidationError({"detail": "Invalid email or password."})
    if not user.is_active:
        raise Forbidden("Your account is deactivated. Please contact support.")

    user.last_login = timezone.now()
    user.save(update_fields=["last_login", "updated_at"])
    logger.info("User %s logged in", user.pk)
    return Response(_session_payload(user, "Login successful"))


@api_view(["GET", "PUT"])
def profile(request: Request) -> Response:
    user: User = request.user
    if request.method == "PUT":
        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(
            {"message": "Profile updated successfully", "user": UserSerializer(user).data}
        )
    return Response({"user": UserSerializer(user).data})


class AdminUserViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """User listing and account management for administrators."""

    serializer_class = UserSerializer
    permission_classes = [IsAdmin]
    pagination_class = UserPagination

    def get_queryset(self):  # type: ignore[override]
        queryset = User.objects.all()
        role = self.request.query_params.get("role")
        if role:
            queryset = queryset.filter(role=role)
        is_active = self.request.query_params.get("isActive")
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.lower() == "true")
        return queryset

    @action(detail=True, methods=["put"], url_path="role")
    def role(self, request: Request, *args, **kwargs) -> Response:
        """Change a user's role."""

        serializer = RoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self.get_object()
        user.role = serializer.validated_data["role"]
        user.save(update_fields=["role", "updated_at"])
        logger.info("Admin %s set role of user %s to %s", request.user.pk, user.pk, user.role)
        return Response(
            {"message": "User role updated successfully", "user": UserSerializer(user).data}
        )

    @action(detail=True, methods=["put"], url_path="status")
    def set_active(self, request: Request, *args, **kwargs) -> Response:
        """Activate or deactivate an account."""

        serializer = ActiveUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self.get_object()
        user.is_active = serializer.validated_data["isActive"]
        user.save(update_fields=["is_active", "updated_at"])
        state = "activated" if user.is_active else "deactivated"
        logger.info("Admin %s %s user %s", request.user.pk, state, user.pk)
        return Response(
            {"message": f"User account {state} successfully", "user": UserSerializer(user).data}
        )


@api_view(["GET"])
@permission_classes([IsAdmin])
def agents(request: Request) -> Response:
    """Active agents, for the assignment picker."""

    queryset = User.objects.filter(role=User.AGENT, is_active=True).order_by("name")
    return Response({"agents": UserSummarySerializer(queryset, many=True).data})
