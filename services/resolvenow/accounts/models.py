"""Database models for ResolveNow accounts."""
from __future__ import annotations

from django.contrib.auth.hashers import check_password, make_password
from django.db import models


class User(models.Model):
    """A person who files, works on, or oversees complaints."""

    USER = "user"
    AGENT = "agent"
    ADMIN = "admin"

    ROLE_CHOICES = [
        (USER, "User"),
        (AGENT, "Agent"),
        (ADMIN, "Administrator"),
    ]

    name = models.CharField(max_length=100)
    email = models.EmailField(unique=True)
    password = models.CharField(max_length=128)
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=USER)
    is_active = models.BooleanField(default=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.CharField(max_length=500, blank=True)
    last_login = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "id"]
        indexes = [models.Index(fields=["role", "is_active"], name="accounts_user_role_active_idx")]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}> ({self.role})"

    # DRF's IsAuthenticated inspects this on request.user.
    is_authenticated = True
    is_anonymous = False

    def set_password(self, raw_password: str) -> None:
        self.password = make_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password(raw_password, self.password)

    @property
    def display_role(self) -> str:
        """Thread tag shown next to messages: customers are ``user``, staff ``agent``."""

        return self.USER if self.role == self.USER else self.AGENT
