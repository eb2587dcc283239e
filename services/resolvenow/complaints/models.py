"""Database models for complaints and their message threads."""
from __future__ import annotations

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Complaint(models.Model):
    """A customer complaint tracked through the resolution lifecycle."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (IN_PROGRESS, "In Progress"),
        (RESOLVED, "Resolved"),
        (CLOSED, "Closed"),
    ]
    # Position of each status in the forward-only lifecycle.
    STATUS_ORDER = {PENDING: 0, IN_PROGRESS: 1, RESOLVED: 2, CLOSED: 3}

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    PRIORITY_CHOICES = [
        (LOW, "Low"),
        (MEDIUM, "Medium"),
        (HIGH, "High"),
        (URGENT, "Urgent"),
    ]

    CATEGORY_CHOICES = [
        ("Product Quality", "Product Quality"),
        ("Service Issue", "Service Issue"),
        ("Billing Problem", "Billing Problem"),
        ("Delivery Issue", "Delivery Issue"),
        ("Technical Support", "Technical Support"),
        ("Other", "Other"),
    ]

    title = models.CharField(max_length=200)
    description = models.TextField(max_length=2000)
    category = models.CharField(max_length=32, choices=CATEGORY_CHOICES)
    priority = models.CharField(max_length=16, choices=PRIORITY_CHOICES, default=MEDIUM)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=PENDING)
    user = models.ForeignKey(
        "accounts.User", related_name="complaints", on_delete=models.CASCADE
    )
    assigned_agent = models.ForeignKey(
        "accounts.User",
        related_name="assigned_complaints",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    contact_phone = models.CharField(max_length=32, blank=True)
    address = models.CharField(max_length=500, blank=True)
    resolution = models.TextField(blank=True)
    feedback_rating = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    feedback_comment = models.TextField(blank=True)
    feedback_submitted_at = models.DateTimeField(null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "status"], name="complaint_owner_status_idx"),
            models.Index(fields=["assigned_agent", "status"], name="complaint_agent_status_idx"),
            models.Index(fields=["category", "priority"], name="complaint_cat_priority_idx"),
            models.Index(fields=["-created_at"], name="complaint_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.status})"


class Message(models.Model):
    """An entry in a complaint's conversation. Threads are append-only."""

    TEXT = "text"
    SYSTEM = "system"

    TYPE_CHOICES = [
        (TEXT, "Text"),
        (SYSTEM, "System"),
    ]

    complaint = models.ForeignKey(Complaint, related_name="messages", on_delete=models.CASCADE)
    sender = models.ForeignKey(
        "accounts.User", related_name="messages", on_delete=models.CASCADE
    )
    content = models.TextField()
    message_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TEXT)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["complaint", "created_at"], name="message_thread_idx"),
        ]

    def __str__(self) -> str:
        return f"[{self.message_type}] {self.content[:40]}"
