"""Tests for the complaint lifecycle, message threads and statistics."""
from __future__ import annotations

from typing import Any, Dict
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.authentication import issue_token
from accounts.models import User
from realtime import notifier
from realtime.registry import registry

from .models import Complaint, Message


def make_user(email: str, role: str = User.USER, **extra) -> User:
    return User.objects.create(
        name=extra.pop("name", email.split("@")[0].title()),
        email=email,
        role=role,
        password="!",
        **extra,
    )


class ComplaintApiTestCase(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.owner = make_user("owner@example.com")
        self.stranger = make_user("stranger@example.com")
        self.agent = make_user("agent@example.com", role=User.AGENT, name="Agent A")
        self.other_agent = make_user("agent2@example.com", role=User.AGENT)
        self.admin = make_user("admin@example.com", role=User.ADMIN)

        self.publish_patcher = mock.patch("realtime.notifier.publish")
        self.publish = self.publish_patcher.start()
        self.addCleanup(self.publish_patcher.stop)

    def login(self, user: User) -> None:
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(user)}")

    def create_complaint(self, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "title": "Broken item",
            "description": "The item arrived with a cracked screen.",
            "category": "Product Quality",
        }
        payload.update(overrides)
        self.login(self.owner)
        response = self.client.post(reverse("complaint-list"), payload, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        return response.data["complaint"]

    def assign(self, complaint_id: int, agent: User) -> Any:
        self.login(self.admin)
        return self.client.put(
            reverse("admin-complaint-assign", args=[complaint_id]), {"agentId": agent.pk}, format="json"
        )

    def set_status(self, complaint_id: int, status_value: Any, agent: User) -> Any:
        self.login(agent)
        return self.client.put(
            reverse("agent-complaint-set-status", args=[complaint_id]),
            {"status": status_value},
            format="json",
        )


class ComplaintLifecycleTests(ComplaintApiTestCase):
    def test_create_starts_pending_and_unassigned(self) -> None:
        complaint = self.create_complaint(priority="high", contactPhone="555-0100")
        self.assertEqual(complaint["status"], Complaint.PENDING)
        self.assertEqual(complaint["priority"], "high")
        self.assertEqual(complaint["contactPhone"], "555-0100")
        self.assertIsNone(complaint["assignedAgent"])
        self.assertIsNone(complaint["resolvedAt"])
        self.assertIsNone(complaint["closedAt"])
        self.assertEqual(complaint["user"]["id"], self.owner.pk)

        self.publish.assert_called_once()
        scope, event, payload = self.publish.call_args.args
        self.assertIs(scope, notifier.GLOBAL)
        self.assertEqual(event, notifier.NEW_COMPLAINT)
        self.assertEqual(payload["complaint"]["id"], complaint["id"])

    def test_create_defaults_priority_to_medium(self) -> None:
        self.assertEqual(self.create_complaint()["priority"], Complaint.MEDIUM)

    def test_create_rejects_invalid_fields(self) -> None:
        self.login(self.owner)
        response = self.client.post(
            reverse("complaint-list"),
            {"title": "Bad", "description": "short", "category": "Weather", "priority": "asap"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            set(response.data["errors"]), {"title", "description", "category", "priority"}
        )
        self.assertFalse(Complaint.objects.exists())
        self.publish.assert_not_called()

    def test_create_requires_authentication(self) -> None:
        response = self.client.post(reverse("complaint-list"), {}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_assign_resolve_scenario(self) -> None:
        complaint = self.create_complaint()
        self.assertEqual(complaint["status"], "pending")

        response = self.assign(complaint["id"], self.agent)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["complaint"]["status"], "in-progress")
        self.assertEqual(response.data["complaint"]["assignedAgent"]["id"], self.agent.pk)
        self.publish.assert_called_with(
            notifier.GLOBAL,
            notifier.COMPLAINT_ASSIGNED,
            {
                "complaintId": complaint["id"],
                "agentName": "Agent A",
                "message": "Complaint has been assigned to an agent",
            },
        )

        self.login(self.agent)
        response = self.client.put(
            reverse("agent-complaint-resolution", args=[complaint["id"]]),
            {"resolution": "Replaced item"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        resolved = response.data["complaint"]
        self.assertEqual(resolved["status"], "resolved")
        self.assertEqual(resolved["resolution"], "Replaced item")
        self.assertIsNotNone(resolved["resolvedAt"])

        system_messages = Message.objects.filter(complaint_id=complaint["id"], message_type=Message.SYSTEM)
        self.assertEqual(
            list(system_messages.values_list("content", flat=True)),
            ["Complaint resolved: Replaced item"],
        )
        scope, event, payload = self.publish.call_args.args
        self.assertEqual(scope, complaint["id"])
        self.assertEqual(event, notifier.COMPLAINT_RESOLVED)
        self.assertEqual(payload["resolution"], "Replaced item")

    def test_resolve_requires_text(self) -> None:
        complaint = self.create_complaint()
        self.assign(complaint["id"], self.agent)
        self.login(self.agent)
        response = self.client.put(
            reverse("agent-complaint-resolution", args=[complaint["id"]]),
            {"resolution": "   "},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("resolution", response.data["errors"])
        self.assertEqual(Complaint.objects.get(pk=complaint["id"]).status, Complaint.IN_PROGRESS)

    def test_assign_rejects_anything_but_an_active_agent(self) -> None:
        complaint = self.create_complaint()
        inactive = make_user("retired@example.com", role=User.AGENT, is_active=False)

        for candidate in (self.stranger.pk, self.admin.pk, inactive.pk, 424242, "abc", None):
            self.login(self.admin)
            response = self.client.put(
                reverse("admin-complaint-assign", args=[complaint["id"]]),
                {"agentId": candidate},
                format="json",
            )
            self.assertEqual(response.status_code, 400, candidate)
            self.assertEqual(response.data["code"], "invalid_assignee")

        self.assertIsNone(Complaint.objects.get(pk=complaint["id"]).assigned_agent)

    def test_assign_missing_complaint(self) -> None:
        self.assertEqual(self.assign(9999, self.agent).status_code, 404)

    def test_assign_is_admin_only(self) -> None:
        complaint = self.create_complaint()
        self.login(self.agent)
        response = self.client.put(
            reverse("admin-complaint-assign", args=[complaint["id"]]), {"agentId": self.agent.pk}, format="json"
        )
        self.assertEqual(response.status_code, 403)

    def test_status_update_by_assignee_appends_one_system_message(self) -> None:
        complaint = self.create_complaint()
        self.assign(complaint["id"], self.agent)

        for status_value, label in (
            ("pending", "PENDING"),
            ("in-progress", "IN PROGRESS"),
            ("resolved", "RESOLVED"),
            ("closed", "CLOSED"),
        ):
            before = Message.objects.filter(complaint_id=complaint["id"]).count()
            response = self.set_status(complaint["id"], status_value, self.agent)
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.data["complaint"]["status"], status_value)

            thread = Message.objects.filter(complaint_id=complaint["id"])
            self.assertEqual(thread.count(), before + 1)
            latest = thread.last()
            self.assertEqual(latest.message_type, Message.SYSTEM)
            self.assertEqual(latest.content, f"Complaint status updated to: {label}")
            self.publish.assert_called_with(
                complaint["id"],
                notifier.STATUS_UPDATED,
                {
                    "complaintId": complaint["id"],
                    "status": status_value,
                    "message": f"Complaint status updated to {status_value.replace('-', ' ')}",
                },
            )

    def test_status_update_by_other_agent_is_denied(self) -> None:
        complaint = self.create_complaint()
        self.assign(complaint["id"], self.agent)

        response = self.set_status(complaint["id"], "resolved", self.other_agent)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(Complaint.objects.get(pk=complaint["id"]).status, Complaint.IN_PROGRESS)
        self.assertFalse(Message.objects.filter(complaint_id=complaint["id"]).exists())

    def test_status_update_validates_status(self) -> None:
        complaint = self.create_complaint()
        self.assign(complaint["id"], self.agent)
        for bogus in ("reopened", "", None, ["resolved"]):
            response = self.set_status(complaint["id"], bogus, self.agent)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.data["code"], "invalid_status")

    def test_status_update_missing_complaint(self) -> None:
        self.assertEqual(self.set_status(9999, "closed", self.agent).status_code, 404)

    def test_resolved_and_closed_timestamps_are_set_once(self) -> None:
        complaint = self.create_complaint()
        self.assign(complaint["id"], self.agent)

        first_resolved = self.set_status(complaint["id"], "resolved", self.agent).data["complaint"]["resolvedAt"]
        self.assertIsNotNone(first_resolved)
        first_closed = self.set_status(complaint["id"], "closed", self.agent).data["complaint"]["closedAt"]
        self.assertIsNotNone(first_closed)

        self.set_status(complaint["id"], "pending", self.agent)
        again = self.set_status(complaint["id"], "resolved", self.agent).data["complaint"]
        self.assertEqual(again["resolvedAt"], first_resolved)

        self.login(self.agent)
        resolution = self.client.put(
            reverse("agent-complaint-resolution", args=[complaint["id"]]),
            {"resolution": "Second fix"},
            format="json",
        ).data["complaint"]
        self.assertEqual(resolution["resolvedAt"], first_resolved)

        closed_again = self.set_status(complaint["id"], "closed", self.agent).data["complaint"]
        self.assertEqual(closed_again["closedAt"], first_closed)
        self.assertEqual(closed_again["resolvedAt"], first_resolved)

    def test_backward_transitions_are_allowed_by_default(self) -> None:
        complaint = self.create_complaint()
        self.assign(complaint["id"], self.agent)
        self.set_status(complaint["id"], "resolved", self.agent)
        self.assertEqual(self.set_status(complaint["id"], "pending", self.agent).status_code, 200)

    @override_settings(RESOLVENOW_STRICT_TRANSITIONS=True)
    def test_strict_transitions_reject_backward_moves(self) -> None:
        complaint = self.create_complaint()
        self.assign(complaint["id"], self.agent)
        self.assertEqual(self.set_status(complaint["id"], "resolved", self.agent).status_code, 200)

        response = self.set_status(complaint["id"], "pending", self.agent)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "invalid_status")
        self.assertEqual(Complaint.objects.get(pk=complaint["id"]).status, Complaint.RESOLVED)

        self.assertEqual(self.set_status(complaint["id"], "closed", self.agent).status_code, 200)
        self.assertEqual(self.assign(complaint["id"], self.agent).status_code, 400)

    def test_notification_failure_does_not_undo_the_write(self) -> None:
        complaint = self.create_complaint()
        self.assign(complaint["id"], self.agent)

        # Let the real notifier run against a connection that cannot be reached.
        self.publish_patcher.stop()
        registry.join(str(complaint["id"]), "specific.dead-connection")
        self.addCleanup(registry.clear)
        layer = mock.Mock()
        layer.send = mock.AsyncMock(side_effect=RuntimeError("socket gone"))

        with mock.patch("realtime.notifier.get_channel_layer", return_value=layer):
            response = self.set_status(complaint["id"], "closed", self.agent)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(Complaint.objects.get(pk=complaint["id"]).status, Complaint.CLOSED)
        layer.send.assert_awaited_once()


class ComplaintAccessTests(ComplaintApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.complaint = self.create_complaint()

    def get(self, user: User, complaint_id: int | None = None) -> Any:
        self.login(user)
        return self.client.get(reverse("complaint-detail", args=[complaint_id or self.complaint["id"]]))

    def test_owner_and_admin_can_read(self) -> None:
        self.assertEqual(self.get(self.owner).status_code, 200)
        self.assertEqual(self.get(self.admin).status_code, 200)

    def test_stranger_is_denied(self) -> None:
        response = self.get(self.stranger)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["code"], "access_denied")

    def test_agents_only_see_assigned_complaints(self) -> None:
        self.assertEqual(self.get(self.agent).status_code, 403)
        self.assign(self.complaint["id"], self.agent)
        self.assertEqual(self.get(self.agent).status_code, 200)
        self.assertEqual(self.get(self.other_agent).status_code, 403)

        self.login(self.agent)
        detail = self.client.get(reverse("agent-complaint-detail", args=[self.complaint["id"]]))
        self.assertEqual(detail.status_code, 200)

    def test_missing_complaint(self) -> None:
        self.assertEqual(self.get(self.admin, 9999).status_code, 404)


class MessageThreadTests(ComplaintApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.complaint = self.create_complaint()
        self.assign(self.complaint["id"], self.agent)

    def post(self, user: User, content: Any) -> Any:
        self.login(user)
        return self.client.post(
            reverse("complaint-messages", args=[self.complaint["id"]]), {"content": content}, format="json"
        )

    def test_thread_preserves_creation_order(self) -> None:
        authors = [self.owner, self.agent, self.owner, self.admin, self.agent, self.owner]
        for index, author in enumerate(authors):
            response = self.post(author, f"message {index}")
            self.assertEqual(response.status_code, 201)

        self.login(self.owner)
        response = self.client.get(reverse("complaint-messages", args=[self.complaint["id"]]))
        self.assertEqual(response.status_code, 200)
        thread = response.data["messages"]
        self.assertEqual([entry["content"] for entry in thread], [f"message {i}" for i in range(6)])
        self.assertEqual(
            [entry["sender"] for entry in thread],
            ["user", "agent", "user", "agent", "agent", "user"],
        )
        self.assertTrue(all(entry["messageType"] == "text" for entry in thread))

    def test_post_broadcasts_to_complaint_channel(self) -> None:
        response = self.post(self.agent, "  We are on it.  ")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["messageData"]["content"], "We are on it.")
        self.assertEqual(response.data["messageData"]["sender"], "agent")
        self.assertEqual(response.data["messageData"]["senderName"], "Agent A")

        scope, event, payload = self.publish.call_args.args
        self.assertEqual(scope, self.complaint["id"])
        self.assertEqual(event, notifier.NEW_MESSAGE)
        self.assertEqual(payload["id"], response.data["messageData"]["id"])

    def test_content_length_is_enforced(self) -> None:
        self.assertEqual(self.post(self.owner, "").status_code, 400)
        self.assertEqual(self.post(self.owner, "   ").status_code, 400)
        self.assertEqual(self.post(self.owner, "x" * 1001).status_code, 400)
        self.assertEqual(self.post(self.owner, "x" * 1000).status_code, 201)

    def test_non_participants_cannot_post_or_read(self) -> None:
        self.assertEqual(self.post(self.stranger, "hello").status_code, 403)
        self.assertEqual(self.post(self.other_agent, "hello").status_code, 403)

        self.login(self.stranger)
        response = self.client.get(reverse("complaint-messages", args=[self.complaint["id"]]))
        self.assertEqual(response.status_code, 403)

    def test_mark_read_only_touches_other_party(self) -> None:
        self.post(self.owner, "Any update?")
        self.post(self.agent, "Shipping a replacement.")

        self.login(self.owner)
        response = self.client.post(reverse("complaint-read", args=[self.complaint["id"]]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["updated"], 1)

        mine = Message.objects.get(content="Any update?")
        theirs = Message.objects.get(content="Shipping a replacement.")
        self.assertFalse(mine.is_read)
        self.assertTrue(theirs.is_read)
        self.assertIsNotNone(theirs.read_at)


class FeedbackTests(ComplaintApiTestCase):
    def test_feedback_after_resolution(self) -> None:
        complaint = self.create_complaint()
        url = reverse("complaint-feedback", args=[complaint["id"]])

        self.login(self.owner)
        early = self.client.post(url, {"rating": 5}, format="json")
        self.assertEqual(early.status_code, 400)
        self.assertEqual(early.data["code"], "invalid_status")

        self.assign(complaint["id"], self.agent)
        self.set_status(complaint["id"], "resolved", self.agent)

        self.login(self.stranger)
        self.assertEqual(self.client.post(url, {"rating": 4}, format="json").status_code, 403)

        self.login(self.owner)
        self.assertEqual(self.client.post(url, {"rating": 6}, format="json").status_code, 400)
        response = self.client.post(url, {"rating": 4, "comment": "Quick fix"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["complaint"]["feedback"]["rating"], 4)
        self.assertEqual(response.data["complaint"]["feedback"]["comment"], "Quick fix")

        again = self.client.post(url, {"rating": 1}, format="json")
        self.assertEqual(again.status_code, 400)


class ListingTests(ComplaintApiTestCase):
    def test_my_complaints_are_paginated_newest_first(self) -> None:
        for index in range(12):
            self.create_complaint(title=f"Complaint number {index}")
        self.login(self.stranger)
        self.client.post(
            reverse("complaint-list"),
            {"title": "Someone else", "description": "Not the owner's complaint.", "category": "Other"},
            format="json",
        )

        self.login(self.owner)
        response = self.client.get(reverse("complaint-my-complaints"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["pagination"], {"current": 1, "pages": 2, "total": 12})
        self.assertEqual(len(response.data["complaints"]), 10)
        self.assertEqual(response.data["complaints"][0]["title"], "Complaint number 11")

        second = self.client.get(reverse("complaint-my-complaints"), {"page": 2})
        self.assertEqual(len(second.data["complaints"]), 2)

    def test_agent_queue_and_admin_filters(self) -> None:
        first = self.create_complaint(priority="urgent")
        self.create_complaint(category="Billing Problem")
        self.assign(first["id"], self.agent)

        self.login(self.agent)
        queue = self.client.get(reverse("agent-assigned-complaints"))
        self.assertEqual(queue.status_code, 200)
        self.assertEqual([c["id"] for c in queue.data["complaints"]], [first["id"]])
        filtered = self.client.get(reverse("agent-assigned-complaints"), {"status": "resolved"})
        self.assertEqual(filtered.data["pagination"]["total"], 0)

        self.login(self.admin)
        urgent = self.client.get(reverse("admin-complaint-list"), {"priority": "urgent"})
        self.assertEqual([c["id"] for c in urgent.data["complaints"]], [first["id"]])
        billing = self.client.get(reverse("admin-complaint-list"), {"category": "Billing Problem"})
        self.assertEqual(billing.data["pagination"]["total"], 1)
        by_agent = self.client.get(reverse("admin-complaint-list"), {"assignedAgent": self.agent.pk})
        self.assertEqual(by_agent.data["pagination"]["total"], 1)

        recent = self.client.get(reverse("admin-recent-complaints"), {"limit": 1})
        self.assertEqual(len(recent.data["complaints"]), 1)


class StatsTests(ComplaintApiTestCase):
    def test_counts_by_scope(self) -> None:
        ids = [self.create_complaint(title=f"Issue number {i}")["id"] for i in range(4)]
        self.assign(ids[0], self.agent)
        self.assign(ids[1], self.agent)
        self.set_status(ids[1], "resolved", self.agent)
        self.assign(ids[2], self.other_agent)
        self.set_status(ids[2], "closed", self.other_agent)

        self.login(self.admin)
        response = self.client.get(reverse("admin-stats"))
        self.assertEqual(response.status_code, 200)
        stats = response.data
        self.assertEqual(stats["totalComplaints"], Complaint.objects.count())
        self.assertEqual(
            stats["pendingComplaints"]
            + stats["inProgressComplaints"]
            + stats["resolvedComplaints"]
            + stats["closedComplaints"],
            stats["totalComplaints"],
        )
        self.assertEqual(stats["totalUsers"], 2)
        self.assertEqual(stats["totalAgents"], 2)
        self.assertEqual(stats["closedComplaints"], 1)

        self.login(self.agent)
        agent_stats = self.client.get(reverse("agent-stats")).data
        self.assertEqual(agent_stats["assignedComplaints"], 2)
        self.assertEqual(agent_stats["inProgressComplaints"], 1)
        self.assertEqual(agent_stats["resolvedComplaints"], 1)

        self.login(self.owner)
        user_stats = self.client.get(reverse("complaint-my-stats")).data
        self.assertEqual(user_stats["totalComplaints"], 4)
        self.assertEqual(user_stats["pendingComplaints"], 1)

    def test_persistence_failure_is_internal_error(self) -> None:
        self.login(self.admin)
        with mock.patch("complaints.stats.global_stats", side_effect=DatabaseError("down")):
            response = self.client.get(reverse("admin-stats"))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["code"], "internal_error")

    def test_health(self) -> None:
        response = self.client.get(reverse("resolvenow-health"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "ok")


class RequestBodyTests(ComplaintApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.complaint = self.create_complaint()
        self.assign(self.complaint["id"], self.agent)

    def test_non_object_bodies_are_validation_errors(self) -> None:
        cases = (
            (self.agent, "agent-complaint-set-status", []),
            (self.agent, "agent-complaint-resolution", ["Replaced item"]),
            (self.admin, "admin-complaint-assign", ["x"]),
        )
        for user, name, body in cases:
            self.login(user)
            response = self.client.put(reverse(name, args=[self.complaint["id"]]), body, format="json")
            self.assertEqual(response.status_code, 400, name)
            self.assertEqual(response.data["code"], "invalid", name)

        complaint = Complaint.objects.get(pk=self.complaint["id"])
        self.assertEqual(complaint.status, Complaint.IN_PROGRESS)
        self.assertEqual(complaint.assigned_agent, self.agent)

    def test_long_resolution_is_kept_whole(self) -> None:
        text = "Replaced the unit and refunded shipping. " * 40
        self.login(self.agent)
        response = self.client.put(
            reverse("agent-complaint-resolution", args=[self.complaint["id"]]),
            {"resolution": text},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        system_message = Message.objects.get(
            complaint_id=self.complaint["id"], message_type=Message.SYSTEM
        )
        self.assertEqual(system_message.content, f"Complaint resolved: {text.strip()}")

    def test_resolution_over_the_limit_is_rejected(self) -> None:
        self.login(self.agent)
        response = self.client.put(
            reverse("agent-complaint-resolution", args=[self.complaint["id"]]),
            {"resolution": "x" * 2001},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("resolution", response.data["errors"])
        self.assertEqual(Complaint.objects.get(pk=self.complaint["id"]).status, Complaint.IN_PROGRESS)
        self.assertFalse(Message.objects.filter(complaint_id=self.complaint["id"]).exists())


class AgentReplyTests(ComplaintApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.complaint = self.create_complaint()
        self.assign(self.complaint["id"], self.agent)
        self.url = reverse("agent-complaint-messages", args=[self.complaint["id"]])

    def test_assignee_replies_as_agent(self) -> None:
        self.login(self.agent)
        response = self.client.post(self.url, {"content": "Replacement ships today."}, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["messageData"]["sender"], "agent")
        self.assertEqual(response.data["messageData"]["senderName"], "Agent A")

        scope, event, _ = self.publish.call_args.args
        self.assertEqual(scope, self.complaint["id"])
        self.assertEqual(event, notifier.NEW_MESSAGE)

    def test_only_the_assignee_may_reply(self) -> None:
        self.login(self.other_agent)
        response = self.client.post(self.url, {"content": "Hello"}, format="json")
        self.assertEqual(response.status_code, 403)

        self.login(self.owner)
        self.assertEqual(
            self.client.post(self.url, {"content": "Hello"}, format="json").status_code, 403
        )
        self.assertFalse(Message.objects.filter(complaint_id=self.complaint["id"]).exists())


class RoutingTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()

    def test_health_resolves_through_the_url_conf(self) -> None:
        url = reverse("resolvenow-health")
        self.assertTrue(url.startswith("/api/healthz"))
        for path in ("/api/healthz", "/api/healthz/"):
            response = self.client.get(path)
            self.assertEqual(response.status_code, 200, path)
            self.assertEqual(response.data["service"], "resolvenow")

    @mock.patch("realtime.notifier.publish")
    def test_slashless_post_keeps_its_body(self, publish) -> None:
        owner = make_user("slash@example.com")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(owner)}")
        response = self.client.post(
            "/api/complaints",
            {
                "title": "Late delivery",
                "description": "The parcel is two weeks overdue.",
                "category": "Delivery Issue",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["complaint"]["title"], "Late delivery")
        publish.assert_called_once()

    def test_no_browsable_api_root(self) -> None:
        self.assertEqual(self.client.get("/api/").status_code, 404)
