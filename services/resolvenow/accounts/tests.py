"""Tests for authentication and user administration."""
from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from jose import jwt
from rest_framework.test import APIClient

from resolvenow_service.exceptions import Unauthenticated

from .authentication import authenticate_token, issue_token
from .models import User


def make_user(email: str, role: str = User.USER, **extra) -> User:
    return User.objects.create(
        name=extra.pop("name", email.split("@")[0].title()),
        email=email,
        role=role,
        password="!",
        **extra,
    )


class AuthApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()

    def test_register_returns_token(self) -> None:
        payload = {"name": "Ada Lovelace", "email": "Ada@Example.com", "password": "engine42"}
        response = self.client.post(reverse("auth-register"), payload, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["user"]["email"], "ada@example.com")
        self.assertEqual(response.data["user"]["role"], User.USER)
        self.assertEqual(authenticate_token(response.data["token"]).email, "ada@example.com")

        duplicate = self.client.post(reverse("auth-register"), payload, format="json")
        self.assertEqual(duplicate.status_code, 400)
        self.assertIn("email", duplicate.data["errors"])

    def test_register_validates_fields(self) -> None:
        response = self.client.post(
            reverse("auth-register"),
            {"name": "A", "email": "not-an-email", "password": "123"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(set(response.data["errors"]), {"name", "email", "password"})

    def test_login_stamps_last_login(self) -> None:
        user = make_user("grace@example.com")
        user.set_password("compiler")
        user.save()

        response = self.client.post(
            reverse("auth-login"),
            {"email": "grace@example.com", "password": "compiler"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("token", response.data)
        user.refresh_from_db()
        self.assertIsNotNone(user.last_login)

        wrong = self.client.post(
            reverse("auth-login"),
            {"email": "grace@example.com", "password": "nope"},
            format="json",
        )
        self.assertEqual(wrong.status_code, 400)

    def test_login_rejects_inactive_account(self) -> None:
        user = make_user("idle@example.com", is_active=False)
        user.set_password("secret1")
        user.save()

        response = self.client.post(
            reverse("auth-login"),
            {"email": "idle@example.com", "password": "secret1"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_login_accepts_path_without_trailing_slash(self) -> None:
        user = make_user("ken@example.com")
        user.set_password("unix1969")
        user.save()

        for path in ("/api/auth/login", "/api/auth/login/"):
            response = self.client.post(
                path, {"email": "ken@example.com", "password": "unix1969"}, format="json"
            )
            self.assertEqual(response.status_code, 200, path)
            self.assertIn("token", response.data)

    def test_profile_read_and_update(self) -> None:
        user = make_user("linus@example.com")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(user)}")

        response = self.client.get(reverse("auth-profile"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["user"]["email"], "linus@example.com")
        self.assertNotIn("password", response.data["user"])

        response = self.client.put(
            reverse("auth-profile"),
            {"name": "Linus T", "phone": "+1 555 0100", "address": "1 Kernel Way"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        user.refresh_from_db()
        self.assertEqual(user.name, "Linus T")
        self.assertEqual(user.address, "1 Kernel Way")


class AuthenticationGateTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.user = make_user("gate@example.com")

    def test_missing_token_is_unauthenticated(self) -> None:
        response = self.client.get(reverse("auth-profile"))
        self.assertEqual(response.status_code, 401)

    def test_malformed_token_is_unauthenticated(self) -> None:
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not.a.jwt")
        response = self.client.get(reverse("auth-profile"))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["code"], "unauthenticated")

    def test_expired_token_is_unauthenticated(self) -> None:
        expired = jwt.encode(
            {"sub": str(self.user.pk), "exp": int((timezone.now() - timedelta(minutes=1)).timestamp())},
            settings.RESOLVENOW_JWT_SECRET,
            algorithm=settings.RESOLVENOW_JWT_ALGORITHM,
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {expired}")
        self.assertEqual(self.client.get(reverse("auth-profile")).status_code, 401)

    def test_deleted_or_inactive_user_is_unauthenticated(self) -> None:
        token = issue_token(self.user)
        self.user.is_active = False
        self.user.save()
        with self.assertRaises(Unauthenticated):
            authenticate_token(token)

        self.user.delete()
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        self.assertEqual(self.client.get(reverse("auth-profile")).status_code, 401)


class AdminUserApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.admin = make_user("root@example.com", role=User.ADMIN)
        self.agent = make_user("agent@example.com", role=User.AGENT)
        self.customer = make_user("customer@example.com")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.admin)}")

    def test_list_users_filters_by_role(self) -> None:
        response = self.client.get(reverse("admin-user-list"), {"role": "agent"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["pagination"]["total"], 1)
        self.assertEqual(response.data["users"][0]["email"], "agent@example.com")

    def test_change_role_and_status(self) -> None:
        response = self.client.put(
            reverse("admin-user-role", args=[self.customer.pk]), {"role": "agent"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.role, User.AGENT)

        invalid = self.client.put(
            reverse("admin-user-role", args=[self.customer.pk]), {"role": "owner"}, format="json"
        )
        self.assertEqual(invalid.status_code, 400)

        response = self.client.put(
            reverse("admin-user-set-active", args=[self.agent.pk]), {"isActive": False}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.agent.refresh_from_db()
        self.assertFalse(self.agent.is_active)

        agents = self.client.get(reverse("admin-agents"))
        self.assertEqual(
            [entry["email"] for entry in agents.data["agents"]], ["customer@example.com"]
        )

    def test_roles_are_exact(self) -> None:
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.agent)}")
        self.assertEqual(self.client.get(reverse("admin-user-list")).status_code, 403)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.admin)}")
        self.assertEqual(self.client.get(reverse("agent-stats")).status_code, 403)

    def test_unknown_user_is_not_found(self) -> None:
        response = self.client.put(reverse("admin-user-role", args=[9999]), {"role": "agent"}, format="json")
        self.assertEqual(response.status_code, 404)
