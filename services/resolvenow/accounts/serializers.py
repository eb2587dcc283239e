"""Serializers for account records and auth payloads."""
from __future__ import annotations

from typing import Any, Dict

from rest_framework import serializers

from .models import User


class UserSerializer(serializers.ModelSerializer):
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    lastLogin = serializers.DateTimeField(source="last_login", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "email",
            "role",
            "isActive",
            "phone",
            "address",
            "lastLogin",
            "createdAt",
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "name", "email"]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100, trim_whitespace=True)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True, trim_whitespace=False)

    def validate_email(self, value: str) -> str:
        email = value.strip().lower()
        if User.objects.filter(email=email).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return email

    def create(self, validated_data: Dict[str, Any]) -> User:
        user = User(name=validated_data["name"], email=validated_data["email"])
        user.set_password(validated_data["password"])
        user.save()
        return user


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False, write_only=True)

    def validate_email(self, value: str) -> str:
        return value.strip().lower()


class ProfileUpdateSerializer(serializers.ModelSerializer):
    name = serializers.CharField(min_length=2, max_length=100, required=False)
    phone = serializers.RegexField(r"^\+?[0-9 ()\-]{7,20}$", required=False)
    address = serializers.CharField(max_length=500, required=False)

    class Meta:
        model = User
        fields = ["name", "phone", "address"]


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)


class ActiveUpdateSerializer(serializers.Serializer):
    isActive = serializers.BooleanField()
