"""Bearer token issue and verification."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

from django.conf import settings
from django.utils import timezone
from jose import JWTError, jwt
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.request import Request

from resolvenow_service.exceptions import Unauthenticated

from .models import User

logger = logging.getLogger(__name__)

KEYWORD = "Bearer"


def issue_token(user: User) -> str:
    """Sign a token naming ``user`` that expires after the configured lifetime."""

    now = timezone.now()
    claims: Dict[str, Any] = {
        "sub": str(user.pk),
        "role": user.role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=settings.RESOLVENOW_JWT_EXPIRES_DAYS)).timestamp()),
    }
    return jwt.encode(
        claims, settings.RESOLVENOW_JWT_SECRET, algorithm=settings.RESOLVENOW_JWT_ALGORITHM
    )


def authenticate_token(token: Optional[str]) -> User:
    """Resolve a raw token to an active user or raise ``Unauthenticated``."""

    if not token:
        raise Unauthenticated("No token provided.")

    try:
        claims = jwt.decode(
            token,
            settings.RESOLVENOW_JWT_SECRET,
            algorithms=[settings.RESOLVENOW_JWT_ALGORITHM],
        )
    except JWTError as exc:
        logger.info("Rejected token: %s", exc)
        raise Unauthenticated("Token is invalid or expired.") from exc

    subject = claims.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise Unauthenticated("Token is invalid or expired.") from exc

    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise Unauthenticated("User no longer exists.")
    if not user.is_active:
        raise Unauthenticated("Account is deactivated.")
    return user


class BearerTokenAuthentication(BaseAuthentication):
    """Authenticate ``Authorization: Bearer <token>`` headers."""

    def authenticate(self, request: Request) -> Optional[Tuple[User, str]]:
        header = get_authorization_header(request).split()
        if not header or header[0].lower() != KEYWORD.lower().encode():
            return None
        if len(header) != 2:
            raise Unauthenticated("Malformed authorization header.")

        try:
            token = header[1].decode()
        except UnicodeError as exc:
            raise Unauthenticated("Malformed authorization header.") from exc

        return authenticate_token(token), token

    def authenticate_header(self, request: Request) -> str:
        return KEYWORD
