"""Websocket endpoint for complaint notifications."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from rest_framework.exceptions import APIException

from accounts.authentication import authenticate_token
from complaints.lifecycle import get_complaint

from .registry import registry

logger = logging.getLogger(__name__)

UNAUTHENTICATED_CLOSE_CODE = 4401

JOIN = "join-complaint"
LEAVE = "leave-complaint"


def resolve_principal(token: Optional[str]):
    return authenticate_token(token)


def check_complaint_access(complaint_id: int, principal) -> None:
    """Raise unless ``principal`` could read the complaint over HTTP."""

    get_complaint(complaint_id, principal)


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """Relays lifecycle events to a browser.

    Every connection receives global events. Complaint events arrive only
    after the client joins that complaint's channel, which requires the same
    access the REST API enforces for reading the complaint.
    """

    principal: Any = None

    async def connect(self) -> None:
        query = parse_qs(self.scope.get("query_string", b"").decode())
        token = (query.get("token") or [None])[0]
        try:
            self.principal = await database_sync_to_async(resolve_principal)(token)
        except APIException:
            logger.info("Rejected websocket connection %s", self.channel_name)
            await self.close(code=UNAUTHENTICATED_CLOSE_CODE)
            return

        await self.accept()
        registry.connect(self.channel_name)
        logger.info("User %s connected on %s", self.principal.pk, self.channel_name)

    async def disconnect(self, code: int) -> None:
        registry.disconnect(self.channel_name)
        if self.principal is not None:
            logger.info("User %s disconnected (%s)", self.principal.pk, code)

    async def receive_json(self, content: Dict[str, Any], **kwargs) -> None:
        action = content.get("action") if isinstance(content, dict) else None
        if action not in {JOIN, LEAVE}:
            await self.send_json({"event": "error", "payload": {"message": "Unknown action"}})
            return

        try:
            complaint_id = int(content.get("complaintId"))
        except (TypeError, ValueError):
            await self.send_json({"event": "error", "payload": {"message": "Invalid complaint id"}})
            return

        if action == LEAVE:
            registry.leave(str(complaint_id), self.channel_name)
            logger.info("User %s left complaint channel %s", self.principal.pk, complaint_id)
            await self.send_json({"event": "left", "payload": {"complaintId": complaint_id}})
            return

        try:
            await database_sync_to_async(check_complaint_access)(complaint_id, self.principal)
        except APIException as exc:
            logger.info(
                "User %s refused complaint channel %s: %s", self.principal.pk, complaint_id, exc
            )
            await self.send_json(
                {
                    "event": "error",
                    "payload": {"complaintId": complaint_id, "message": str(exc.detail)},
                }
            )
            return

        registry.join(str(complaint_id), self.channel_name)
        logger.info("User %s joined complaint channel %s", self.principal.pk, complaint_id)
        await self.send_json({"event": "joined", "payload": {"complaintId": complaint_id}})

    async def realtime_event(self, message: Dict[str, Any]) -> None:
        await self.send_json({"event": message["event"], "payload": message["payload"]})
