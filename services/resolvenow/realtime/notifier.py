"""Best-effort fan-out of lifecycle events to websocket subscribers."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from .registry import ChannelRegistry, registry as default_registry

logger = logging.getLogger(__name__)

GLOBAL = None

NEW_COMPLAINT = "new-complaint"
COMPLAINT_ASSIGNED = "complaint-assigned"
STATUS_UPDATED = "status-updated"
NEW_MESSAGE = "new-message"
COMPLAINT_RESOLVED = "complaint-resolved"

# Consumer method that receives layer messages ("realtime.event" -> realtime_event).
EVENT_MESSAGE_TYPE = "realtime.event"


def publish(
    scope: Optional[Union[int, str]],
    event: str,
    payload: Dict[str, Any],
    registry: Optional[ChannelRegistry] = None,
) -> int:
    """Deliver ``event`` to a complaint channel, or to everyone when ``scope`` is ``GLOBAL``.

    Delivery is at-most-once with no replay. A handle that cannot be reached
    is logged and skipped. Returns the number of handles the event was handed to.
    """

    registry = registry or default_registry
    handles = registry.everyone() if scope is GLOBAL else registry.members(str(scope))
    if not handles:
        return 0

    layer = get_channel_layer()
    if layer is None:
        logger.warning("No channel layer configured; dropping %s event", event)
        return 0

    message = {"type": EVENT_MESSAGE_TYPE, "event": event, "payload": payload}
    delivered = 0
    for handle in handles:
        try:
            async_to_sync(layer.send)(handle, message)
        except Exception:  # noqa: BLE001 - delivery failures never reach the caller
            logger.warning("Dropped %s event for connection %s", event, handle, exc_info=True)
            continue
        delivered += 1

    logger.debug(
        "Published %s to %s connection(s) on %s", event, delivered, scope or "global channel"
    )
    return delivered
