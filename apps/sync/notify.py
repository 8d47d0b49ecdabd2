"""Push events to every connected device of a store."""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from djangorestframework_camel_case.util import camelize

logger = logging.getLogger(__name__)

EVENT_TYPE = "sync.event"


def store_group(store_id) -> str:
    return f"store_{store_id}"


def notify_store(store_id, target: str, payload: dict) -> bool:
    """Broadcast ``target`` to the store's group.

    Delivery problems are logged and swallowed; the caller's state change has
    already been committed and must not be undone by a dead channel layer.
    """
    if store_id is None:
        return False
    layer = get_channel_layer()
    if layer is None:
        logger.warning("No channel layer configured; dropping %s for store %s", target, store_id)
        return False
    message = {"type": EVENT_TYPE, "target": target, "arguments": [camelize(payload)]}
    try:
        async_to_sync(layer.group_send)(store_group(store_id), message)
    except Exception:
        logger.exception("Failed to send %s to store %s", target, store_id)
        return False
    logger.debug("Sent %s to store %s", target, store_id)
    return True

