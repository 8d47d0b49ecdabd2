import logging

from asgiref.sync import async_to_sync
from channels.generic.websocket import JsonWebsocketConsumer

from apps.accounts.policies import caller_from_scope

from .hub import HubError, SyncHub
from .notify import store_group

logger = logging.getLogger(__name__)

UNAUTHORIZED_CLOSE_CODE = 4401


class SyncConsumer(JsonWebsocketConsumer):
    """Device connection: joins its store's group and answers invocations.

    Client frames are ``{"type": "invocation", "invocationId", "target",
    "arguments"}``. Replies are ``completion`` frames carrying either
    ``result`` or ``error``; broadcasts arrive as ``event`` frames.
    """

    group_name = None

    def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            logger.warning("Rejected unauthenticated sync connection")
            self.close(code=UNAUTHORIZED_CLOSE_CODE)
            return

        self.caller = caller_from_scope(self.scope)
        self.hub = SyncHub(self.caller, self.channel_name)
        self.accept()
        logger.info("User %s connected to sync hub", self.caller.user_id)

        if self.caller.store_id is not None:
            self.group_name = store_group(self.caller.store_id)
            async_to_sync(self.channel_layer.group_add)(self.group_name, self.channel_name)
            logger.info("Added connection to store group %s", self.caller.store_id)

    def disconnect(self, code):
        logger.info("Client disconnected from sync hub. Code: %s", code)
        if self.group_name:
            async_to_sync(self.channel_layer.group_discard)(self.group_name, self.channel_name)

    def receive_json(self, content, **kwargs):
        if not isinstance(content, dict) or content.get("type") != "invocation":
            self.send_json({"type": "completion", "invocationId": None, "error": "Unsupported message"})
            return

        invocation_id = content.get("invocationId")
        target = content.get("target")
        try:
            result = self.hub.invoke(target, content.get("arguments") or [])
        except HubError as exc:
            self.send_json({"type": "completion", "invocationId": invocation_id, "error": str(exc)})
            return
        except Exception as exc:
            logger.exception("Error in hub method %s", target)
            self.send_json(
                {"type": "completion", "invocationId": invocation_id, "error": f"Error processing {target}: {exc}"}
            )
            return
        self.send_json({"type": "completion", "invocationId": invocation_id, "result": result})

    def sync_event(self, event):
        self.send_json({"type": "event", "target": event["target"], "arguments": event.get("arguments", [])})
