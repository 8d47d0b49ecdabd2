from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from apps.accounts.policies import Permissions, caller_from_request

from .reconcile import reconcile

SYNC_ACTIONS = ("sync", "pending_sync")


class SyncActionsMixin:
    """Adds ``POST <entity>/sync`` and ``GET <entity>/pending-sync``.

    Both actions require ``system.sync_data`` whatever the viewset's own
    policy map says.
    """

    sync_adapter_class = None

    def required_policy(self):
        if getattr(self, "action", None) in SYNC_ACTIONS:
            return Permissions.SYNC_DATA
        return super().required_policy()

    def get_sync_adapter(self):
        return self.sync_adapter_class(caller_from_request(self.request), self.request)

    @action(detail=False, methods=["post"], url_path="sync")
    def sync(self, request):
        items = request.data
        if isinstance(items, dict):
            items = items.get("items")
        if not isinstance(items, list):
            raise ValidationError("Expected a list of changes.")
        adapter = self.get_sync_adapter()
        result = reconcile(adapter, items)
        response = Response(adapter.represent(result.records), status=status.HTTP_200_OK)
        response["X-Total-Count"] = str(result.count)
        return response

    @action(detail=False, methods=["get"], url_path="pending-sync")
    def pending_sync(self, request):
        adapter = self.get_sync_adapter()
        adapter.check_caller()
        records = list(adapter.pending_queryset())
        response = Response(adapter.represent(records))
        response["X-Total-Count"] = str(len(records))
        return response
