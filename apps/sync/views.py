import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils.dateparse import parse_datetime
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.policies import Permissions
from apps.api.permissions import PolicyMixin
from apps.api.scoping import StoreScopedMixin

from . import services
from .models import SyncBatch, SyncLog
from .notify import store_group
from .serializers import (
    SyncBatchSerializer,
    SyncBatchStatusSerializer,
    SyncGroupSerializer,
    SyncLogSerializer,
    SyncLogStatusSerializer,
)

logger = logging.getLogger(__name__)


def _date_param(request, name):
    raw = request.query_params.get(name)
    if not raw:
        return None
    value = parse_datetime(raw)
    if value is None:
        raise ValidationError({name: "Invalid date."})
    return value


class SyncPolicyMixin(PolicyMixin, StoreScopedMixin):
    """Every sync endpoint needs ``system.sync_data`` and a store."""

    def required_policy(self):
        return Permissions.SYNC_DATA


class SyncBatchViewSet(
    SyncPolicyMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = SyncBatchSerializer

    def get_queryset(self):
        queryset = SyncBatch.objects.select_related("user").filter(store_id=self.require_store_id())
        if self.action != "list":
            return queryset
        params = self.request.query_params
        if params.get("status"):
            queryset = queryset.filter(status=params["status"])
        if params.get("deviceId"):
            queryset = queryset.filter(device_id=params["deviceId"])
        if params.get("userId"):
            queryset = queryset.filter(user_id=params["userId"])
        start_from = _date_param(self.request, "startDateFrom")
        if start_from:
            queryset = queryset.filter(start_date__gte=start_from)
        start_to = _date_param(self.request, "startDateTo")
        if start_to:
            queryset = queryset.filter(start_date__lte=start_to)
        return queryset.order_by("-start_date", "-id")

    def create(self, request, *args, **kwargs):
        store_id = self.require_store_id()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        batch = services.create_batch(
            serializer.validated_data["device_id"],
            self.caller.user_id,
            store_id,
            total_records=serializer.validated_data.get("total_records", 0),
        )
        return Response(self.get_serializer(batch).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request, pk=None):
        batch = self.get_object()
        serializer = SyncBatchStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.update_batch_status(
            batch,
            serializer.validated_data["status"],
            processed_records=serializer.validated_data.get("processed_records"),
            failed_records=serializer.validated_data.get("failed_records"),
        )
        return Response({"message": "Sync batch status updated successfully"})


class SyncLogViewSet(
    SyncPolicyMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = SyncLogSerializer

    def get_queryset(self):
        queryset = SyncLog.objects.filter(store_id=self.require_store_id())
        if self.action != "list":
            return queryset
        params = self.request.query_params
        exact = {
            "entityName": "entity_name",
            "entityId": "entity_id",
            "operation": "operation",
            "deviceId": "device_id",
            "userId": "user_id",
            "syncBatchId": "sync_batch_id",
            "syncStatus": "sync_status",
        }
        for param, field in exact.items():
            if params.get(param):
                queryset = queryset.filter(**{field: params[param]})
        date_from = _date_param(self.request, "operationDateFrom")
        if date_from:
            queryset = queryset.filter(operation_date__gte=date_from)
        date_to = _date_param(self.request, "operationDateTo")
        if date_to:
            queryset = queryset.filter(operation_date__lte=date_to)
        return queryset.order_by("-operation_date", "-id")

    def create(self, request, *args, **kwargs):
        self.require_store_id()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        log = services.create_log(self.caller, serializer.validated_data)
        return Response(self.get_serializer(log).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request, pk=None):
        log = self.get_object()
        serializer = SyncLogStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.update_log_status(
            log,
            serializer.validated_data["status"],
            serializer.validated_data.get("error_message"),
        )
        return Response({"message": "Sync log status updated successfully"})


class PendingSyncView(SyncPolicyMixin, APIView):
    def get(self, request):
        counts = services.pending_counts(self.require_store_id())
        logger.info("Retrieved pending sync counts for store %s", self.caller.store_id)
        return Response(counts)


class SyncGroupView(SyncPolicyMixin, APIView):
    """Adds or removes a socket connection from the caller's store group."""

    join = True

    def post(self, request):
        store_id = self.require_store_id()
        serializer = SyncGroupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        connection_id = serializer.validated_data["connection_id"]
        layer = get_channel_layer()
        if self.join:
            async_to_sync(layer.group_add)(store_group(store_id), connection_id)
            logger.info("Client with connection ID %s joined sync group for store %s", connection_id, store_id)
            return Response({"message": "Joined sync group successfully"})
        async_to_sync(layer.group_discard)(store_group(store_id), connection_id)
        logger.info("Client with connection ID %s left sync group for store %s", connection_id, store_id)
        return Response({"message": "Left sync group successfully"})
