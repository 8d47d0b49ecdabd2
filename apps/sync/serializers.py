from rest_framework import serializers

from .models import SyncBatch, SyncLog, SyncOperation, SyncStatus


class SyncBatchSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    store_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = SyncBatch
        fields = [
            "id",
            "start_date",
            "end_date",
            "status",
            "device_id",
            "user_id",
            "username",
            "store_id",
            "total_records",
            "processed_records",
            "failed_records",
        ]
        read_only_fields = ["start_date", "end_date", "status", "processed_records", "failed_records"]
        extra_kwargs = {"total_records": {"min_value": 0, "required": False}}


class SyncBatchStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SyncBatch.Status.choices)
    processed_records = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    failed_records = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class SyncLogSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    store_id = serializers.IntegerField(read_only=True)
    sync_batch_id = serializers.IntegerField(required=False, allow_null=True)
    operation = serializers.ChoiceField(choices=SyncOperation.choices)

    class Meta:
        model = SyncLog
        fields = [
            "id",
            "entity_name",
            "entity_id",
            "operation",
            "operation_date",
            "device_id",
            "user_id",
            "store_id",
            "sync_status",
            "sync_date",
            "error_message",
            "retry_count",
            "sync_batch_id",
            "priority",
        ]
        read_only_fields = ["sync_date", "error_message", "retry_count"]
        extra_kwargs = {"operation_date": {"required": False}, "sync_status": {"required": False}}


class SyncLogStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SyncStatus.choices)
    error_message = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class SyncGroupSerializer(serializers.Serializer):
    connection_id = serializers.CharField()
