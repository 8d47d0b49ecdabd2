import logging

from django.contrib.auth import get_user_model
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView

from apps.api.permissions import PolicyMixin
from apps.api.scoping import StoreScopedMixin
from apps.sync.mixins import SyncActionsMixin
from apps.sync.models import SyncStatus
from apps.sync.reconcile import RoleAdapter

from .models import Role
from .policies import Permissions, caller_from_request
from .serializers import (
    ChangePasswordSerializer,
    PermissionSerializer,
    RoleSerializer,
    StoreTokenObtainPairSerializer,
    UserInfoSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()


class LoginView(TokenObtainPairView):
    serializer_class = StoreTokenObtainPairSerializer
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        logger.info("User %s logged in", request.data.get("username"))
        return response


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def validate_token(request):
    return Response({"valid": True})


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def user_info(request):
    caller = caller_from_request(request)
    data = UserInfoSerializer(request.user).data
    data["store_id"] = caller.store_id
    data["permissions"] = sorted(caller.permissions)
    return Response(data)


class UserViewSet(PolicyMixin, StoreScopedMixin, viewsets.ModelViewSet):
    serializer_class = UserSerializer
    policies = {
        "list": Permissions.VIEW_USERS,
        "retrieve": Permissions.VIEW_USERS,
        "create": Permissions.CREATE_USERS,
        "update": Permissions.EDIT_USERS,
        "partial_update": Permissions.EDIT_USERS,
        "destroy": Permissions.DELETE_USERS,
    }

    def get_queryset(self):
        queryset = User.objects.select_related("store").prefetch_related("roles")
        queryset = self.scope_queryset(queryset)
        if self.action == "list" and self.request.query_params.get("isActive") in ("true", "false"):
            queryset = queryset.filter(is_active=self.request.query_params["isActive"] == "true")
        return queryset

    def _check_store(self, store):
        if self.caller.is_store_admin:
            return
        if store is None or store.pk != self.require_store_id():
            raise PermissionDenied("You can only manage users in your own store")

    def perform_create(self, serializer):
        if self.caller.is_store_admin:
            user = serializer.save()
        else:
            if serializer.validated_data.get("store") is not None:
                self._check_store(serializer.validated_data["store"])
            user = serializer.save(store=self.target_store())
        logger.info("User %s created in store %s by %s", user.pk, user.store_id, self.caller.user_id)

    def perform_update(self, serializer):
        if "store" in serializer.validated_data:
            self._check_store(serializer.validated_data["store"])
        user = serializer.save()
        logger.info("User %s updated by %s", user.pk, self.caller.user_id)

    def destroy(self, request, *args, **kwargs):
        user = self.get_object()
        if user.pk == request.user.pk:
            raise ValidationError("You cannot delete your own account")
        user.is_active = False
        user.mark_not_synced()
        user.save(update_fields=["is_active", "sync_status", "updated_at"])
        logger.info("User %s deactivated by %s", user.pk, request.user.pk)
        return Response({"message": "User deactivated successfully"})

    @action(detail=False, methods=["post"], url_path="change-password")
    def change_password(self, request):
        serializer = ChangePasswordSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        request.user.set_password(serializer.validated_data["new_password"])
        request.user.save(update_fields=["password"])
        logger.info("User %s changed password", request.user.pk)
        return Response({"message": "Password changed successfully"})


class RoleViewSet(SyncActionsMixin, PolicyMixin, viewsets.ModelViewSet):
    queryset = Role.objects.prefetch_related("permissions")
    serializer_class = RoleSerializer
    sync_adapter_class = RoleAdapter
    policies = {
        "list": Permissions.MANAGE_ROLES,
        "retrieve": Permissions.MANAGE_ROLES,
        "create": Permissions.MANAGE_ROLES,
        "update": Permissions.MANAGE_ROLES,
        "partial_update": Permissions.MANAGE_ROLES,
        "destroy": Permissions.MANAGE_ROLES,
        "with_permissions": Permissions.MANAGE_ROLES,
    }

    def perform_create(self, serializer):
        role = serializer.save()
        logger.info("Role %s created", role.name)

    def perform_update(self, serializer):
        role = serializer.save(sync_status=SyncStatus.NOT_SYNCED)
        logger.info("Role %s updated", role.name)

    def perform_destroy(self, instance):
        if instance.user_links.exists():
            raise ValidationError("Cannot delete role because it is assigned to users. Remove role from users first.")
        logger.info("Role %s deleted", instance.name)
        instance.delete()

    @action(detail=False, methods=["get"], url_path="with-permissions", pagination_class=None)
    def with_permissions(self, request):
        result = []
        for role in self.get_queryset():
            result.append(
                {
                    "role": RoleSerializer(role).data,
                    "permissions": PermissionSerializer(role.permissions.all(), many=True).data,
                }
            )
        return Response(result)
