from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.validators import UnicodeUsernameValidator
from rest_framework import serializers
from rest_framework.validators import UniqueValidator
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from apps.stores.models import Store

from .models import Permission, Role
from .tokens import add_claims

User = get_user_model()


class StoreTokenObtainPairSerializer(TokenObtainPairSerializer):
    @classmethod
    def get_token(cls, user):
        return add_claims(super().get_token(user), user)

    def validate(self, attrs):
        data = super().validate(attrs)
        data["token"] = data["access"]
        data["user"] = UserInfoSerializer(self.user).data
        return data


class UserInfoSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(source="id", read_only=True)
    store_id = serializers.IntegerField(read_only=True)
    roles = serializers.SerializerMethodField()
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["user_id", "username", "email", "first_name", "last_name", "store_id", "roles", "permissions"]

    def get_roles(self, obj):
        return obj.role_names()

    def get_permissions(self, obj):
        return sorted(obj.permission_names())


class PermissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Permission
        fields = ["id", "name", "description"]


class PermissionNamesField(serializers.ListField):
    child = serializers.CharField()

    def get_attribute(self, instance):
        return list(instance.permissions.order_by("name").values_list("name", flat=True))


class RoleSerializer(serializers.ModelSerializer):
    permissions = PermissionNamesField(required=False)
    permission_ids = serializers.ListField(child=serializers.IntegerField(), required=False, write_only=True)

    class Meta:
        model = Role
        fields = [
            "id",
            "sync_id",
            "sync_status",
            "name",
            "description",
            "permissions",
            "permission_ids",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["sync_id", "sync_status", "created_at", "updated_at"]
        extra_kwargs = {
            "name": {"validators": [UniqueValidator(Role.objects.all(), message="Role name already exists")]},
        }

    def validate_permissions(self, value):
        known = set(Permission.objects.filter(name__in=value).values_list("name", flat=True))
        missing = sorted(set(value) - known)
        if missing:
            raise serializers.ValidationError(f"Unknown permissions: {', '.join(missing)}")
        return value

    def validate_permission_ids(self, value):
        known = set(Permission.objects.filter(pk__in=value).values_list("pk", flat=True))
        for permission_id in value:
            if permission_id not in known:
                raise serializers.ValidationError(f"Permission with ID {permission_id} does not exist")
        return value

    def _permission_names(self, validated_data):
        names = validated_data.pop("permissions", None)
        ids = validated_data.pop("permission_ids", None)
        if ids is not None:
            names = list(names or []) + list(Permission.objects.filter(pk__in=ids).values_list("name", flat=True))
        return names

    def create(self, validated_data):
        names = self._permission_names(validated_data)
        role = super().create(validated_data)
        if names is not None:
            role.set_permissions(names)
        return role

    def update(self, instance, validated_data):
        names = self._permission_names(validated_data)
        role = super().update(instance, validated_data)
        if names is not None:
            role.set_permissions(names)
        return role


class UserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=False, min_length=8)
    store_id = serializers.PrimaryKeyRelatedField(
        source="store",
        queryset=Store.objects.all(),
        required=False,
        allow_null=True,
    )
    role_ids = serializers.PrimaryKeyRelatedField(
        source="roles",
        queryset=Role.objects.all(),
        many=True,
        required=False,
    )
    roles = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "sync_id",
            "sync_status",
            "username",
            "password",
            "email",
            "first_name",
            "last_name",
            "is_active",
            "store_id",
            "role_ids",
            "roles",
            "last_login",
            "date_joined",
            "updated_at",
        ]
        read_only_fields = ["sync_id", "sync_status", "last_login", "date_joined", "updated_at"]
        extra_kwargs = {
            "username": {
                "validators": [
                    UnicodeUsernameValidator(),
                    UniqueValidator(User.objects.all(), message="Username is already taken"),
                ]
            },
        }

    def get_roles(self, obj):
        return obj.role_names()

    def validate_email(self, value):
        if not value:
            return value
        clash = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError("Email is already registered")
        return value

    def validate(self, attrs):
        if self.instance is None and not attrs.get("password"):
            raise serializers.ValidationError({"password": "Password is required."})
        return attrs

    def create(self, validated_data):
        roles = validated_data.pop("roles", None)
        password = validated_data.pop("password")
        user = User(**validated_data)
        user.set_password(password)
        user.mark_not_synced()
        user.save()
        if roles is not None:
            user.set_roles(roles)
        return user

    def update(self, instance, validated_data):
        roles = validated_data.pop("roles", None)
        password = validated_data.pop("password", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.mark_not_synced()
        instance.save()
        if roles is not None:
            instance.set_roles(roles)
        return instance


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField()
    new_password = serializers.CharField(min_length=8)

    def validate_current_password(self, value):
        if not self.context["request"].user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect")
        return value

    def validate_new_password(self, value):
        validate_password(value, self.context["request"].user)
        return value
