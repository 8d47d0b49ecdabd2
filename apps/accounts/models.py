from django.contrib.auth.models import AbstractUser
from django.db import models

from apps.sync.models import SyncableModel


class Permission(SyncableModel):
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Role(SyncableModel):
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True)
    permissions = models.ManyToManyField(Permission, through="RolePermission", related_name="roles")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def set_permissions(self, names):
        """Replace the role's permission set with the given permission names."""
        wanted = list(Permission.objects.filter(name__in=set(names)))
        RolePermission.objects.filter(role=self).exclude(permission__in=wanted).delete()
        existing = set(RolePermission.objects.filter(role=self).values_list("permission_id", flat=True))
        RolePermission.objects.bulk_create(
            [RolePermission(role=self, permission=p) for p in wanted if p.id not in existing]
        )
        return wanted


class RolePermission(models.Model):
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name="permission_links")
    permission = models.ForeignKey(Permission, on_delete=models.CASCADE, related_name="role_links")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["role", "permission"], name="uq_role_permission"),
        ]

    def __str__(self) -> str:
        return f"{self.role_id}:{self.permission_id}"


class User(SyncableModel, AbstractUser):
    # Null store means a system administrator who is not bound to one store.
    store = models.ForeignKey(
        "stores.Store",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="users",
    )
    roles = models.ManyToManyField(Role, through="UserRole", related_name="users", blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["username"]

    def __str__(self) -> str:
        return self.username

    def permission_names(self) -> set:
        return set(
            Permission.objects.filter(role_links__role__user_links__user=self)
            .values_list("name", flat=True)
            .distinct()
        )

    def role_names(self) -> list:
        return list(self.roles.order_by("name").values_list("name", flat=True))

    def set_roles(self, roles):
        UserRole.objects.filter(user=self).exclude(role__in=roles).delete()
        existing = set(UserRole.objects.filter(user=self).values_list("role_id", flat=True))
        UserRole.objects.bulk_create([UserRole(user=self, role=r) for r in roles if r.id not in existing])


class UserRole(SyncableModel):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="role_links")
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name="user_links")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "role"], name="uq_user_role"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}:{self.role_id}"
