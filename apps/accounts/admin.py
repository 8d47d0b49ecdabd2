from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Permission, Role, RolePermission, User, UserRole


class RolePermissionInline(admin.TabularInline):
    model = RolePermission
    extra = 0
    autocomplete_fields = ("permission",)


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0
    fields = ("role",)


@admin.register(Permission)
class PermissionAdmin(admin.ModelAdmin):
    list_display = ("name", "description", "updated_at")
    search_fields = ("name", "description")


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "description", "sync_status", "updated_at")
    search_fields = ("name",)
    inlines = [RolePermissionInline]


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "store", "is_active", "is_staff", "sync_status")
    list_filter = ("is_active", "is_staff", "store")
    search_fields = ("username", "email", "first_name", "last_name")
    fieldsets = BaseUserAdmin.fieldsets + (("Store", {"fields": ("store",)}),)
    add_fieldsets = BaseUserAdmin.add_fieldsets + (("Store", {"fields": ("store",)}),)
    inlines = [UserRoleInline]
