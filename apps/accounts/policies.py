"""Permission strings, the policy map and caller resolution.

Every protected endpoint names one permission. A policy is a predicate over
the caller's resolved permission set; the administrative override is checked
before the policy itself, so an administrator passes every policy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional


class Permissions:
    VIEW_PRODUCTS = "products.view"
    CREATE_PRODUCTS = "products.create"
    EDIT_PRODUCTS = "products.edit"
    DELETE_PRODUCTS = "products.delete"
    MANAGE_STOCK = "products.manage_stock"
    VIEW_PRODUCT_HISTORY = "products.view_history"
    VIEW_PRODUCT_PRICE_HISTORY = "products.view_price_history"

    VIEW_CATEGORIES = "categories.view"
    CREATE_CATEGORIES = "categories.create"
    EDIT_CATEGORIES = "categories.edit"
    DELETE_CATEGORIES = "categories.delete"

    VIEW_SALES = "sales.view"
    CREATE_SALES = "sales.create"
    EDIT_SALES = "sales.edit"
    DELETE_SALES = "sales.delete"
    DISCOUNT_SALES = "sales.apply_discount"

    VIEW_PROMOTIONS = "promotions.view"
    CREATE_PROMOTIONS = "promotions.create"
    EDIT_PROMOTIONS = "promotions.edit"
    DELETE_PROMOTIONS = "promotions.delete"
    MANAGE_PROMOTIONS = "promotions.manage"

    VIEW_USERS = "users.view"
    CREATE_USERS = "users.create"
    EDIT_USERS = "users.edit"
    DELETE_USERS = "users.delete"
    MANAGE_USER_ROLES = "users.manage_roles"
    MANAGE_ROLES = "roles.manage"

    VIEW_REPORTS = "reports.view"
    EXPORT_REPORTS = "reports.export"

    VIEW_STORE_SETTINGS = "store.view_settings"
    EDIT_STORE_SETTINGS = "store.edit_settings"

    SYNC_DATA = "system.sync_data"
    VIEW_LOGS = "system.view_logs"

    MANAGE_ALL_STORES = "admin.manage_all_stores"
    MANAGE_SYSTEM_SETTINGS = "admin.system_settings"
    SYSTEM_SETTINGS = "admin.settings"

    @classmethod
    def all(cls) -> list[str]:
        return [
            value
            for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, str)
        ]


ADMIN_OVERRIDE: FrozenSet[str] = frozenset(
    {Permissions.MANAGE_ALL_STORES, Permissions.MANAGE_SYSTEM_SETTINGS}
)

Predicate = Callable[[FrozenSet[str]], bool]


def _holds(permission: str) -> Predicate:
    return lambda granted: permission in granted


POLICIES: Dict[str, Predicate] = {name: _holds(name) for name in Permissions.all()}


def has_admin_override(granted: Iterable[str]) -> bool:
    return not ADMIN_OVERRIDE.isdisjoint(granted)


def is_authorized(policy: str, granted: Iterable[str]) -> bool:
    granted = frozenset(granted or ())
    if has_admin_override(granted):
        return True
    predicate = POLICIES.get(policy)
    if predicate is None:
        return False
    return predicate(granted)


@dataclass(frozen=True)
class CallerContext:
    user: Any
    store_id: Optional[int]
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def user_id(self) -> Optional[int]:
        return getattr(self.user, "pk", None)

    @property
    def is_store_admin(self) -> bool:
        """Callers holding the store-spanning permission see every store."""
        return Permissions.MANAGE_ALL_STORES in self.permissions

    def can(self, policy: str) -> bool:
        return is_authorized(policy, self.permissions)

    def can_access_store(self, store_id) -> bool:
        if self.is_store_admin:
            return True
        return self.store_id is not None and str(self.store_id) == str(store_id)


def _coerce_store_id(value) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def caller_from_claims(user, claims) -> CallerContext:
    """Build the caller from token claims, falling back to the user's roles.

    Tokens minted outside the login endpoint carry no custom claims; those
    callers are resolved from the database.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return CallerContext(user=None, store_id=None)

    claims = claims or {}
    if "permissions" in claims:
        permissions = frozenset(claims.get("permissions") or ())
    else:
        permissions = frozenset(user.permission_names())

    if "storeId" in claims:
        store_id = _coerce_store_id(claims.get("storeId"))
    else:
        store_id = user.store_id
    return CallerContext(user=user, store_id=store_id, permissions=permissions)


def caller_from_request(request) -> CallerContext:
    cached = getattr(request, "_caller_context", None)
    if cached is not None:
        return cached
    token = getattr(request, "auth", None)
    claims = getattr(token, "payload", None) if token is not None else None
    caller = caller_from_claims(getattr(request, "user", None), claims)
    request._caller_context = caller
    return caller


def caller_from_scope(scope) -> CallerContext:
    return caller_from_claims(scope.get("user"), scope.get("token_claims"))
