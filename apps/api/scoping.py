from rest_framework.exceptions import PermissionDenied, ValidationError

from apps.accounts.policies import caller_from_request
from apps.stores.models import Store

NO_STORE_MESSAGE = "User is not associated with any store"


class StoreScopedMixin:
    """Restricts querysets and writes to the caller's store.

    Callers holding the store-spanning permission see every store and may
    name a target store in the payload; everyone else is pinned to their own.
    """

    store_lookup = "store_id"

    @property
    def caller(self):
        return caller_from_request(self.request)

    def require_store_id(self) -> int:
        if self.caller.store_id is None:
            raise PermissionDenied(NO_STORE_MESSAGE)
        return self.caller.store_id

    def scope_queryset(self, queryset):
        caller = self.caller
        if caller.is_store_admin:
            store_id = self.request.query_params.get("storeId")
            if store_id:
                return queryset.filter(**{self.store_lookup: store_id})
            return queryset
        return queryset.filter(**{self.store_lookup: self.require_store_id()})

    def target_store(self, requested=None) -> Store:
        """Store that a new row is written to."""
        caller = self.caller
        if caller.is_store_admin and requested:
            store_id = requested.pk if isinstance(requested, Store) else requested
        elif caller.store_id is not None:
            store_id = caller.store_id
        elif caller.is_store_admin:
            raise ValidationError({"store_id": "storeId is required for users without a store."})
        else:
            raise PermissionDenied(NO_STORE_MESSAGE)
        store = Store.objects.filter(pk=store_id, is_active=True).first()
        if store is None:
            raise ValidationError("Invalid or inactive store")
        return store
