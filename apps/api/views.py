import logging
from decimal import Decimal, InvalidOperation

from django.db.models import F, Q, Sum
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response

from apps.accounts.policies import Permissions
from apps.accounts.serializers import UserSerializer
from apps.catalog import services as catalog_services
from apps.catalog.models import Category, Product, Promotion
from apps.sales import services as sales_services
from apps.sales.models import Payment, Sale
from apps.stores.models import Store
from apps.sync.mixins import SyncActionsMixin
from apps.sync.models import SyncStatus
from apps.sync.reconcile import CategoryAdapter, ProductAdapter, PromotionAdapter, SaleAdapter, StoreAdapter

from .permissions import PolicyMixin
from .scoping import StoreScopedMixin
from .serializers import (
    CategorySerializer,
    PaymentSerializer,
    ProductSerializer,
    ProductTransactionSerializer,
    PromotionSerializer,
    SaleSerializer,
    StockUpdateSerializer,
    StoreSerializer,
)

logger = logging.getLogger(__name__)


def _flag(request, name, default=None):
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return default
    return raw.lower() in ("1", "true", "yes")


def _date(request, name):
    raw = request.query_params.get(name)
    if not raw:
        return None
    value = parse_datetime(raw)
    if value is None:
        raise ValidationError({name: "Invalid date."})
    return value


def _decimal(request, name):
    raw = request.query_params.get(name)
    if not raw:
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        value = None
    if value is None or not value.is_finite():
        raise ValidationError({name: "Invalid number."})
    return value


def _crud_policies(view, create, edit, delete):
    return {
        "list": view,
        "retrieve": view,
        "create": create,
        "update": edit,
        "partial_update": edit,
        "destroy": delete,
    }


class StoreScopedViewSet(PolicyMixin, StoreScopedMixin, viewsets.ModelViewSet):
    """CRUD over rows that belong to one store.

    New rows land in the caller's store (administrators may name one);
    every edit marks the row NotSynced so devices pull it again.
    """

    _write_store = None

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self._write_store is not None:
            context["store_id"] = self._write_store.pk
        elif self.request is not None:
            context["store_id"] = self.caller.store_id
        return context

    def create(self, request, *args, **kwargs):
        self._write_store = self.target_store(request.data.get("store_id"))
        return super().create(request, *args, **kwargs)

    def perform_create(self, serializer):
        serializer.save(store=self._write_store, sync_status=SyncStatus.NOT_SYNCED)

    def perform_update(self, serializer):
        serializer.save(sync_status=SyncStatus.NOT_SYNCED)


class ProductViewSet(SyncActionsMixin, StoreScopedViewSet):
    serializer_class = ProductSerializer
    sync_adapter_class = ProductAdapter
    policies = {
        **_crud_policies(
            Permissions.VIEW_PRODUCTS,
            Permissions.CREATE_PRODUCTS,
            Permissions.EDIT_PRODUCTS,
            Permissions.DELETE_PRODUCTS,
        ),
        "barcode": Permissions.VIEW_PRODUCTS,
        "update_stock": Permissions.MANAGE_STOCK,
        "price_history": Permissions.VIEW_PRODUCT_HISTORY,
        "stock_history": Permissions.VIEW_PRODUCT_HISTORY,
    }

    def get_queryset(self):
        queryset = self.scope_queryset(Product.objects.select_related("category"))
        if self.action != "list":
            return queryset
        params = self.request.query_params
        term = params.get("searchTerm")
        if term:
            queryset = queryset.filter(
                Q(name__icontains=term) | Q(barcode__icontains=term) | Q(description__icontains=term)
            )
        if params.get("categoryId"):
            queryset = queryset.filter(category_id=params["categoryId"])
        if _flag(self.request, "onlyActive", default=True):
            queryset = queryset.filter(is_active=True)
        if _flag(self.request, "onlyLowStock", default=False):
            queryset = queryset.filter(stock_quantity__lte=F("minimum_stock_level"))
        return queryset.order_by("name", "id")

    def perform_create(self, serializer):
        product = serializer.save(store=self._write_store, sync_status=SyncStatus.NOT_SYNCED)
        catalog_services.record_creation(product, self.request.user)
        logger.info("Product %s created in store %s", product.pk, product.store_id)

    def perform_update(self, serializer):
        before = catalog_services.snapshot(serializer.instance)
        product = serializer.save(sync_status=SyncStatus.NOT_SYNCED)
        catalog_services.record_changes(before, product, self.request.user)
        logger.info("Product %s updated in store %s", product.pk, product.store_id)

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        if catalog_services.delete_product(product):
            return Response({"message": "Product was soft deleted as it is used in sales records"})
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path=r"barcode/(?P<barcode>[^/]+)")
    def barcode(self, request, barcode=None):
        product = self.get_queryset().filter(barcode=barcode).first()
        if product is None:
            raise NotFound(f"Product with barcode {barcode} not found")
        return Response(self.get_serializer(product).data)

    @action(detail=False, methods=["post"], url_path="update-stock")
    def update_stock(self, request):
        serializer = StockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product_id = serializer.validated_data["product_id"]
        product = self.get_queryset().filter(pk=product_id).first()
        if product is None:
            raise NotFound(f"Product with ID {product_id} not found in your store")
        catalog_services.update_stock(
            product,
            serializer.validated_data["new_quantity"],
            user=request.user,
            notes=serializer.validated_data.get("notes", ""),
        )
        return Response(self.get_serializer(product).data)

    @action(detail=True, methods=["get"], url_path="price-history", pagination_class=None)
    def price_history(self, request, pk=None):
        product = self.get_object()
        rows = product.transactions.filter(Q(price_after__isnull=False) | Q(cost_after__isnull=False))
        return Response(ProductTransactionSerializer(rows, many=True).data)

    @action(detail=True, methods=["get"], url_path="stock-history", pagination_class=None)
    def stock_history(self, request, pk=None):
        product = self.get_object()
        rows = product.transactions.filter(quantity_after__isnull=False)
        return Response(ProductTransactionSerializer(rows, many=True).data)


class CategoryViewSet(SyncActionsMixin, PolicyMixin, viewsets.ModelViewSet):
    serializer_class = CategorySerializer
    sync_adapter_class = CategoryAdapter
    policies = _crud_policies(
        Permissions.VIEW_CATEGORIES,
        Permissions.CREATE_CATEGORIES,
        Permissions.EDIT_CATEGORIES,
        Permissions.DELETE_CATEGORIES,
    )

    def get_queryset(self):
        queryset = Category.objects.all()
        if self.action != "list":
            return queryset
        term = self.request.query_params.get("searchTerm")
        if term:
            queryset = queryset.filter(Q(name__icontains=term) | Q(description__icontains=term))
        is_active = _flag(self.request, "isActive")
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        return queryset

    def perform_create(self, serializer):
        category = serializer.save(sync_status=SyncStatus.NOT_SYNCED)
        logger.info("Category %s created", category.pk)

    def perform_update(self, serializer):
        serializer.save(sync_status=SyncStatus.NOT_SYNCED)

    def destroy(self, request, *args, **kwargs):
        if catalog_services.delete_category(self.get_object()):
            return Response({"message": "Category was deactivated as it has products"})
        return Response(status=status.HTTP_204_NO_CONTENT)


class PromotionViewSet(SyncActionsMixin, StoreScopedViewSet):
    serializer_class = PromotionSerializer
    sync_adapter_class = PromotionAdapter
    policies = {
        **_crud_policies(
            Permissions.VIEW_PROMOTIONS,
            Permissions.CREATE_PROMOTIONS,
            Permissions.EDIT_PROMOTIONS,
            Permissions.DELETE_PROMOTIONS,
        ),
        "active": Permissions.VIEW_PROMOTIONS,
        "for_product": Permissions.VIEW_PROMOTIONS,
        "toggle_active": Permissions.EDIT_PROMOTIONS,
    }

    def get_queryset(self):
        queryset = self.scope_queryset(Promotion.objects.select_related("product"))
        if self.action != "list":
            return queryset
        params = self.request.query_params
        term = params.get("searchTerm")
        if term:
            queryset = queryset.filter(
                Q(name__icontains=term) | Q(description__icontains=term) | Q(product__name__icontains=term)
            )
        if params.get("productId"):
            queryset = queryset.filter(product_id=params["productId"])
        is_active = _flag(self.request, "isActive")
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if params.get("discountType"):
            queryset = queryset.filter(discount_type=params["discountType"])
        for param, lookup in (
            ("startDateFrom", "start_date__gte"),
            ("startDateTo", "start_date__lte"),
            ("endDateFrom", "end_date__gte"),
            ("endDateTo", "end_date__lte"),
        ):
            value = _date(self.request, param)
            if value is not None:
                queryset = queryset.filter(**{lookup: value})
        if _flag(self.request, "currentlyActive", default=False):
            now = timezone.now()
            queryset = queryset.filter(is_active=True, start_date__lte=now, end_date__gte=now)
        return queryset

    @action(detail=False, methods=["get"], pagination_class=None)
    def active(self, request):
        now = timezone.now()
        rows = (
            self.get_queryset()
            .filter(is_active=True, start_date__lte=now, end_date__gte=now)
            .order_by("product__name", "id")
        )
        return Response(self.get_serializer(rows, many=True).data)

    @action(detail=False, methods=["get"], url_path=r"product/(?P<product_id>\d+)", pagination_class=None)
    def for_product(self, request, product_id=None):
        product = self.scope_queryset(Product.objects.all()).filter(pk=product_id).first()
        if product is None:
            raise NotFound(f"Product with ID {product_id} not found")
        rows = self.get_queryset().filter(product=product)
        return Response(self.get_serializer(rows, many=True).data)

    @action(detail=True, methods=["patch"], url_path="toggle-active")
    def toggle_active(self, request, pk=None):
        promotion = self.get_object()
        promotion.is_active = not promotion.is_active
        promotion.sync_status = SyncStatus.NOT_SYNCED
        promotion.save(update_fields=["is_active", "sync_status", "updated_at"])
        logger.info("Promotion %s is_active set to %s", promotion.pk, promotion.is_active)
        return Response(self.get_serializer(promotion).data)


class SaleViewSet(SyncActionsMixin, StoreScopedViewSet):
    serializer_class = SaleSerializer
    sync_adapter_class = SaleAdapter
    policies = _crud_policies(
        Permissions.VIEW_SALES,
        Permissions.CREATE_SALES,
        Permissions.EDIT_SALES,
        Permissions.DELETE_SALES,
    )

    def get_queryset(self):
        queryset = self.scope_queryset(
            Sale.objects.select_related("user").prefetch_related("items__product", "payments")
        )
        if self.action != "list":
            return queryset
        params = self.request.query_params
        term = params.get("searchTerm")
        if term:
            queryset = queryset.filter(Q(sale_number__icontains=term) | Q(notes__icontains=term))
        start = _date(self.request, "startDate")
        if start is not None:
            queryset = queryset.filter(sale_date__gte=start)
        end = _date(self.request, "endDate")
        if end is not None:
            queryset = queryset.filter(sale_date__lte=end)
        if params.get("status"):
            queryset = queryset.filter(status=params["status"])
        if params.get("userId"):
            queryset = queryset.filter(user_id=params["userId"])
        min_amount = _decimal(self.request, "minAmount")
        if min_amount is not None:
            queryset = queryset.filter(grand_total__gte=min_amount)
        max_amount = _decimal(self.request, "maxAmount")
        if max_amount is not None:
            queryset = queryset.filter(grand_total__lte=max_amount)
        return queryset

    def create(self, request, *args, **kwargs):
        store = self.target_store(request.data.get("store_id"))
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale = sales_services.create_sale(store, request.user, serializer.validated_data)
        return Response(self.get_serializer(sale).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        sale = self.get_object()
        serializer = self.get_serializer(sale, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        sale = sales_services.update_sale(sale, request.user, serializer.validated_data)
        return Response(self.get_serializer(sale).data)

    def destroy(self, request, *args, **kwargs):
        if sales_services.delete_sale(self.get_object(), request.user):
            return Response({"message": "Sale canceled and stock returned"})
        return Response(status=status.HTTP_204_NO_CONTENT)


class PaymentViewSet(PolicyMixin, StoreScopedMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = PaymentSerializer
    policies = {"list": Permissions.VIEW_SALES, "retrieve": Permissions.VIEW_SALES}

    def get_queryset(self):
        queryset = self.scope_queryset(Payment.objects.all())
        sale_id = self.request.query_params.get("saleId")
        if sale_id:
            queryset = queryset.filter(sale_id=sale_id)
        return queryset


class StoreViewSet(SyncActionsMixin, PolicyMixin, StoreScopedMixin, viewsets.ModelViewSet):
    serializer_class = StoreSerializer
    sync_adapter_class = StoreAdapter
    policies = {
        **_crud_policies(
            Permissions.MANAGE_ALL_STORES,
            Permissions.MANAGE_ALL_STORES,
            Permissions.MANAGE_ALL_STORES,
            Permissions.MANAGE_ALL_STORES,
        ),
        "users": Permissions.MANAGE_ALL_STORES,
        "stats": Permissions.MANAGE_ALL_STORES,
    }

    def required_policy(self):
        if getattr(self, "action", None) == "my_store":
            return None if self.request.method == "GET" else Permissions.SYSTEM_SETTINGS
        return super().required_policy()

    def get_queryset(self):
        queryset = Store.objects.all()
        if self.action != "list":
            return queryset
        term = self.request.query_params.get("searchTerm")
        if term:
            queryset = queryset.filter(Q(name__icontains=term) | Q(address__icontains=term))
        is_active = _flag(self.request, "isActive")
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        return queryset

    def perform_create(self, serializer):
        store = serializer.save(sync_status=SyncStatus.NOT_SYNCED)
        logger.info("Store %s created", store.pk)

    def perform_update(self, serializer):
        serializer.save(sync_status=SyncStatus.NOT_SYNCED)

    def destroy(self, request, *args, **kwargs):
        store = self.get_object()
        if store.users.exists():
            raise ValidationError(
                "Cannot delete store because it has associated users. "
                "Remove users first or deactivate the store instead."
            )
        if store.products.exists():
            raise ValidationError(
                "Cannot delete store because it has associated products. "
                "Remove products first or deactivate the store instead."
            )
        if store.sales.exists():
            raise ValidationError("Cannot delete store because it has associated sales. Deactivate the store instead.")
        store.is_active = False
        store.sync_status = SyncStatus.NOT_SYNCED
        store.save(update_fields=["is_active", "sync_status", "updated_at"])
        logger.info("Store %s deactivated", store.pk)
        return Response({"message": "Store deactivated successfully"})

    @action(detail=True, methods=["get"], pagination_class=None)
    def users(self, request, pk=None):
        store = self.get_object()
        rows = store.users.prefetch_related("roles").order_by("username")
        return Response(UserSerializer(rows, many=True).data)

    @action(detail=True, methods=["get"])
    def stats(self, request, pk=None):
        store = self.get_object()
        sales = Sale.objects.filter(store=store)
        recent = sales.select_related("user").prefetch_related("items__product", "payments").order_by("-sale_date")[:5]
        return Response(
            {
                "store_name": store.name,
                "user_count": store.users.count(),
                "product_count": store.products.count(),
                "sale_count": sales.count(),
                "total_sales": sales.aggregate(total=Sum("grand_total"))["total"] or Decimal("0"),
                "recent_sales": SaleSerializer(recent, many=True).data,
            }
        )

    @action(detail=False, methods=["get", "put"], url_path="my-store")
    def my_store(self, request):
        store_id = self.caller.store_id
        if store_id is None:
            raise NotFound("User is not associated with any store")
        store = Store.objects.filter(pk=store_id).first()
        if store is None:
            raise NotFound(f"Store with ID {store_id} not found")
        if request.method == "GET":
            return Response(self.get_serializer(store).data)
        serializer = self.get_serializer(store, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save(sync_status=SyncStatus.NOT_SYNCED)
        logger.info("Store %s settings updated by %s", store.pk, request.user.pk)
        return Response(serializer.data)
