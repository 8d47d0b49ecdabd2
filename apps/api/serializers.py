from rest_framework import serializers

from apps.catalog.models import Category, Product, ProductTransaction, Promotion
from apps.sales.models import Payment, Sale, SaleItem
from apps.stores.models import Store

SYNC_READ_ONLY = ["sync_id", "sync_status", "created_at", "updated_at"]


class StoreSerializer(serializers.ModelSerializer):
    class Meta:
        model = Store
        fields = [
            "id",
            "sync_id",
            "sync_status",
            "name",
            "address",
            "phone",
            "email",
            "tax_number",
            "receipt_header",
            "receipt_footer",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = SYNC_READ_ONLY

    def validate_name(self, value):
        clash = Store.objects.filter(name__iexact=value)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError("Store name already exists")
        return value


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "sync_id", "sync_status", "name", "description", "is_active", "created_at", "updated_at"]
        read_only_fields = SYNC_READ_ONLY


class ProductSerializer(serializers.ModelSerializer):
    store_id = serializers.IntegerField(read_only=True)
    category_id = serializers.PrimaryKeyRelatedField(source="category", queryset=Category.objects.all())
    category_name = serializers.CharField(source="category.name", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sync_id",
            "sync_status",
            "store_id",
            "category_id",
            "category_name",
            "barcode",
            "name",
            "description",
            "purchase_price",
            "sales_price",
            "tax_rate",
            "stock_quantity",
            "minimum_stock_level",
            "image_url",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = SYNC_READ_ONLY

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Product name is required")
        return value

    def validate_barcode(self, value):
        value = (value or "").strip()
        return value or None

    def validate_category_id(self, value):
        if self.instance is None and not value.is_active:
            raise serializers.ValidationError(f"Active category with ID {value.pk} not found")
        return value

    def validate_purchase_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Purchase price cannot be negative")
        return value

    def validate_sales_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Sales price cannot be negative")
        return value

    def validate_tax_rate(self, value):
        if value < 0 or value > 1:
            raise serializers.ValidationError("Tax rate must be between 0 and 1")
        return value

    def validate_stock_quantity(self, value):
        if value < 0:
            raise serializers.ValidationError("Stock quantity cannot be negative")
        return value

    def validate_minimum_stock_level(self, value):
        if value < 0:
            raise serializers.ValidationError("Minimum stock level cannot be negative")
        return value

    def validate(self, attrs):
        barcode = attrs.get("barcode")
        store_id = self.instance.store_id if self.instance is not None else self.context.get("store_id")
        if barcode and store_id:
            clash = Product.objects.filter(store_id=store_id, barcode=barcode)
            if self.instance is not None:
                clash = clash.exclude(pk=self.instance.pk)
            if clash.exists():
                raise serializers.ValidationError({"barcode": "A product with this barcode already exists in your store"})
        return attrs


class StockUpdateSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    old_quantity = serializers.IntegerField(required=False)
    new_quantity = serializers.IntegerField(min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ProductTransactionSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(read_only=True)
    store_id = serializers.IntegerField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = ProductTransaction
        fields = [
            "id",
            "product_id",
            "store_id",
            "transaction_type",
            "quantity_before",
            "quantity_after",
            "quantity_change",
            "price_before",
            "price_after",
            "cost_before",
            "cost_after",
            "tax_rate_before",
            "tax_rate_after",
            "reference_id",
            "reference_type",
            "notes",
            "user_id",
            "transaction_date",
        ]
        read_only_fields = fields


class PromotionSerializer(serializers.ModelSerializer):
    store_id = serializers.IntegerField(read_only=True)
    product_id = serializers.PrimaryKeyRelatedField(source="product", queryset=Product.objects.all())
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = Promotion
        fields = [
            "id",
            "sync_id",
            "sync_status",
            "store_id",
            "product_id",
            "product_name",
            "name",
            "description",
            "start_date",
            "end_date",
            "discount_type",
            "discount_value",
            "minimum_purchase_amount",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = SYNC_READ_ONLY

    def _current(self, attrs, name):
        if name in attrs:
            return attrs[name]
        return getattr(self.instance, name, None)

    def validate(self, attrs):
        start, end = self._current(attrs, "start_date"), self._current(attrs, "end_date")
        if start and end and start > end:
            raise serializers.ValidationError({"end_date": "End date must be after start date"})

        kind = self._current(attrs, "discount_type") or Promotion.DiscountType.PERCENTAGE
        value = self._current(attrs, "discount_value")
        if value is not None:
            if kind == Promotion.DiscountType.PERCENTAGE and not (0 < value <= 100):
                raise serializers.ValidationError({"discount_value": "Percentage discount must be between 0 and 100"})
            if kind == Promotion.DiscountType.FIXED_AMOUNT and value <= 0:
                raise serializers.ValidationError({"discount_value": "Fixed discount must be greater than zero"})

        product = attrs.get("product")
        store_id = self.instance.store_id if self.instance is not None else self.context.get("store_id")
        if product is not None and store_id is not None and product.store_id != store_id:
            raise serializers.ValidationError({"product_id": f"Product with ID {product.pk} not found in your store"})
        return attrs


class SaleItemSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField()
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = SaleItem
        fields = [
            "id",
            "sync_id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "discount_rate",
            "discount_amount",
            "tax_rate",
            "tax_amount",
            "line_total",
        ]
        read_only_fields = ["sync_id"]
        extra_kwargs = {
            "unit_price": {"required": False},
            "tax_rate": {"required": False},
        }

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity must be greater than zero")
        return value


class PaymentSerializer(serializers.ModelSerializer):
    sale_id = serializers.IntegerField(read_only=True)
    store_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "sync_id",
            "sync_status",
            "sale_id",
            "store_id",
            "amount",
            "payment_method",
            "reference_number",
            "payment_date",
            "status",
            "notes",
            "created_at",
        ]
        read_only_fields = ["sync_id", "sync_status", "created_at"]

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Payment amount must be greater than zero")
        return value


class SaleSerializer(serializers.ModelSerializer):
    store_id = serializers.IntegerField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    items = SaleItemSerializer(many=True, required=False)
    payments = PaymentSerializer(many=True, required=False)

    class Meta:
        model = Sale
        fields = [
            "id",
            "sync_id",
            "sync_status",
            "store_id",
            "user_id",
            "username",
            "sale_number",
            "sale_date",
            "sub_total",
            "discount_amount",
            "tax_amount",
            "grand_total",
            "status",
            "notes",
            "device_id",
            "items",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = SYNC_READ_ONLY + ["sub_total", "tax_amount", "grand_total"]
        extra_kwargs = {"sale_number": {"required": False}, "sale_date": {"required": False}}


class SaleSyncItemSerializer(serializers.ModelSerializer):
    """Line as computed on the device; totals are taken as sent."""

    sync_id = serializers.UUIDField(required=False, allow_null=True)
    product_id = serializers.PrimaryKeyRelatedField(source="product", queryset=Product.objects.all())

    class Meta:
        model = SaleItem
        fields = [
            "sync_id",
            "product_id",
            "quantity",
            "unit_price",
            "discount_rate",
            "discount_amount",
            "tax_rate",
            "tax_amount",
            "line_total",
        ]


class SaleSyncPaymentSerializer(serializers.ModelSerializer):
    sync_id = serializers.UUIDField(required=False, allow_null=True)

    class Meta:
        model = Payment
        fields = ["sync_id", "amount", "payment_method", "reference_number", "payment_date", "status", "notes"]


class SaleSyncSerializer(serializers.ModelSerializer):
    """Device-side sale with its lines and payments.

    Lines are replaced wholesale on every sync; payments are append-only and
    matched by their stable identifier.
    """

    store_id = serializers.IntegerField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    items = SaleSyncItemSerializer(many=True, required=False)
    payments = SaleSyncPaymentSerializer(many=True, required=False)

    class Meta:
        model = Sale
        fields = [
            "id",
            "sync_id",
            "sync_status",
            "store_id",
            "user_id",
            "sale_number",
            "sale_date",
            "sub_total",
            "discount_amount",
            "tax_amount",
            "grand_total",
            "status",
            "notes",
            "device_id",
            "items",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = SYNC_READ_ONLY

    def validate(self, attrs):
        store_id = self.context.get("store_id")
        for item in attrs.get("items") or []:
            if store_id is not None and item["product"].store_id != store_id:
                raise serializers.ValidationError(
                    {"items": f"Product with ID {item['product'].pk} not found in your store"}
                )
        return attrs

    def to_representation(self, instance):
        return SaleSerializer(instance, context=self.context).to_representation(instance)

    def create(self, validated_data):
        items = validated_data.pop("items", None) or []
        payments = validated_data.pop("payments", None) or []
        sale = Sale.objects.create(**validated_data)
        self._replace_items(sale, items)
        self._append_payments(sale, payments)
        return sale

    def update(self, instance, validated_data):
        items = validated_data.pop("items", None)
        payments = validated_data.pop("payments", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if items is not None:
            instance.items.all().delete()
            self._replace_items(instance, items)
        if payments:
            self._append_payments(instance, payments)
        return instance

    def _replace_items(self, sale, items):
        for item in items:
            sync_id = item.pop("sync_id", None)
            extra = {"sync_id": sync_id} if sync_id else {}
            SaleItem.objects.create(sale=sale, store_id=sale.store_id, sync_status=sale.sync_status, **item, **extra)

    def _append_payments(self, sale, payments):
        known = set(Payment.objects.filter(sale=sale).values_list("sync_id", flat=True))
        for payment in payments:
            sync_id = payment.pop("sync_id", None)
            if sync_id and sync_id in known:
                continue
            extra = {"sync_id": sync_id} if sync_id else {}
            Payment.objects.create(sale=sale, store_id=sale.store_id, sync_status=sale.sync_status, **payment, **extra)
