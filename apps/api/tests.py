from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from rest_framework.test import APITestCase

from apps.accounts.policies import Permissions
from apps.accounts.testing import authenticate, make_store, make_user
from apps.catalog.models import Category, Product, ProductTransaction, Promotion
from apps.sales.models import Sale
from apps.stores.models import Store
from apps.sync.models import SyncStatus

CATALOG_PERMISSIONS = [
    Permissions.VIEW_PRODUCTS,
    Permissions.CREATE_PRODUCTS,
    Permissions.EDIT_PRODUCTS,
    Permissions.DELETE_PRODUCTS,
    Permissions.MANAGE_STOCK,
    Permissions.VIEW_PRODUCT_HISTORY,
    Permissions.VIEW_CATEGORIES,
    Permissions.DELETE_CATEGORIES,
]

SALES_PERMISSIONS = [
    Permissions.VIEW_SALES,
    Permissions.CREATE_SALES,
    Permissions.EDIT_SALES,
    Permissions.DELETE_SALES,
]

PROMOTION_PERMISSIONS = [
    Permissions.VIEW_PROMOTIONS,
    Permissions.CREATE_PROMOTIONS,
    Permissions.EDIT_PROMOTIONS,
]


class ProductApiTests(APITestCase):
    def setUp(self):
        self.store = make_store()
        self.category = Category.objects.create(name="Drinks")
        self.user = make_user("clerk", store=self.store, permissions=CATALOG_PERMISSIONS)
        authenticate(self.client, self.user)

    def _product(self, name="Tea", store=None, **extra):
        return Product.objects.create(store=store or self.store, category=self.category, name=name, **extra)

    def test_create_uses_camel_case_and_records_history(self):
        resp = self.client.post(
            "/api/products",
            {
                "name": "Green tea",
                "categoryId": self.category.pk,
                "barcode": "4780001",
                "salesPrice": "2.50",
                "stockQuantity": 5,
            },
            format="json",
        )

        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["categoryName"], "Drinks")
        self.assertEqual(body["storeId"], self.store.pk)
        self.assertEqual(body["syncStatus"], SyncStatus.NOT_SYNCED)
        product = Product.objects.get(pk=body["id"])
        self.assertEqual(product.sales_price, Decimal("2.50"))
        self.assertTrue(
            ProductTransaction.objects.filter(
                product=product, transaction_type=ProductTransaction.Type.PRODUCT_CREATED
            ).exists()
        )

    def test_duplicate_barcode_in_store_is_rejected(self):
        self._product(barcode="111")

        resp = self.client.post(
            "/api/products", {"name": "Copy", "categoryId": self.category.pk, "barcode": "111"}, format="json"
        )

        self.assertEqual(resp.status_code, 400)
        self.assertIn("barcode", resp.data["errors"])

    def test_list_is_store_scoped_and_paged(self):
        self._product("A")
        self._product("B")
        self._product("Hidden", is_active=False)
        self._product("Foreign", store=make_store("Other"))

        first_page = self.client.get("/api/products", {"pageSize": 1})
        past_end = self.client.get("/api/products", {"pageSize": 1, "pageNumber": 9})

        self.assertEqual(first_page.status_code, 200)
        self.assertEqual(first_page["X-Total-Count"], "2")
        self.assertEqual([row["name"] for row in first_page.data], ["A"])
        self.assertEqual(past_end.status_code, 200)
        self.assertEqual(past_end.data, [])
        self.assertEqual(past_end["X-Total-Count"], "2")

    def test_low_stock_filter(self):
        self._product("Plenty", stock_quantity=50, minimum_stock_level=5)
        self._product("Short", stock_quantity=2, minimum_stock_level=5)

        resp = self.client.get("/api/products", {"onlyLowStock": "true"})

        self.assertEqual([row["name"] for row in resp.data], ["Short"])

    def test_barcode_lookup(self):
        product = self._product(barcode="990011")

        found = self.client.get("/api/products/barcode/990011")
        missing = self.client.get("/api/products/barcode/000")

        self.assertEqual(found.status_code, 200)
        self.assertEqual(found.data["id"], product.pk)
        self.assertEqual(missing.status_code, 404)

    def test_update_stock_writes_history(self):
        product = self._product(stock_quantity=3)

        resp = self.client.post(
            "/api/products/update-stock", {"productId": product.pk, "newQuantity": 10}, format="json"
        )
        history = self.client.get(f"/api/products/{product.pk}/stock-history")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["stock_quantity"], 10)
        self.assertEqual(history.status_code, 200)
        self.assertEqual(history.data[0]["quantity_change"], 7)
        self.assertEqual(history.data[0]["transaction_type"], ProductTransaction.Type.STOCK_IN)

    def test_update_marks_not_synced(self):
        product = self._product(sync_status=SyncStatus.SYNCED, sales_price=Decimal("1.00"))

        resp = self.client.patch(f"/api/products/{product.pk}", {"salesPrice": "1.20"}, format="json")

        self.assertEqual(resp.status_code, 200)
        product.refresh_from_db()
        self.assertEqual(product.sync_status, SyncStatus.NOT_SYNCED)
        self.assertTrue(product.transactions.filter(price_before=Decimal("1.00"), price_after=Decimal("1.20")).exists())

    def test_delete_unused_product(self):
        product = self._product()

        resp = self.client.delete(f"/api/products/{product.pk}")

        self.assertEqual(resp.status_code, 204)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_delete_sold_product_is_soft(self):
        product = self._product(stock_quantity=5, sales_price=Decimal("1.00"))
        seller = make_user("seller", store=self.store, permissions=SALES_PERMISSIONS)
        authenticate(self.client, seller)
        self.client.post("/api/sales", {"items": [{"productId": product.pk, "quantity": 1}]}, format="json")
        authenticate(self.client, self.user)

        resp = self.client.delete(f"/api/products/{product.pk}")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["message"], "Product was soft deleted as it is used in sales records")
        product.refresh_from_db()
        self.assertFalse(product.is_active)

    def test_foreign_product_is_not_found(self):
        foreign = self._product(store=make_store("Other"))

        resp = self.client.get(f"/api/products/{foreign.pk}")

        self.assertEqual(resp.status_code, 404)

    def test_category_with_products_is_deactivated(self):
        self._product()

        resp = self.client.delete(f"/api/categories/{self.category.pk}")

        self.assertEqual(resp.status_code, 200)
        self.category.refresh_from_db()
        self.assertFalse(self.category.is_active)


class SaleApiTests(APITestCase):
    def setUp(self):
        self.store = make_store()
        category = Category.objects.create(name="Bakery")
        self.product = Product.objects.create(
            store=self.store,
            category=category,
            name="Bread",
            sales_price=Decimal("2.50"),
            tax_rate=Decimal("0.1000"),
            stock_quantity=10,
        )
        self.user = make_user("cashier", store=self.store, permissions=SALES_PERMISSIONS)
        authenticate(self.client, self.user)

    def _sell(self, quantity=2, **extra):
        payload = {"items": [{"productId": self.product.pk, "quantity": quantity}]}
        payload.update(extra)
        return self.client.post("/api/sales", payload, format="json")

    def test_sale_deducts_stock_and_totals(self):
        resp = self._sell(payments=[{"amount": "5.50"}])

        self.assertEqual(resp.status_code, 201)
        self.assertEqual(Decimal(str(resp.data["grand_total"])), Decimal("5.50"))
        self.assertEqual(resp.data["status"], Sale.Status.FULLY_PAID)
        self.assertTrue(resp.data["sale_number"])
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 8)

    def test_insufficient_stock(self):
        resp = self._sell(quantity=11)

        self.assertEqual(resp.status_code, 400)
        self.assertIn("Insufficient stock", resp.data["message"])
        self.assertFalse(Sale.objects.exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 10)

    def test_delete_draft_removes_it(self):
        sale_id = self._sell(status="Draft").data["id"]

        resp = self.client.delete(f"/api/sales/{sale_id}")

        self.assertEqual(resp.status_code, 204)
        self.assertFalse(Sale.objects.filter(pk=sale_id).exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 10)

    def test_delete_completed_sale_cancels_it(self):
        sale_id = self._sell().data["id"]

        resp = self.client.delete(f"/api/sales/{sale_id}")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["message"], "Sale canceled and stock returned")
        self.assertEqual(Sale.objects.get(pk=sale_id).status, Sale.Status.CANCELED)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 10)

    def test_view_permission_is_required(self):
        viewer = make_user("viewer", store=self.store, permissions=[Permissions.VIEW_PRODUCTS])
        authenticate(self.client, viewer)

        resp = self.client.get("/api/sales")

        self.assertEqual(resp.status_code, 403)

    def test_store_admin_sees_every_store(self):
        self._sell()
        other_store = make_store("Other")
        other_cashier = make_user("other", store=other_store, permissions=SALES_PERMISSIONS)
        Sale.objects.create(store=other_store, user=other_cashier, sale_number="X-1")
        admin = make_user("root", permissions=[Permissions.MANAGE_ALL_STORES])
        authenticate(self.client, admin)

        everything = self.client.get("/api/sales")
        one_store = self.client.get("/api/sales", {"storeId": other_store.pk})

        self.assertEqual(everything.status_code, 200)
        self.assertEqual(everything["X-Total-Count"], "2")
        self.assertEqual([row["sale_number"] for row in one_store.data], ["X-1"])

    def test_payments_filter_by_sale(self):
        sale_id = self._sell(payments=[{"amount": "1.00"}, {"amount": "2.00"}]).data["id"]
        self._sell(quantity=1, payments=[{"amount": "2.75"}])

        resp = self.client.get("/api/payments", {"saleId": sale_id})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp["X-Total-Count"], "2")

    def test_payments_added_on_update_drive_status(self):
        sale_id = self._sell().data["id"]

        partial = self.client.put(f"/api/sales/{sale_id}", {"payments": [{"amount": "2.00"}]}, format="json")
        full = self.client.put(f"/api/sales/{sale_id}", {"payments": [{"amount": "3.50"}]}, format="json")

        self.assertEqual(partial.status_code, 200)
        self.assertEqual(partial.data["status"], Sale.Status.PARTIALLY_PAID)
        self.assertEqual(len(partial.data["payments"]), 1)
        self.assertEqual(full.status_code, 200)
        self.assertEqual(full.data["status"], Sale.Status.FULLY_PAID)
        self.assertEqual(len(full.data["payments"]), 2)
        self.assertEqual(Sale.objects.get(pk=sale_id).status, Sale.Status.FULLY_PAID)

    def test_amount_filters(self):
        self._sell()

        above = self.client.get("/api/sales", {"minAmount": "5"})
        below = self.client.get("/api/sales", {"maxAmount": "1"})
        bad = self.client.get("/api/sales", {"minAmount": "abc"})

        self.assertEqual(above["X-Total-Count"], "1")
        self.assertEqual(below["X-Total-Count"], "0")
        self.assertEqual(bad.status_code, 400)
        self.assertIn("minAmount", bad.data["errors"])


class PromotionApiTests(APITestCase):
    def setUp(self):
        self.store = make_store()
        category = Category.objects.create(name="Dairy")
        self.product = Product.objects.create(store=self.store, category=category, name="Milk")
        self.user = make_user("marketer", store=self.store, permissions=PROMOTION_PERMISSIONS)
        authenticate(self.client, self.user)
        self.now = timezone.now()

    def _payload(self, **extra):
        payload = {
            "productId": self.product.pk,
            "name": "Milk days",
            "startDate": (self.now - timedelta(days=1)).isoformat(),
            "endDate": (self.now + timedelta(days=1)).isoformat(),
            "discountType": "Percentage",
            "discountValue": "15.00",
        }
        payload.update(extra)
        return payload

    def test_create_and_list_active(self):
        created = self.client.post("/api/promotions", self._payload(), format="json")
        active = self.client.get("/api/promotions/active")

        self.assertEqual(created.status_code, 201)
        self.assertEqual([row["name"] for row in active.data], ["Milk days"])

    def test_end_before_start_is_rejected(self):
        resp = self.client.post(
            "/api/promotions",
            self._payload(startDate=self.now.isoformat(), endDate=(self.now - timedelta(days=2)).isoformat()),
            format="json",
        )

        self.assertEqual(resp.status_code, 400)
        self.assertIn("end_date", resp.data["errors"])

    def test_percentage_over_hundred_is_rejected(self):
        resp = self.client.post("/api/promotions", self._payload(discountValue="150"), format="json")

        self.assertEqual(resp.status_code, 400)

    def test_product_from_other_store_is_rejected(self):
        foreign = Product.objects.create(store=make_store("Other"), category=self.product.category, name="Cheese")

        resp = self.client.post("/api/promotions", self._payload(productId=foreign.pk), format="json")

        self.assertEqual(resp.status_code, 400)

    def test_toggle_active(self):
        promotion = Promotion.objects.create(
            store=self.store,
            product=self.product,
            name="Flip",
            start_date=self.now,
            end_date=self.now + timedelta(days=3),
            discount_value=Decimal("5"),
        )

        resp = self.client.patch(f"/api/promotions/{promotion.pk}/toggle-active")

        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.data["is_active"])
        promotion.refresh_from_db()
        self.assertEqual(promotion.sync_status, SyncStatus.NOT_SYNCED)


class StoreApiTests(APITestCase):
    def setUp(self):
        self.store = make_store(address="1 Main St")
        self.admin = make_user("root", permissions=[Permissions.MANAGE_ALL_STORES])
        authenticate(self.client, self.admin)

    def test_name_must_be_unique(self):
        resp = self.client.post("/api/stores", {"name": "main store"}, format="json")

        self.assertEqual(resp.status_code, 400)
        self.assertIn("name", resp.data["errors"])

    def test_delete_with_users_is_blocked(self):
        make_user("clerk", store=self.store)

        resp = self.client.delete(f"/api/stores/{self.store.pk}")

        self.assertEqual(resp.status_code, 400)
        self.store.refresh_from_db()
        self.assertTrue(self.store.is_active)

    def test_delete_empty_store_deactivates(self):
        resp = self.client.delete(f"/api/stores/{self.store.pk}")

        self.assertEqual(resp.status_code, 200)
        self.assertFalse(Store.objects.get(pk=self.store.pk).is_active)

    def test_stats(self):
        make_user("clerk", store=self.store)

        resp = self.client.get(f"/api/stores/{self.store.pk}/stats")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["user_count"], 1)
        self.assertEqual(resp.data["sale_count"], 0)
        self.assertEqual(resp.data["recent_sales"], [])

    def test_my_store_read_and_update(self):
        clerk = make_user("clerk", store=self.store)
        authenticate(self.client, clerk)

        read = self.client.get("/api/stores/my-store")
        write = self.client.put("/api/stores/my-store", {"phone": "555"}, format="json")

        self.assertEqual(read.status_code, 200)
        self.assertEqual(read.data["name"], "Main Store")
        self.assertEqual(write.status_code, 403)

        manager = make_user("manager", store=self.store, permissions=[Permissions.SYSTEM_SETTINGS])
        authenticate(self.client, manager)
        write = self.client.put("/api/stores/my-store", {"phone": "555"}, format="json")

        self.assertEqual(write.status_code, 200)
        self.assertEqual(Store.objects.get(pk=self.store.pk).phone, "555")

    def test_store_list_needs_admin(self):
        clerk = make_user("clerk", store=self.store, permissions=[Permissions.VIEW_PRODUCTS])
        authenticate(self.client, clerk)

        resp = self.client.get("/api/stores")

        self.assertEqual(resp.status_code, 403)
