import uuid
from decimal import Decimal
from unittest import mock

from asgiref.sync import async_to_sync
from channels.testing import WebsocketCommunicator
from django.test import TransactionTestCase
from rest_framework.test import APITestCase

from apps.accounts.models import Permission, Role
from apps.accounts.policies import Permissions, caller_from_claims
from apps.accounts.testing import access_token, authenticate, make_store, make_user
from apps.catalog.models import Category, Product, Promotion
from apps.sales.models import Payment, Sale

from . import services
from .models import SyncBatch, SyncLog, SyncStatus
from .reconcile import ProductAdapter, parse_numeric_id, parse_sync_id, reconcile

WIDGET_SYNC_ID = "11111111-1111-1111-1111-111111111111"
ZERO_SYNC_ID = "00000000-0000-0000-0000-000000000000"


class ParseIdTests(APITestCase):
    def test_parse_sync_id(self):
        self.assertEqual(parse_sync_id(WIDGET_SYNC_ID), uuid.UUID(WIDGET_SYNC_ID))
        self.assertIsNone(parse_sync_id(ZERO_SYNC_ID))
        self.assertIsNone(parse_sync_id("not-a-uuid"))
        self.assertIsNone(parse_sync_id(None))
        self.assertIsNone(parse_sync_id(""))

    def test_parse_numeric_id(self):
        self.assertEqual(parse_numeric_id("12"), 12)
        self.assertIsNone(parse_numeric_id(0))
        self.assertIsNone(parse_numeric_id(-4))
        self.assertIsNone(parse_numeric_id("abc"))


class ProductSyncTests(APITestCase):
    def setUp(self):
        self.store = make_store()
        self.category = Category.objects.create(name="Tools")
        self.user = make_user("device", store=self.store, permissions=[Permissions.SYNC_DATA])
        authenticate(self.client, self.user)

    def _item(self, sync_id, name="Widget", **extra):
        item = {
            "syncId": str(sync_id),
            "categoryId": self.category.pk,
            "name": name,
            "purchasePrice": "1.00",
            "salesPrice": "2.50",
            "taxRate": "0.1800",
            "stockQuantity": 10,
        }
        item.update(extra)
        return item

    def _push(self, items):
        return self.client.post("/api/products/sync", items, format="json")

    def test_widget_created_then_overwritten(self):
        resp = self._push([self._item(WIDGET_SYNC_ID)])
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp["X-Total-Count"], "1")
        product = Product.objects.get()
        self.assertEqual(product.name, "Widget")
        self.assertEqual(product.sync_status, SyncStatus.SYNCED)
        self.assertEqual(product.store_id, self.store.pk)
        self.assertEqual(str(product.sync_id), WIDGET_SYNC_ID)

        resp = self._push([self._item(WIDGET_SYNC_ID, name="Widget v2")])
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Product.objects.count(), 1)
        updated = Product.objects.get()
        self.assertEqual(updated.pk, product.pk)
        self.assertEqual(updated.name, "Widget v2")
        self.assertEqual(resp.json()[0]["syncId"], WIDGET_SYNC_ID)

    def test_sync_id_match_wins_over_numeric_id(self):
        first = Product.objects.create(store=self.store, category=self.category, name="First")
        second = Product.objects.create(store=self.store, category=self.category, name="Second")

        resp = self._push([self._item(first.sync_id, name="Renamed", id=second.pk)])

        self.assertEqual(resp.status_code, 200)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.name, "Renamed")
        self.assertEqual(second.name, "Second")

    def test_numeric_id_match_keeps_stored_sync_id(self):
        product = Product.objects.create(store=self.store, category=self.category, name="Old")
        original_sync_id = product.sync_id

        resp = self._push([self._item(uuid.uuid4(), name="New", id=product.pk)])

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Product.objects.count(), 1)
        product.refresh_from_db()
        self.assertEqual(product.name, "New")
        self.assertEqual(product.sync_id, original_sync_id)

    def test_unusable_sync_ids_are_skipped(self):
        valid = self._item(uuid.uuid4(), name="Kept")
        no_sync_id = self._item(uuid.uuid4(), name="No id")
        del no_sync_id["syncId"]

        resp = self._push([self._item(ZERO_SYNC_ID, name="Zero"), no_sync_id, "junk", valid])

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp["X-Total-Count"], "1")
        self.assertEqual(list(Product.objects.values_list("name", flat=True)), ["Kept"])

    def test_bad_item_does_not_abort_the_rest(self):
        items = [
            self._item(uuid.uuid4(), name="One"),
            self._item(uuid.uuid4(), name="Broken", categoryId=999999),
            self._item(uuid.uuid4(), name="Two"),
        ]

        resp = self._push(items)

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data), 2)
        self.assertEqual(sorted(Product.objects.values_list("name", flat=True)), ["One", "Two"])

    def test_other_store_rows_are_never_matched(self):
        other_store = make_store("Other")
        foreign = Product.objects.create(store=other_store, category=self.category, name="Foreign")

        resp = self._push([self._item(foreign.sync_id, name="Hijacked", id=foreign.pk)])

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data, [])
        foreign.refresh_from_db()
        self.assertEqual(foreign.name, "Foreign")

    def test_sync_needs_a_store(self):
        storeless = make_user("floating", permissions=[Permissions.SYNC_DATA])
        authenticate(self.client, storeless)

        resp = self._push([self._item(uuid.uuid4())])

        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.data["message"], "User is not associated with any store")

    def test_sync_needs_sync_permission(self):
        viewer = make_user("viewer", store=self.store, permissions=[Permissions.VIEW_PRODUCTS])
        authenticate(self.client, viewer)

        resp = self._push([self._item(uuid.uuid4())])

        self.assertEqual(resp.status_code, 403)
        self.assertEqual(Product.objects.count(), 0)

    def test_pending_sync_lists_not_synced_rows(self):
        Product.objects.create(store=self.store, category=self.category, name="Pending")
        Product.objects.create(
            store=self.store, category=self.category, name="Done", sync_status=SyncStatus.SYNCED
        )
        Product.objects.create(store=make_store("Elsewhere"), category=self.category, name="Foreign")

        resp = self.client.get("/api/products/pending-sync")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual([row["name"] for row in resp.data], ["Pending"])
        self.assertEqual(resp["X-Total-Count"], "1")


class OtherEntitySyncTests(APITestCase):
    def setUp(self):
        self.store = make_store()
        self.category = Category.objects.create(name="Drinks")
        self.product = Product.objects.create(
            store=self.store, category=self.category, name="Tea", sales_price=Decimal("3.00"), stock_quantity=50
        )
        self.user = make_user("device", store=self.store, permissions=[Permissions.SYNC_DATA])
        authenticate(self.client, self.user)

    def test_categories_are_global(self):
        storeless = make_user("hq", permissions=[Permissions.SYNC_DATA])
        authenticate(self.client, storeless)
        sync_id = uuid.uuid4()

        resp = self.client.post(
            "/api/categories/sync", [{"syncId": str(sync_id), "name": "Snacks"}], format="json"
        )

        self.assertEqual(resp.status_code, 200)
        self.assertTrue(Category.objects.filter(sync_id=sync_id, sync_status=SyncStatus.SYNCED).exists())

    def test_promotion_sync_creates_in_caller_store(self):
        sync_id = uuid.uuid4()
        item = {
            "syncId": str(sync_id),
            "productId": self.product.pk,
            "name": "Tea week",
            "startDate": "2026-01-01T00:00:00Z",
            "endDate": "2026-01-07T00:00:00Z",
            "discountType": "Percentage",
            "discountValue": "10.00",
        }

        resp = self.client.post("/api/promotions/sync", [item], format="json")

        self.assertEqual(resp.status_code, 200)
        promotion = Promotion.objects.get(sync_id=sync_id)
        self.assertEqual(promotion.store_id, self.store.pk)

    def test_sale_sync_replaces_items_and_appends_payments(self):
        sale_sync_id = uuid.uuid4()
        payment_sync_id = uuid.uuid4()
        item = {
            "syncId": str(sale_sync_id),
            "saleNumber": "D-0001",
            "saleDate": "2026-02-01T10:00:00Z",
            "subTotal": "6.00",
            "taxAmount": "0.00",
            "grandTotal": "6.00",
            "status": "Completed",
            "deviceId": "till-1",
            "items": [{"productId": self.product.pk, "quantity": 2, "unitPrice": "3.00", "lineTotal": "6.00"}],
            "payments": [{"syncId": str(payment_sync_id), "amount": "6.00", "paymentMethod": "Cash"}],
        }

        first = self.client.post("/api/sales/sync", [item], format="json")
        item["items"] = [{"productId": self.product.pk, "quantity": 1, "unitPrice": "3.00", "lineTotal": "3.00"}]
        item["payments"].append({"syncId": str(uuid.uuid4()), "amount": "1.50", "paymentMethod": "Card"})
        second = self.client.post("/api/sales/sync", [item], format="json")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 200)
        sale = Sale.objects.get(sync_id=sale_sync_id)
        self.assertEqual(sale.user_id, self.user.pk)
        self.assertEqual(sale.store_id, self.store.pk)
        self.assertEqual(list(sale.items.values_list("quantity", flat=True)), [1])
        self.assertEqual(Payment.objects.filter(sale=sale).count(), 2)
        returned = second.data[0]
        self.assertEqual([line["quantity"] for line in returned["items"]], [1])
        self.assertEqual(len(returned["payments"]), 2)

    def test_role_sync_replaces_permissions(self):
        admin = make_user("root", permissions=[Permissions.MANAGE_ALL_STORES])
        authenticate(self.client, admin)
        sync_id = uuid.uuid4()

        resp = self.client.post(
            "/api/roles/sync",
            [{"syncId": str(sync_id), "name": "Auditor", "permissions": [Permissions.MANAGE_ALL_STORES]}],
            format="json",
        )

        self.assertEqual(resp.status_code, 200)
        role = Role.objects.get(sync_id=sync_id)
        self.assertEqual(list(role.permissions.values_list("name", flat=True)), [Permissions.MANAGE_ALL_STORES])

    def test_role_sync_needs_role_management(self):
        Permission.objects.get_or_create(name=Permissions.MANAGE_ALL_STORES)
        own_role = Role.objects.get(name="device-role")

        resp = self.client.post(
            "/api/roles/sync",
            [
                {
                    "id": own_role.pk,
                    "syncId": str(uuid.uuid4()),
                    "name": own_role.name,
                    "permissions": [Permissions.SYNC_DATA, Permissions.MANAGE_ALL_STORES],
                }
            ],
            format="json",
        )

        self.assertEqual(resp.status_code, 403)
        self.assertEqual(list(own_role.permissions.values_list("name", flat=True)), [Permissions.SYNC_DATA])
        self.assertNotIn(Permissions.MANAGE_ALL_STORES, self.user.permission_names())

    def test_store_sync_is_admin_only(self):
        resp = self.client.post("/api/stores/sync", [{"syncId": str(uuid.uuid4()), "name": "New"}], format="json")

        self.assertEqual(resp.status_code, 403)

    def test_reconcile_reports_counts(self):
        caller = caller_from_claims(self.user, {})
        existing = Product.objects.create(store=self.store, category=self.category, name="Old")
        items = [
            {"sync_id": str(existing.sync_id), "category_id": self.category.pk, "name": "Old v2"},
            {"sync_id": str(uuid.uuid4()), "category_id": self.category.pk, "name": "New"},
            {"sync_id": ZERO_SYNC_ID, "name": "Skipped"},
            {"sync_id": str(uuid.uuid4()), "name": "No category"},
        ]

        result = reconcile(ProductAdapter(caller), items)

        self.assertEqual((result.created, result.updated, result.skipped, result.failed), (1, 1, 1, 1))
        self.assertEqual(result.count, 2)


class SyncBatchApiTests(APITestCase):
    def setUp(self):
        self.store = make_store()
        self.user = make_user("device", store=self.store, permissions=[Permissions.SYNC_DATA])
        authenticate(self.client, self.user)

    def _create_batch(self, total=3):
        return self.client.post("/api/sync/batches", {"deviceId": "till-1", "totalRecords": total}, format="json")

    def test_create_batch_notifies_store(self):
        with mock.patch("apps.sync.services.notify_store") as notify:
            resp = self._create_batch()

        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["status"], SyncBatch.Status.PENDING)
        self.assertEqual(resp.data["total_records"], 3)
        self.assertEqual(resp.data["processed_records"], 0)
        store_id, target, payload = notify.call_args.args
        self.assertEqual((store_id, target), (self.store.pk, "SyncBatchCreated"))
        self.assertEqual(payload["username"], "device")

    def test_terminal_status_stamps_end_date(self):
        batch_id = self._create_batch().data["id"]

        resp = self.client.put(
            f"/api/sync/batches/{batch_id}/status",
            {"status": "Completed", "processedRecords": 3},
            format="json",
        )

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["message"], "Sync batch status updated successfully")
        batch = SyncBatch.objects.get(pk=batch_id)
        self.assertEqual(batch.status, SyncBatch.Status.COMPLETED)
        self.assertIsNotNone(batch.end_date)

    def test_counters_are_not_capped(self):
        batch_id = self._create_batch(total=3).data["id"]

        resp = self.client.put(
            f"/api/sync/batches/{batch_id}/status",
            {"status": "InProgress", "processedRecords": 10, "failedRecords": 5},
            format="json",
        )

        self.assertEqual(resp.status_code, 200)
        batch = SyncBatch.objects.get(pk=batch_id)
        self.assertEqual(batch.processed_records + batch.failed_records, 15)
        self.assertIsNone(batch.end_date)

    def test_unknown_status_is_rejected(self):
        batch_id = self._create_batch().data["id"]

        resp = self.client.put(f"/api/sync/batches/{batch_id}/status", {"status": "Paused"}, format="json")

        self.assertEqual(resp.status_code, 400)

    def test_batches_are_store_scoped(self):
        other = make_user("other", store=make_store("Other"), permissions=[Permissions.SYNC_DATA])
        foreign = SyncBatch.objects.create(device_id="x", user=other, store=other.store)
        self._create_batch()

        listing = self.client.get("/api/sync/batches")
        detail = self.client.get(f"/api/sync/batches/{foreign.pk}")

        self.assertEqual(listing.status_code, 200)
        self.assertEqual(listing["X-Total-Count"], "1")
        self.assertEqual(detail.status_code, 404)

    def test_batch_list_filters_by_status(self):
        self._create_batch()
        SyncBatch.objects.create(device_id="till-2", user=self.user, store=self.store, status="Failed")

        resp = self.client.get("/api/sync/batches", {"status": "Failed"})

        self.assertEqual([row["device_id"] for row in resp.data], ["till-2"])

    def test_log_needs_batch_from_same_store(self):
        other = make_user("other", store=make_store("Other"))
        foreign = SyncBatch.objects.create(device_id="x", user=other, store=other.store)

        resp = self.client.post(
            "/api/sync/logs",
            {
                "entityName": "Product",
                "entityId": "42",
                "operation": "Update",
                "deviceId": "till-1",
                "syncBatchId": foreign.pk,
            },
            format="json",
        )

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["message"], f"Sync batch with ID {foreign.pk} does not exist")

    def test_log_status_updates(self):
        batch = SyncBatch.objects.create(device_id="till-1", user=self.user, store=self.store)
        log = SyncLog.objects.create(
            entity_name="Product",
            entity_id="1",
            operation="Create",
            device_id="till-1",
            user=self.user,
            store=self.store,
            sync_batch=batch,
        )

        with mock.patch("apps.sync.services.notify_store") as notify:
            failed = self.client.put(
                f"/api/sync/logs/{log.pk}/status", {"status": "Failed", "errorMessage": "boom"}, format="json"
            )
            synced = self.client.put(f"/api/sync/logs/{log.pk}/status", {"status": "Synced"}, format="json")

        self.assertEqual(failed.status_code, 200)
        self.assertEqual(synced.status_code, 200)
        log.refresh_from_db()
        self.assertEqual(log.retry_count, 1)
        self.assertEqual(log.error_message, "boom")
        self.assertIsNotNone(log.sync_date)
        self.assertEqual(notify.call_count, 2)
        self.assertEqual(notify.call_args.args[1], "SyncLogUpdated")

    def test_pending_counts(self):
        category = Category.objects.create(name="Misc")
        Product.objects.create(store=self.store, category=category, name="A")
        Product.objects.create(store=self.store, category=category, name="B", sync_status=SyncStatus.SYNCED)

        resp = self.client.get("/api/sync/pending")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data, {"products": 1, "categories": 1, "sales": 0, "promotions": 0, "total": 2})

    def test_notification_failure_keeps_state(self):
        batch = SyncBatch.objects.create(device_id="till-1", user=self.user, store=self.store)
        broken_layer = mock.Mock(group_send=mock.AsyncMock(side_effect=RuntimeError("layer down")))

        with mock.patch("apps.sync.notify.get_channel_layer", return_value=broken_layer):
            resp = self.client.put(f"/api/sync/batches/{batch.pk}/status", {"status": "Failed"}, format="json")

        self.assertEqual(resp.status_code, 200)
        batch.refresh_from_db()
        self.assertEqual(batch.status, SyncBatch.Status.FAILED)
        self.assertIsNotNone(batch.end_date)


class RecordChangeTests(APITestCase):
    def setUp(self):
        self.store = make_store()
        self.category = Category.objects.create(name="Tools")
        self.user = make_user("device", store=self.store, permissions=[Permissions.SYNC_DATA])
        self.caller = caller_from_claims(self.user, {})
        self.batch = SyncBatch.objects.create(device_id="conn-1", user=self.user, store=self.store)

    def test_successful_change_is_counted(self):
        sync_id = uuid.uuid4()
        payload = {"sync_id": str(sync_id), "category_id": self.category.pk, "name": "Hammer"}

        log = services.record_change(self.batch, self.caller, "conn-1", "Product", str(sync_id), "Create", payload=payload)

        self.assertEqual(log.sync_status, SyncStatus.SYNCED)
        self.assertEqual(log.priority, 1)
        self.assertIsNotNone(log.sync_date)
        self.assertTrue(Product.objects.filter(sync_id=sync_id).exists())
        self.batch.refresh_from_db()
        self.assertEqual((self.batch.total_records, self.batch.processed_records), (1, 1))

    def test_failed_change_is_logged(self):
        payload = {"sync_id": str(uuid.uuid4()), "name": "No category"}

        log = services.record_change(self.batch, self.caller, "conn-1", "Product", "x", "Create", payload=payload)

        self.assertEqual(log.sync_status, SyncStatus.FAILED)
        self.assertTrue(log.error_message)
        self.batch.refresh_from_db()
        self.assertEqual((self.batch.processed_records, self.batch.failed_records), (0, 1))

    def test_role_change_without_role_management_fails(self):
        Permission.objects.get_or_create(name=Permissions.MANAGE_ALL_STORES)
        own_role = Role.objects.get(name="device-role")
        payload = {
            "sync_id": str(own_role.sync_id),
            "name": own_role.name,
            "permissions": [Permissions.SYNC_DATA, Permissions.MANAGE_ALL_STORES],
        }

        log = services.record_change(
            self.batch, self.caller, "conn-1", "Role", str(own_role.sync_id), "Update", payload=payload
        )

        self.assertEqual(log.sync_status, SyncStatus.FAILED)
        self.assertEqual(list(own_role.permissions.values_list("name", flat=True)), [Permissions.SYNC_DATA])

    def test_completed_batch_has_end_date(self):
        summary = services.complete_batch(self.batch)

        self.assertEqual(summary["status"], SyncBatch.Status.COMPLETED)
        self.assertIsNotNone(summary["end_date"])


class SyncHubSocketTests(TransactionTestCase):
    def setUp(self):
        from config.asgi import application

        self.application = application
        self.store = make_store()
        self.user = make_user("device", store=self.store, permissions=[Permissions.SYNC_DATA])
        self.token = access_token(self.user)

    def _path(self, token=None):
        return f"/hubs/sync?access_token={token or self.token}"

    def test_anonymous_connection_is_rejected(self):
        async def scenario():
            communicator = WebsocketCommunicator(self.application, "/hubs/sync")
            connected, code = await communicator.connect()
            return connected, code

        connected, code = async_to_sync(scenario)()

        self.assertFalse(connected)
        self.assertEqual(code, 4401)

    def test_start_and_complete_batch(self):
        async def scenario():
            communicator = WebsocketCommunicator(self.application, self._path())
            connected, _ = await communicator.connect()
            await communicator.send_json_to(
                {"type": "invocation", "invocationId": "1", "target": "StartSync", "arguments": [self.store.pk]}
            )
            frames = [await communicator.receive_json_from(), await communicator.receive_json_from()]
            started = next(f for f in frames if f["type"] == "completion")
            event = next(f for f in frames if f["type"] == "event")
            batch_id = started["result"]["batchId"]

            await communicator.send_json_to(
                {"type": "invocation", "invocationId": "2", "target": "CompleteSyncBatch", "arguments": [batch_id]}
            )
            frames = [await communicator.receive_json_from(), await communicator.receive_json_from()]
            completed = next(f for f in frames if f["type"] == "completion")
            await communicator.disconnect()
            return connected, started, event, completed

        connected, started, event, completed = async_to_sync(scenario)()

        self.assertTrue(connected)
        self.assertEqual(started["invocationId"], "1")
        self.assertEqual(started["result"]["status"], "InProgress")
        self.assertEqual(event["target"], "SyncBatchCreated")
        self.assertEqual(completed["result"]["status"], "Completed")
        self.assertIsNotNone(completed["result"]["endDate"])
        batch = SyncBatch.objects.get(pk=started["result"]["batchId"])
        self.assertEqual(batch.status, SyncBatch.Status.COMPLETED)
        self.assertTrue(batch.device_id)

    def test_start_sync_for_foreign_store_fails(self):
        other = make_store("Other")

        async def scenario():
            communicator = WebsocketCommunicator(self.application, self._path())
            await communicator.connect()
            await communicator.send_json_to(
                {"type": "invocation", "invocationId": "9", "target": "StartSync", "arguments": [other.pk]}
            )
            reply = await communicator.receive_json_from()
            await communicator.disconnect()
            return reply

        reply = async_to_sync(scenario)()

        self.assertEqual(reply["error"], "Unauthorized access to store")
        self.assertFalse(SyncBatch.objects.exists())

    def test_send_changes_with_unknown_batch(self):
        async def scenario():
            communicator = WebsocketCommunicator(self.application, self._path())
            await communicator.connect()
            await communicator.send_json_to(
                {
                    "type": "invocation",
                    "invocationId": "3",
                    "target": "SendChanges",
                    "arguments": [
                        {"syncBatchId": 999, "entityName": "Product", "entityId": "1", "operation": "Update"}
                    ],
                }
            )
            reply = await communicator.receive_json_from()
            await communicator.disconnect()
            return reply

        reply = async_to_sync(scenario)()

        self.assertEqual(reply["error"], "Invalid sync batch ID")

    def test_send_changes_records_log(self):
        batch = SyncBatch.objects.create(
            device_id="conn", user=self.user, store=self.store, status=SyncBatch.Status.IN_PROGRESS
        )

        async def scenario():
            communicator = WebsocketCommunicator(self.application, self._path())
            await communicator.connect()
            await communicator.send_json_to(
                {
                    "type": "invocation",
                    "invocationId": "4",
                    "target": "SendChanges",
                    "arguments": [
                        {"syncBatchId": batch.pk, "entityName": "Customer", "entityId": "7", "operation": "Create"}
                    ],
                }
            )
            reply = await communicator.receive_json_from()
            await communicator.disconnect()
            return reply

        reply = async_to_sync(scenario)()

        self.assertTrue(reply["result"]["success"])
        self.assertEqual(reply["result"]["entityId"], "7")
        log = SyncLog.objects.get()
        self.assertEqual((log.sync_status, log.priority, log.sync_batch_id), (SyncStatus.SYNCED, 1, batch.pk))

    def test_request_client_sync_reaches_store_devices(self):
        async def scenario():
            listener = WebsocketCommunicator(self.application, self._path())
            caller = WebsocketCommunicator(self.application, self._path())
            await listener.connect()
            await caller.connect()
            await caller.send_json_to(
                {"type": "invocation", "invocationId": "5", "target": "RequestClientSync", "arguments": [self.store.pk]}
            )
            event = await listener.receive_json_from()
            await listener.disconnect()
            await caller.disconnect()
            return event

        event = async_to_sync(scenario)()

        self.assertEqual(event["type"], "event")
        self.assertEqual(event["target"], "SyncRequested")
        self.assertEqual(event["arguments"][0]["storeId"], self.store.pk)
