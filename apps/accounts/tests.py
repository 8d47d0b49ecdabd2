from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import AccessToken

from apps.accounts.models import Permission, Role, User
from apps.accounts.policies import Permissions, is_authorized
from apps.accounts.testing import authenticate, make_store, make_user

USER_PERMISSIONS = [
    Permissions.VIEW_USERS,
    Permissions.CREATE_USERS,
    Permissions.EDIT_USERS,
    Permissions.DELETE_USERS,
]


class PolicyTests(APITestCase):
    def test_policy_needs_matching_permission(self):
        self.assertTrue(is_authorized(Permissions.VIEW_SALES, [Permissions.VIEW_SALES]))
        self.assertFalse(is_authorized(Permissions.VIEW_SALES, [Permissions.VIEW_PRODUCTS]))

    def test_admin_permissions_override_everything(self):
        self.assertTrue(is_authorized(Permissions.DELETE_SALES, [Permissions.MANAGE_ALL_STORES]))
        self.assertTrue(is_authorized(Permissions.SYNC_DATA, [Permissions.MANAGE_SYSTEM_SETTINGS]))

    def test_unknown_policy_is_denied(self):
        self.assertFalse(is_authorized("reports.unknown", [Permissions.VIEW_REPORTS]))


class AuthApiTests(APITestCase):
    def setUp(self):
        self.store = make_store()
        self.user = make_user("cashier", store=self.store, permissions=[Permissions.VIEW_SALES])

    def test_login_returns_tokens_with_claims(self):
        resp = self.client.post("/api/auth/login", {"username": "cashier", "password": "pass12345"}, format="json")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["token"], resp.data["access"])
        self.assertEqual(resp.data["user"]["store_id"], self.store.pk)
        claims = AccessToken(resp.data["access"])
        self.assertEqual(claims["storeId"], self.store.pk)
        self.assertEqual(claims["permissions"], [Permissions.VIEW_SALES])
        self.assertEqual(claims["roles"], ["cashier-role"])

    def test_login_with_wrong_password(self):
        resp = self.client.post("/api/auth/login", {"username": "cashier", "password": "nope"}, format="json")

        self.assertEqual(resp.status_code, 401)

    def test_validate_and_user_info(self):
        anonymous = self.client.get("/api/auth/validate")
        authenticate(self.client, self.user)

        valid = self.client.get("/api/auth/validate")
        info = self.client.get("/api/auth/user-info")

        self.assertEqual(anonymous.status_code, 401)
        self.assertEqual(valid.data, {"valid": True})
        self.assertEqual(info.status_code, 200)
        self.assertEqual(info.json()["storeId"], self.store.pk)
        self.assertEqual(info.data["permissions"], [Permissions.VIEW_SALES])

    def test_permissions_come_from_token(self):
        authenticate(self.client, self.user)
        Role.objects.get(name="cashier-role").set_permissions([])

        resp = self.client.get("/api/auth/user-info")

        self.assertEqual(resp.data["permissions"], [Permissions.VIEW_SALES])


class UserApiTests(APITestCase):
    def setUp(self):
        self.store = make_store()
        self.manager = make_user("manager", store=self.store, permissions=USER_PERMISSIONS)
        authenticate(self.client, self.manager)

    def test_list_only_shows_own_store(self):
        make_user("colleague", store=self.store)
        make_user("stranger", store=make_store("Other"))

        resp = self.client.get("/api/users")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(sorted(row["username"] for row in resp.data), ["colleague", "manager"])

    def test_create_lands_in_own_store(self):
        resp = self.client.post(
            "/api/users",
            {"username": "newbie", "password": "longenough1", "email": "newbie@example.com"},
            format="json",
        )

        self.assertEqual(resp.status_code, 201)
        user = User.objects.get(username="newbie")
        self.assertEqual(user.store_id, self.store.pk)
        self.assertTrue(user.check_password("longenough1"))

    def test_create_in_other_store_is_forbidden(self):
        other = make_store("Other")

        resp = self.client.post(
            "/api/users",
            {"username": "mole", "password": "longenough1", "storeId": other.pk},
            format="json",
        )

        self.assertEqual(resp.status_code, 403)
        self.assertFalse(User.objects.filter(username="mole").exists())

    def test_duplicate_username(self):
        resp = self.client.post("/api/users", {"username": "manager", "password": "longenough1"}, format="json")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["errors"]["username"], ["Username is already taken"])

    def test_delete_deactivates(self):
        colleague = make_user("colleague", store=self.store)

        resp = self.client.delete(f"/api/users/{colleague.pk}")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["message"], "User deactivated successfully")
        colleague.refresh_from_db()
        self.assertFalse(colleague.is_active)

    def test_cannot_delete_yourself(self):
        resp = self.client.delete(f"/api/users/{self.manager.pk}")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["message"], "You cannot delete your own account")

    def test_change_password(self):
        wrong = self.client.post(
            "/api/users/change-password",
            {"currentPassword": "bad", "newPassword": "Another-pass-42"},
            format="json",
        )
        right = self.client.post(
            "/api/users/change-password",
            {"currentPassword": "pass12345", "newPassword": "Another-pass-42"},
            format="json",
        )

        self.assertEqual(wrong.status_code, 400)
        self.assertEqual(right.status_code, 200)
        self.manager.refresh_from_db()
        self.assertTrue(self.manager.check_password("Another-pass-42"))


class RoleApiTests(APITestCase):
    def setUp(self):
        self.admin = make_user("root", permissions=[Permissions.MANAGE_ROLES])
        authenticate(self.client, self.admin)
        self.view_sales = Permission.objects.create(name=Permissions.VIEW_SALES)

    def test_create_with_permission_names(self):
        resp = self.client.post(
            "/api/roles", {"name": "Cashier", "permissions": [Permissions.VIEW_SALES]}, format="json"
        )

        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["permissions"], [Permissions.VIEW_SALES])

    def test_unknown_permission_is_rejected(self):
        resp = self.client.post("/api/roles", {"name": "Odd", "permissions": ["nope.nothing"]}, format="json")

        self.assertEqual(resp.status_code, 400)

    def test_duplicate_name(self):
        resp = self.client.post("/api/roles", {"name": "root-role"}, format="json")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["errors"]["name"], ["Role name already exists"])

    def test_with_permissions(self):
        role = Role.objects.create(name="Cashier")
        role.set_permissions([Permissions.VIEW_SALES])

        resp = self.client.get("/api/roles/with-permissions")

        self.assertEqual(resp.status_code, 200)
        cashier = next(row for row in resp.data if row["role"]["name"] == "Cashier")
        self.assertEqual([p["name"] for p in cashier["permissions"]], [Permissions.VIEW_SALES])

    def test_assigned_role_cannot_be_deleted(self):
        role = Role.objects.get(name="root-role")

        resp = self.client.delete(f"/api/roles/{role.pk}")

        self.assertEqual(resp.status_code, 400)
        self.assertTrue(Role.objects.filter(pk=role.pk).exists())

    def test_unassigned_role_is_deleted(self):
        role = Role.objects.create(name="Spare")

        resp = self.client.delete(f"/api/roles/{role.pk}")

        self.assertEqual(resp.status_code, 204)

    def test_role_endpoints_need_manage_roles(self):
        clerk = make_user("clerk", store=make_store(), permissions=[Permissions.VIEW_SALES])
        authenticate(self.client, clerk)

        resp = self.client.get("/api/roles")

        self.assertEqual(resp.status_code, 403)
