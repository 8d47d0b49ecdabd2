from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import Permission, Role, User
from apps.accounts.policies import Permissions
from apps.stores.models import Store

P = Permissions

DEFAULT_ROLES = {
    "Administrator": {
        "description": "Full access to every store",
        "permissions": Permissions.all(),
    },
    "StoreManager": {
        "description": "Runs a single store",
        "permissions": [
            P.VIEW_PRODUCTS,
            P.CREATE_PRODUCTS,
            P.EDIT_PRODUCTS,
            P.DELETE_PRODUCTS,
            P.MANAGE_STOCK,
            P.VIEW_PRODUCT_HISTORY,
            P.VIEW_PRODUCT_PRICE_HISTORY,
            P.VIEW_CATEGORIES,
            P.CREATE_CATEGORIES,
            P.EDIT_CATEGORIES,
            P.VIEW_SALES,
            P.CREATE_SALES,
            P.EDIT_SALES,
            P.DELETE_SALES,
            P.DISCOUNT_SALES,
            P.VIEW_PROMOTIONS,
            P.CREATE_PROMOTIONS,
            P.EDIT_PROMOTIONS,
            P.DELETE_PROMOTIONS,
            P.VIEW_USERS,
            P.CREATE_USERS,
            P.EDIT_USERS,
            P.VIEW_REPORTS,
            P.VIEW_STORE_SETTINGS,
            P.EDIT_STORE_SETTINGS,
            P.SYSTEM_SETTINGS,
            P.SYNC_DATA,
        ],
    },
    "Cashier": {
        "description": "Rings up sales",
        "permissions": [
            P.VIEW_PRODUCTS,
            P.VIEW_CATEGORIES,
            P.VIEW_SALES,
            P.CREATE_SALES,
            P.VIEW_PROMOTIONS,
            P.SYNC_DATA,
        ],
    },
}

DEMO_PASSWORD = "demo12345"


class Command(BaseCommand):
    help = "Create every permission and the default roles. Use --demo for a demo store and users."

    def add_arguments(self, parser):
        parser.add_argument("--demo", action="store_true", help="Also create a demo store with one user per role.")

    @transaction.atomic
    def handle(self, *args, **options):
        created = 0
        for name in Permissions.all():
            _, was_created = Permission.objects.get_or_create(name=name, defaults={"description": name})
            created += int(was_created)
        self.stdout.write(f"Permissions: {created} created, {len(Permissions.all())} total.")

        roles = {}
        for name, definition in DEFAULT_ROLES.items():
            role, _ = Role.objects.get_or_create(name=name, defaults={"description": definition["description"]})
            role.set_permissions(definition["permissions"])
            roles[name] = role
        self.stdout.write(f"Roles: {', '.join(roles)}.")

        if options["demo"]:
            self._seed_demo(roles)

        self.stdout.write(self.style.SUCCESS("Permissions seeded."))

    def _seed_demo(self, roles):
        store, _ = Store.objects.get_or_create(name="Demo Store", defaults={"address": "Main street 1"})
        accounts = [
            ("admin", "Administrator", None),
            ("manager", "StoreManager", store),
            ("cashier", "Cashier", store),
        ]
        for username, role_name, user_store in accounts:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User(username=username, email=f"{username}@example.com", store=user_store)
                user.set_password(DEMO_PASSWORD)
                user.is_staff = role_name == "Administrator"
                user.is_superuser = role_name == "Administrator"
                user.save()
            user.set_roles([roles[role_name]])
        self.stdout.write(f"Demo store '{store.name}' with users admin, manager, cashier (password {DEMO_PASSWORD}).")
