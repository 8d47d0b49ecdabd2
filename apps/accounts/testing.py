"""Helpers for building callers in API and channel tests."""

from apps.accounts.models import Permission, Role, User
from apps.accounts.tokens import issue_tokens
from apps.stores.models import Store


def make_store(name="Main Store", **extra) -> Store:
    return Store.objects.create(name=name, **extra)


def make_user(username, store=None, permissions=(), password="pass12345") -> User:
    user = User.objects.create_user(username=username, password=password, store=store)
    if permissions:
        for name in permissions:
            Permission.objects.get_or_create(name=name)
        role = Role.objects.create(name=f"{username}-role")
        role.set_permissions(permissions)
        user.set_roles([role])
    return user


def access_token(user) -> str:
    return issue_tokens(user)["access"]


def authenticate(client, user) -> str:
    token = access_token(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return token
