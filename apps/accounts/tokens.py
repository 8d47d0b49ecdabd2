from rest_framework_simplejwt.tokens import RefreshToken


def add_claims(token, user):
    """Copy the caller's store and flattened permissions into a token."""
    token["username"] = user.username
    if user.store_id is not None:
        token["storeId"] = user.store_id
    token["roles"] = user.role_names()
    token["permissions"] = sorted(user.permission_names())
    return token


def issue_tokens(user) -> dict:
    refresh = add_claims(RefreshToken.for_user(user), user)
    return {"refresh": str(refresh), "access": str(refresh.access_token)}
