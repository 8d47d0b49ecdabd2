import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)

User = get_user_model()


@database_sync_to_async
def _load_user(user_id):
    return User.objects.filter(pk=user_id, is_active=True).first()


class JwtQueryAuthMiddleware(BaseMiddleware):
    """Authenticates websocket connections from ``?access_token=<jwt>``.

    Browsers cannot set headers on a websocket handshake, so the bearer
    token travels in the query string. The decoded claims are kept in
    ``scope["token_claims"]``.
    """

    query_param = "access_token"

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        scope["user"] = AnonymousUser()
        scope["token_claims"] = {}

        query = parse_qs(scope.get("query_string", b"").decode())
        raw_token = (query.get(self.query_param) or [None])[0]
        if raw_token:
            try:
                token = AccessToken(raw_token)
            except TokenError as exc:
                logger.warning("Rejected websocket token: %s", exc)
            else:
                user = await _load_user(token.get("user_id"))
                if user is not None:
                    scope["user"] = user
                    scope["token_claims"] = dict(token.payload)
        return await super().__call__(scope, receive, send)
