from django.urls import path

from .consumers import SyncConsumer

websocket_urlpatterns = [
    path("hubs/sync", SyncConsumer.as_asgi()),
]
