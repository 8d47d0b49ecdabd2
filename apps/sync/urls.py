from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import PendingSyncView, SyncBatchViewSet, SyncGroupView, SyncLogViewSet

router = SimpleRouter(trailing_slash=False)
router.register("sync/batches", SyncBatchViewSet, basename="sync-batch")
router.register("sync/logs", SyncLogViewSet, basename="sync-log")

urlpatterns = [
    path("sync/pending", PendingSyncView.as_view(), name="sync-pending"),
    path("sync/joingroup", SyncGroupView.as_view(join=True), name="sync-join-group"),
    path("sync/leavegroup", SyncGroupView.as_view(join=False), name="sync-leave-group"),
    path("", include(router.urls)),
]
