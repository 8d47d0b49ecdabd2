from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import CategoryViewSet, PaymentViewSet, ProductViewSet, PromotionViewSet, SaleViewSet, StoreViewSet

router = DefaultRouter(trailing_slash=False)
router.register("products", ProductViewSet, basename="product")
router.register("categories", CategoryViewSet, basename="category")
router.register("promotions", PromotionViewSet, basename="promotion")
router.register("sales", SaleViewSet, basename="sale")
router.register("payments", PaymentViewSet, basename="payment")
router.register("stores", StoreViewSet, basename="store")

urlpatterns = [
    path("", include(router.urls)),
]
