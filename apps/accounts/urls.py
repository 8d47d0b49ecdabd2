from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import RoleViewSet, UserViewSet, user_info, validate_token

router = SimpleRouter(trailing_slash=False)
router.register("users", UserViewSet, basename="user")
router.register("roles", RoleViewSet, basename="role")

urlpatterns = [
    path("auth/validate", validate_token, name="auth-validate"),
    path("auth/user-info", user_info, name="auth-user-info"),
    path("", include(router.urls)),
]
