from django.contrib import admin
from django.urls import path, include
from rest_framework import permissions

from drf_spectacular.views import (
    SpectacularSwaggerView,
    SpectacularRedocView,
)
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from config.schema_view import CustomSpectacularAPIView

# ================================
# URL PATTERNS
# ================================
urlpatterns = [

    # -------------------------
    # Django Admin
    # -------------------------
    path("admin/", admin.site.urls),

    # -------------------------
    # JWT authentication
    # -------------------------
    path("api/v1/auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/v1/auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),

    # -------------------------
    # Platform services
    # Base: /api/v1/
    # -------------------------
    path("api/v1/", include("app.platform.modules.urls")),
    path("api/v1/", include("app.platform.rbac.urls")),

    # -------------------------
    # OpenAPI / Swagger / Redoc
    # -------------------------
    path("api/schema/", CustomSpectacularAPIView.as_view(), name="schema"),
    path(
        "api/schema/swagger-ui/",
        SpectacularSwaggerView.as_view(url_name="schema", permission_classes=[permissions.AllowAny]),
        name="swagger-ui",
    ),
    path(
        "api/schema/redoc/",
        SpectacularRedocView.as_view(url_name="schema", permission_classes=[permissions.AllowAny]),
        name="redoc",
    ),
]
