from rest_framework.routers import DefaultRouter

from .views import ModulePermissionViewSet, RoleViewSet

router = DefaultRouter()
router.register(r"roles", RoleViewSet, basename="roles")
router.register(r"module-permissions", ModulePermissionViewSet, basename="module-permissions")

urlpatterns = router.urls
