from rest_framework.routers import DefaultRouter

from .views import ModuleConfigurationViewSet

router = DefaultRouter()
router.register(r"module-configuration", ModuleConfigurationViewSet, basename="module-configuration")

urlpatterns = router.urls
