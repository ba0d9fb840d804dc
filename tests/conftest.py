import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from app.platform.modules.defaults import (
    ensure_default_module_configurations,
    ensure_default_module_dependencies,
)
from app.platform.rbac.constants import RoleType
from app.platform.rbac.defaults import (
    ensure_default_grants,
    ensure_permission_catalog,
    ensure_system_roles,
)
from app.platform.rbac.helpers import assign_role_to_user


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def modules(db):
    ensure_default_module_configurations()
    ensure_default_module_dependencies()


@pytest.fixture
def rbac(modules):
    ensure_permission_catalog()
    ensure_system_roles()
    ensure_default_grants()


@pytest.fixture
def make_user(db, django_user_model):
    def _make(username, *roles):
        user = django_user_model.objects.create_user(username=username, password="pass-1234-word")
        for role in roles:
            assign_role_to_user(user, role)
        return user
    return _make


@pytest.fixture
def super_admin(rbac, make_user):
    return make_user("root", RoleType.SUPER_ADMIN)


@pytest.fixture
def api_client(super_admin):
    client = APIClient()
    client.force_authenticate(user=super_admin)
    return client
