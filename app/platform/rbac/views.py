"""Role, grant and permission catalog viewsets."""
import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError

from app.core.services.audit import AuditContext
from app.platform.modules.constants import ModuleType
from app.utils.response import api_response
from . import grants
from .constants import PermissionType
from .models import ModulePermission, Role
from .permissions import ReadOrConfigure, module_permission
from .serializers import (
    GrantRequestSerializer,
    GrantSerializer,
    ModulePermissionKeySerializer,
    ModulePermissionSerializer,
    RoleSerializer,
)
from .utils import is_authorized

logger = logging.getLogger(__name__)


@extend_schema(tags=["Roles"])
class RoleViewSet(viewsets.ViewSet):
    """
    Roles and their grants.
    Grant and revoke need UserManagement.Configure; everything else ApplicationSettings.Read.
    """

    lookup_field = "code"
    lookup_value_regex = r"[A-Za-z0-9_\-]+"

    def get_permissions(self):
        if self.action in ("grant", "revoke"):
            return [module_permission(ModuleType.USER_MANAGEMENT, PermissionType.CONFIGURE)()]
        return [ReadOrConfigure()]

    @extend_schema(summary="List roles")
    def list(self, request):
        roles = Role.objects.all().order_by("name")
        return api_response(200, "success", RoleSerializer(roles, many=True).data)

    @extend_schema(summary="Active grants and effective permissions of a role")
    @action(detail=True, methods=["get"], url_path="permissions")
    def role_permissions(self, request, code=None):
        role = grants.resolve_role(code)
        effective = sorted(f"{m.value}.{p.value}" for m, p in grants.effective_permissions(role))
        active = role.module_permissions.filter(is_active=True).select_related("module_permission")
        return api_response(200, "success", {
            "role": RoleSerializer(role).data,
            "grants": GrantSerializer(active, many=True).data,
            "effective_permissions": effective,
        })

    @extend_schema(summary="Enabled modules a role can reach")
    @action(detail=True, methods=["get"], url_path="accessible-modules")
    def accessible_modules(self, request, code=None):
        modules = grants.accessible_modules(code)
        return api_response(200, "success", [m.value for m in modules])

    @extend_schema(summary="Grant a module permission to a role", request=GrantRequestSerializer)
    @action(detail=True, methods=["post"], url_path="grant")
    def grant(self, request, code=None):
        serializer = GrantRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        grant = grants.grant_permission(
            code,
            serializer.validated_data["module_type"],
            serializer.validated_data["permission_type"],
            granted_by=request.user,
            reason=serializer.validated_data["reason"],
            audit_context=AuditContext.from_request(request, context=serializer.validated_data["reason"]),
        )
        return api_response(200, "success", GrantSerializer(grant).data)

    @extend_schema(summary="Revoke a module permission from a role", request=ModulePermissionKeySerializer)
    @action(detail=True, methods=["post"], url_path="revoke")
    def revoke(self, request, code=None):
        serializer = ModulePermissionKeySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        grant = grants.revoke_permission(
            code,
            serializer.validated_data["module_type"],
            serializer.validated_data["permission_type"],
            revoked_by=request.user,
            audit_context=AuditContext.from_request(request),
        )
        if grant is None:
            return api_response(404, "failure", {}, "GRANT_NOT_FOUND",
                                f"Role {code} does not hold this permission")
        return api_response(200, "success", GrantSerializer(grant).data)

    @extend_schema(
        summary="Check whether a role is authorized",
        parameters=[
            OpenApiParameter("module", str, required=True),
            OpenApiParameter("permission", str, required=True),
        ],
    )
    @action(detail=True, methods=["get"], url_path="check")
    def check(self, request, code=None):
        module = request.query_params.get("module")
        permission = request.query_params.get("permission")
        if not module or not permission:
            raise ValidationError("Both 'module' and 'permission' query parameters are required.")
        return api_response(200, "success", {
            "role": code,
            "module": module,
            "permission": permission,
            "authorized": is_authorized(code, module, permission),
        })


@extend_schema(tags=["Module Permissions"])
class ModulePermissionViewSet(viewsets.ViewSet):
    """Permission catalog; activation toggles need ApplicationSettings.Configure."""

    permission_classes = [ReadOrConfigure]

    @extend_schema(
        summary="List catalog permissions",
        parameters=[OpenApiParameter("module", str, description="Filter by module identifier")],
    )
    def list(self, request):
        queryset = ModulePermission.objects.all()
        module = request.query_params.get("module")
        if module:
            queryset = queryset.filter(module_type=module)
        return api_response(200, "success", ModulePermissionSerializer(queryset, many=True).data)

    def _set_active(self, request, is_active):
        serializer = ModulePermissionKeySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        module_permission = grants.set_module_permission_active(
            serializer.validated_data["module_type"],
            serializer.validated_data["permission_type"],
            is_active,
            actor=request.user,
            audit_context=AuditContext.from_request(request),
        )
        return api_response(200, "success", ModulePermissionSerializer(module_permission).data)

    @extend_schema(summary="Activate a catalog permission", request=ModulePermissionKeySerializer)
    @action(detail=False, methods=["post"], url_path="activate")
    def activate(self, request):
        return self._set_active(request, True)

    @extend_schema(summary="Deactivate a catalog permission", request=ModulePermissionKeySerializer)
    @action(detail=False, methods=["post"], url_path="deactivate")
    def deactivate(self, request):
        return self._set_active(request, False)
