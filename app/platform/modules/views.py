"""Module configuration viewsets."""
import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.pagination import PageNumberPagination

from app.core.serializers import AuditLogEntrySerializer
from app.core.services.audit import AuditContext, module_audit_trail, recent_activity
from app.platform.rbac.permissions import ReadOrConfigure
from app.utils.response import api_response
from . import services
from .serializers import (
    AuditTrailQuerySerializer,
    ModuleConfigurationSerializer,
    ModuleDependencyCreateSerializer,
    ModuleDependencySerializer,
    ModuleSettingsSerializer,
    ModuleStateChangeSerializer,
)

logger = logging.getLogger(__name__)


class AuditTrailPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = "page_size"
    max_page_size = 200


def _hierarchy_node(configuration, children_index):
    node = ModuleConfigurationSerializer(configuration).data
    node["sub_modules"] = [
        _hierarchy_node(child, children_index)
        for child in children_index.get(configuration.module_type, [])
    ]
    return node


@extend_schema(tags=["Module Configuration"])
class ModuleConfigurationViewSet(viewsets.ViewSet):
    """
    Feature module toggles, settings, dependencies and audit trail.
    Reads need ApplicationSettings.Read, writes need ApplicationSettings.Configure.
    """

    permission_classes = [ReadOrConfigure]
    lookup_field = "module_type"
    lookup_value_regex = r"[A-Za-z]+"

    def _audit_context(self, request, context=""):
        return AuditContext.from_request(request, context=context)

    @extend_schema(
        summary="List module configurations",
        parameters=[OpenApiParameter("enabled", bool, description="Only enabled modules when true")],
    )
    def list(self, request):
        enabled_only = request.query_params.get("enabled", "").lower() == "true"
        configurations = services.list_module_configurations(enabled_only=enabled_only)
        data = ModuleConfigurationSerializer(configurations, many=True).data
        return api_response(200, "success", {"modules": data, "count": len(data)})

    @extend_schema(summary="Get one module configuration")
    def retrieve(self, request, module_type=None):
        configuration = services.get_module_configuration(module_type)
        return api_response(200, "success", ModuleConfigurationSerializer(configuration).data)

    @extend_schema(summary="Module tree (roots with nested sub-modules)")
    @action(detail=False, methods=["get"], url_path="hierarchy")
    def hierarchy(self, request):
        roots, children_index = services.get_module_hierarchy()
        return api_response(200, "success", [_hierarchy_node(root, children_index) for root in roots])

    @extend_schema(summary="Configuration dashboard with warnings and recent activity")
    @action(detail=False, methods=["get"], url_path="dashboard")
    def dashboard(self, request):
        dashboard = services.get_module_configuration_dashboard()
        dashboard["recent_activity"] = AuditLogEntrySerializer(dashboard["recent_activity"], many=True).data
        return api_response(200, "success", dashboard)

    @extend_schema(
        summary="Latest audit entries across all modules",
        parameters=[OpenApiParameter("count", int, description="Number of entries (default 10, max 100)")],
    )
    @action(detail=False, methods=["get"], url_path="recent-activity")
    def activity(self, request):
        try:
            count = min(max(int(request.query_params.get("count", 10)), 1), 100)
        except ValueError:
            raise ValidationError({"count": ["Expected an integer."]})
        entries = recent_activity(count)
        return api_response(200, "success", AuditLogEntrySerializer(entries, many=True).data)

    @extend_schema(summary="Enable a module and its required dependencies", request=ModuleStateChangeSerializer)
    @action(detail=True, methods=["post"], url_path="enable")
    def enable(self, request, module_type=None):
        serializer = ModuleStateChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        changed = services.enable_module(
            module_type,
            actor=request.user,
            audit_context=self._audit_context(request, serializer.validated_data["context"]),
        )
        configuration = services.get_module_configuration(module_type)
        return api_response(200, "success", {
            "module": ModuleConfigurationSerializer(configuration).data,
            "changed_modules": [m.value for m in changed],
        })

    @extend_schema(summary="Disable a module and its sub-modules", request=ModuleStateChangeSerializer)
    @action(detail=True, methods=["post"], url_path="disable")
    def disable(self, request, module_type=None):
        serializer = ModuleStateChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        changed = services.disable_module(
            module_type,
            actor=request.user,
            audit_context=self._audit_context(request, serializer.validated_data["context"]),
        )
        configuration = services.get_module_configuration(module_type)
        return api_response(200, "success", {
            "module": ModuleConfigurationSerializer(configuration).data,
            "changed_modules": [m.value for m in changed],
        })

    @extend_schema(summary="Whether the module can be disabled right now, with advisory warnings")
    @action(detail=True, methods=["get"], url_path="can-disable")
    def can_disable(self, request, module_type=None):
        services.get_module_configuration(module_type)
        return api_response(200, "success", {
            "module_type": module_type,
            "can_disable": services.can_module_be_disabled(module_type),
            "warnings": services.get_disable_warnings(module_type),
        })

    @extend_schema(summary="Advisory warnings shown before disabling a module")
    @action(detail=True, methods=["get"], url_path="disable-warnings")
    def disable_warnings(self, request, module_type=None):
        services.get_module_configuration(module_type)
        return api_response(200, "success", services.get_disable_warnings(module_type))

    @extend_schema(summary="Get or replace module settings", request=ModuleSettingsSerializer)
    @action(detail=True, methods=["get", "put"], url_path="settings")
    def module_settings(self, request, module_type=None):
        if request.method == "GET":
            return api_response(200, "success", {"settings": services.get_module_settings(module_type)})

        serializer = ModuleSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        configuration = services.update_module_settings(
            module_type,
            serializer.validated_data["settings"],
            actor=request.user,
            audit_context=self._audit_context(request, serializer.validated_data["context"]),
        )
        return api_response(200, "success", ModuleConfigurationSerializer(configuration).data)

    @extend_schema(summary="List or add dependencies of a module", request=ModuleDependencyCreateSerializer)
    @action(detail=True, methods=["get", "post"], url_path="dependencies")
    def dependencies(self, request, module_type=None):
        if request.method == "GET":
            services.get_module_configuration(module_type)
            data = ModuleDependencySerializer(services.get_module_dependencies(module_type), many=True).data
            return api_response(200, "success", data)

        serializer = ModuleDependencyCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dependency = services.add_module_dependency(
            module_type,
            serializer.validated_data["depends_on"],
            is_required=serializer.validated_data["is_required"],
            description=serializer.validated_data["description"],
            actor=request.user,
            audit_context=self._audit_context(request),
        )
        return api_response(status.HTTP_201_CREATED, "success", ModuleDependencySerializer(dependency).data)

    @extend_schema(summary="Remove a dependency edge")
    @action(detail=True, methods=["delete"], url_path=r"dependencies/(?P<depends_on>[A-Za-z]+)")
    def remove_dependency(self, request, module_type=None, depends_on=None):
        removed = services.remove_module_dependency(
            module_type,
            depends_on,
            actor=request.user,
            audit_context=self._audit_context(request),
        )
        if not removed:
            return api_response(404, "failure", {}, "DEPENDENCY_NOT_FOUND",
                                f"{module_type} does not depend on {depends_on}")
        return api_response(200, "success", {"module_type": module_type, "depends_on": depends_on})

    @extend_schema(summary="Modules that depend on this module")
    @action(detail=True, methods=["get"], url_path="dependents")
    def dependents(self, request, module_type=None):
        services.get_module_configuration(module_type)
        data = ModuleDependencySerializer(services.get_dependent_modules(module_type), many=True).data
        return api_response(200, "success", data)

    @extend_schema(
        summary="Audit trail for one module",
        parameters=[
            OpenApiParameter("actor", int, description="Filter by acting user id"),
            OpenApiParameter("since", str, description="ISO 8601 lower bound"),
            OpenApiParameter("until", str, description="ISO 8601 upper bound"),
        ],
    )
    @action(detail=True, methods=["get"], url_path="audit-trail")
    def audit_trail(self, request, module_type=None):
        services.get_module_configuration(module_type)
        query = AuditTrailQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        entries = module_audit_trail(
            module_type,
            actor=query.validated_data.get("actor"),
            since=query.validated_data.get("since"),
            until=query.validated_data.get("until"),
        )
        paginator = AuditTrailPagination()
        page = paginator.paginate_queryset(entries, request, view=self)
        return api_response(200, "success", {
            "results": AuditLogEntrySerializer(page, many=True).data,
            "count": paginator.page.paginator.count,
            "next": paginator.get_next_link(),
            "previous": paginator.get_previous_link(),
        })

    @extend_schema(summary="Check that an enabled module has all required dependencies enabled")
    @action(detail=True, methods=["get"], url_path="validate-dependencies")
    def validate_dependencies(self, request, module_type=None):
        services.get_module_configuration(module_type)
        return api_response(200, "success", {
            "module_type": module_type,
            "is_valid": services.validate_module_dependencies(module_type),
        })
