"""
Module configuration errors.
All of them are policy violations, never transient faults, so callers must not retry.
"""

from app.core.exceptions import DomainError


class ModuleConfigurationError(DomainError):
    error_code = "MODULE_CONFIGURATION_ERROR"
    status_code = 400


class UnknownModuleError(ModuleConfigurationError):
    """Identifier is not part of the closed module catalog."""
    error_code = "UNKNOWN_MODULE"
    status_code = 404


class SelfDependencyError(ModuleConfigurationError):
    error_code = "SELF_DEPENDENCY"

    def __init__(self, module):
        module_code = getattr(module, "value", module)
        super().__init__(f"Module {module_code} cannot depend on itself", module=module_code)


class CycleDetectedError(ModuleConfigurationError):
    error_code = "DEPENDENCY_CYCLE"

    def __init__(self, path):
        self.path = [getattr(m, "value", m) for m in path]
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.path)}", path=self.path)


class CriticalModuleError(ModuleConfigurationError):
    error_code = "CRITICAL_MODULE"
    status_code = 409

    def __init__(self, module):
        module_code = getattr(module, "value", module)
        super().__init__(f"Module {module_code} is critical and cannot be disabled", module=module_code)


class RequiredByActiveDependentError(ModuleConfigurationError):
    error_code = "REQUIRED_BY_ACTIVE_DEPENDENT"
    status_code = 409

    def __init__(self, module, dependents):
        module_code = getattr(module, "value", module)
        self.dependents = sorted(getattr(d, "value", d) for d in dependents)
        super().__init__(
            f"Module {module_code} is required by enabled modules: {', '.join(self.dependents)}",
            module=module_code,
            dependents=self.dependents,
        )


class RequiredDependencyDisabledError(ModuleConfigurationError):
    """An enabled module cannot take a required dependency on a disabled one."""
    error_code = "REQUIRED_DEPENDENCY_DISABLED"
    status_code = 409

    def __init__(self, module, depends_on):
        module_code = getattr(module, "value", module)
        depends_on_code = getattr(depends_on, "value", depends_on)
        super().__init__(
            f"Module {module_code} is enabled and cannot require disabled module {depends_on_code}; "
            f"enable {depends_on_code} first",
            module=module_code,
            depends_on=depends_on_code,
        )
