from app.core.exceptions import DomainError


class AuthorizationError(DomainError):
    error_code = "AUTHORIZATION_ERROR"
    status_code = 400


class UnknownPermissionError(AuthorizationError):
    """Permission identifier is not part of the closed vocabulary."""
    error_code = "UNKNOWN_PERMISSION"
    status_code = 404


class UnknownRoleError(AuthorizationError):
    error_code = "UNKNOWN_ROLE"
    status_code = 404


class RoleAssignmentDenied(AuthorizationError):
    error_code = "ROLE_ASSIGNMENT_DENIED"
    status_code = 403
