"""Permission helpers for gating back-office pages."""
from .rbac import (
    Permission,
    UserPermissions,
    admin_permissions,
    has_any_permission,
    has_permission,
    module_permissions,
    parse_roles,
    resolve_user_permissions,
)

__all__ = [
    "Permission",
    "UserPermissions",
    "admin_permissions",
    "has_any_permission",
    "has_permission",
    "module_permissions",
    "parse_roles",
    "resolve_user_permissions",
]
