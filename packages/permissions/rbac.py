"""Role based permission checks backed by the admin roles endpoint."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from packages.backend_client import BackendClient, BackendClientError

ADMIN_ROLES = frozenset({"administrator", "system administrator"})
MODULES: Sequence[str] = (
    "ReverseLogistics",
    "Processing",
    "DownstreamMaterials",
    "AssetRecovery",
    "Reporting",
    "Administration",
    "KnowledgeBase",
    "Training",
    "ProjectManagement",
)
ACTIONS: Sequence[str] = ("Read", "Create", "Update", "Delete")

LOGGER = logging.getLogger("revlogix.permissions")


@dataclass(frozen=True)
class Permission:
    id: int
    name: str
    module: str
    action: str
    description: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Optional["Permission"]:
        raw_id = data.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            return None
        description = data.get("description")
        return cls(
            id=raw_id,
            name=str(data.get("name") or ""),
            module=str(data.get("module") or ""),
            action=str(data.get("action") or ""),
            description=str(description) if description is not None else None,
        )


@dataclass
class UserPermissions:
    """Roles held by a user and the permissions those roles grant."""

    roles: List[str] = field(default_factory=list)
    permissions: List[Permission] = field(default_factory=list)


def has_permission(user: UserPermissions, module: str, action: str) -> bool:
    module_key = module.lower()
    action_key = action.lower()
    return any(
        permission.module.lower() == module_key and permission.action.lower() == action_key
        for permission in user.permissions
    )


def has_any_permission(user: UserPermissions, required: Iterable[tuple[str, str]]) -> bool:
    return any(has_permission(user, module, action) for module, action in required)


def module_permissions(user: UserPermissions, module: str) -> List[Permission]:
    module_key = module.lower()
    return [permission for permission in user.permissions if permission.module.lower() == module_key]


def parse_roles(raw: Any) -> List[str]:
    """Accept role names as strings, ``{"name": ...}`` objects or a comma separated string."""

    if isinstance(raw, str):
        return [part.strip() for part in raw.split(",") if part.strip()]
    if not isinstance(raw, (list, tuple)):
        return []
    roles: List[str] = []
    for entry in raw:
        if isinstance(entry, str):
            name = entry
        elif isinstance(entry, Mapping):
            name = entry.get("name") or ""
        else:
            continue
        if isinstance(name, str) and name.strip():
            roles.append(name.strip())
    return roles


def resolve_user_permissions(
    client: BackendClient,
    roles: Sequence[str],
    *,
    roles_path: str = "/api/admin/roles",
    logger: Optional[logging.Logger] = None,
) -> UserPermissions:
    """Collect the permissions granted to ``roles`` by the backend role catalogue.

    When the catalogue cannot be loaded, administrators fall back to full
    access on every module and everyone else gets no permissions.
    """

    log = logger or LOGGER
    held = {role.lower() for role in roles}
    try:
        catalogue = client.get_json(roles_path)
    except BackendClientError as exc:
        log.warning("Failed to fetch role catalogue: %s", exc)
        if held & ADMIN_ROLES:
            return UserPermissions(roles=list(roles), permissions=admin_permissions())
        return UserPermissions(roles=list(roles))

    permissions: List[Permission] = []
    seen: set[int] = set()
    for role in catalogue if isinstance(catalogue, list) else []:
        if not isinstance(role, Mapping):
            continue
        if str(role.get("name") or "").lower() not in held:
            continue
        for link in role.get("rolePermissions") or []:
            if not isinstance(link, Mapping) or not isinstance(link.get("permission"), Mapping):
                continue
            permission = Permission.from_mapping(link["permission"])
            if permission is None or permission.id in seen:
                continue
            seen.add(permission.id)
            permissions.append(permission)
    return UserPermissions(roles=list(roles), permissions=permissions)


def admin_permissions() -> List[Permission]:
    permissions: List[Permission] = []
    for module in MODULES:
        for action in ACTIONS:
            permissions.append(
                Permission(
                    id=len(permissions) + 1,
                    name=f"{module} {action}",
                    module=module,
                    action=action,
                    description=f"{action} access for {module} module",
                )
            )
    return permissions


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
