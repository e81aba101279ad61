from __future__ import annotations

from typing import Any

from packages.backend_client import BackendClientError
from packages.permissions import (
    UserPermissions,
    admin_permissions,
    has_any_permission,
    has_permission,
    module_permissions,
    parse_roles,
    resolve_user_permissions,
)

ROLE_CATALOGUE = [
    {
        "id": 1,
        "name": "Compliance Manager",
        "rolePermissions": [
            {"id": 1, "roleId": 1, "permissionId": 5, "permission": {"id": 5, "name": "PM Read", "module": "ProjectManagement", "action": "Read"}},
            {"id": 2, "roleId": 1, "permissionId": 6, "permission": {"id": 6, "name": "PM Update", "module": "ProjectManagement", "action": "Update"}},
        ],
    },
    {
        "id": 2,
        "name": "Auditor",
        "rolePermissions": [
            {"id": 3, "roleId": 2, "permissionId": 5, "permission": {"id": 5, "name": "PM Read", "module": "ProjectManagement", "action": "Read"}},
            {"id": 4, "roleId": 2, "permissionId": 9, "permission": {"id": 9, "name": "Reporting Read", "module": "Reporting", "action": "Read"}},
        ],
    },
]


class CatalogueClient:
    def __init__(self, payload: Any = None, error: BackendClientError | None = None) -> None:
        self.payload = payload
        self.error = error
        self.paths: list[str] = []

    def get_json(self, path: str, params=None) -> Any:
        self.paths.append(path)
        if self.error is not None:
            raise self.error
        return self.payload


def test_parse_roles_accepts_several_shapes() -> None:
    assert parse_roles(["Auditor", "Compliance Manager"]) == ["Auditor", "Compliance Manager"]
    assert parse_roles([{"name": "Auditor"}, {"name": None}, 3]) == ["Auditor"]
    assert parse_roles("Auditor, Compliance Manager") == ["Auditor", "Compliance Manager"]
    assert parse_roles("") == []
    assert parse_roles(None) == []


def test_resolve_collects_unique_permissions_case_insensitively() -> None:
    client = CatalogueClient(ROLE_CATALOGUE)

    user = resolve_user_permissions(client, ["auditor", "COMPLIANCE MANAGER"])

    assert client.paths == ["/api/admin/roles"]
    assert sorted(permission.id for permission in user.permissions) == [5, 6, 9]
    assert has_permission(user, "projectmanagement", "READ")
    assert has_any_permission(user, [("Administration", "Delete"), ("Reporting", "Read")])
    assert [permission.id for permission in module_permissions(user, "ProjectManagement")] == [5, 6]


def test_roles_not_held_grant_nothing() -> None:
    user = resolve_user_permissions(CatalogueClient(ROLE_CATALOGUE), ["Driver"])

    assert user.permissions == []
    assert not has_permission(user, "ProjectManagement", "Read")


def test_admin_falls_back_to_full_access_when_catalogue_fails() -> None:
    client = CatalogueClient(error=BackendClientError("down", status_code=503))

    admin = resolve_user_permissions(client, ["System Administrator"])
    other = resolve_user_permissions(client, ["Auditor"])

    assert has_permission(admin, "ProjectManagement", "Read")
    assert len(admin.permissions) == len(admin_permissions()) == 36
    assert other.permissions == []


def test_empty_user_has_no_permissions() -> None:
    assert not has_permission(UserPermissions(), "ProjectManagement", "Read")
