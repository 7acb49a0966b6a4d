"""Roles, permission flags and implication rules.

Everything here is pure. Flag maps come straight from storage, so every
function accepts ``None`` or a partially-filled dict and treats anything that
is not exactly ``True`` as not granted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum

from app.errors import ValidationFailed
from app.models.enums import Role

class WorkspacePermission(str, Enum):
    access_projects = "access-projects"
    manage_projects = "manage-projects"
    create_projects = "create-projects"
    edit_projects = "edit-projects"
    delete_projects = "delete-projects"
    manage_members = "manage-members"
    add_members = "add-members"
    remove_members = "remove-members"
    assign_project = "assign-project"

class ProjectPermission(str, Enum):
    manage_tasks = "manage-tasks"
    create_tasks = "create-tasks"
    edit_tasks = "edit-tasks"
    delete_tasks = "delete-tasks"
    toggle_status = "toggle-status"

WORKSPACE_PERMISSION_SET: frozenset[str] = frozenset(p.value for p in WorkspacePermission)
PROJECT_PERMISSION_SET: frozenset[str] = frozenset(p.value for p in ProjectPermission)

WORKSPACE_IMPLICATIONS: Mapping[str, frozenset[str]] = {
    WorkspacePermission.manage_projects.value: frozenset(
        {
            WorkspacePermission.create_projects.value,
            WorkspacePermission.edit_projects.value,
            WorkspacePermission.delete_projects.value,
        }
    ),
    WorkspacePermission.manage_members.value: frozenset(
        {
            WorkspacePermission.add_members.value,
            WorkspacePermission.remove_members.value,
            WorkspacePermission.assign_project.value,
        }
    ),
}

PROJECT_IMPLICATIONS: Mapping[str, frozenset[str]] = {
    ProjectPermission.manage_tasks.value: frozenset(
        {
            ProjectPermission.create_tasks.value,
            ProjectPermission.edit_tasks.value,
            ProjectPermission.delete_tasks.value,
            ProjectPermission.toggle_status.value,
        }
    ),
}

ALL_IMPLICATIONS: Mapping[str, frozenset[str]] = {**WORKSPACE_IMPLICATIONS, **PROJECT_IMPLICATIONS}

# keys from the old boolean role scheme; roles now live on Member.role
LEGACY_ROLE_KEYS = frozenset({"owner", "admin"})

def _value(flag: str | Enum) -> str:
    return flag.value if isinstance(flag, Enum) else str(flag)

def _role(role: Role | str | None) -> Role | None:
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except (ValueError, TypeError):
        return None

def is_owner(role: Role | str | None) -> bool:
    return _role(role) is Role.owner

def is_admin(role: Role | str | None) -> bool:
    return _role(role) is Role.admin

def is_owner_or_admin(role: Role | str | None) -> bool:
    return _role(role) in (Role.owner, Role.admin)

def expand_permissions(
    flags: Mapping[str, object] | None,
    implications: Mapping[str, frozenset[str]] = ALL_IMPLICATIONS,
) -> frozenset[str]:
    """Return every flag granted by ``flags`` once implications are applied."""
    if not isinstance(flags, Mapping):
        return frozenset()

    granted = {str(k) for k, v in flags.items() if v is True}
    for parent in list(granted):
        granted |= implications.get(parent, frozenset())
    return frozenset(granted)

def has_permission(
    role: Role | str | None,
    flags: Mapping[str, object] | None,
    required: str | Enum,
    implications: Mapping[str, frozenset[str]] = ALL_IMPLICATIONS,
) -> bool:
    if is_owner_or_admin(role):
        return True
    return _value(required) in expand_permissions(flags, implications)

def has_any_permission(
    role: Role | str | None,
    flags: Mapping[str, object] | None,
    required: Iterable[str | Enum] | None,
    implications: Mapping[str, frozenset[str]] = ALL_IMPLICATIONS,
) -> bool:
    if is_owner_or_admin(role):
        return True
    granted = expand_permissions(flags, implications)
    return any(_value(r) in granted for r in (required or ()))

def has_workspace_permission(
    role: Role | str | None,
    flags: Mapping[str, object] | None,
    required: str | Enum,
) -> bool:
    return has_permission(role, flags, required, WORKSPACE_IMPLICATIONS)

def has_project_permission(
    role: Role | str | None,
    flags: Mapping[str, object] | None,
    required: str | Enum,
) -> bool:
    """Evaluate a project-scoped flag; workspace flags in ``flags`` never count."""
    if is_owner_or_admin(role):
        return True
    if _value(required) not in PROJECT_PERMISSION_SET:
        return False
    return _value(required) in expand_permissions(flags, PROJECT_IMPLICATIONS)

def _validate_flag_map(raw: object, allowed: frozenset[str], *, scope: str) -> dict[str, bool]:
    if not isinstance(raw, Mapping):
        raise ValidationFailed("Permissions must be an object")

    legacy = sorted(k for k in raw if k in LEGACY_ROLE_KEYS)
    if legacy:
        raise ValidationFailed("Use dedicated endpoints to manage owner/admin roles")

    if scope == "workspace":
        misplaced = sorted(k for k in raw if k in PROJECT_PERMISSION_SET)
        if misplaced:
            raise ValidationFailed(
                f"Task permissions ({', '.join(misplaced)}) must be set at project level"
            )

    unknown = sorted(str(k) for k in raw if k not in allowed)
    if unknown:
        raise ValidationFailed(f"Invalid permission keys: {', '.join(unknown)}")

    non_bool = sorted(k for k, v in raw.items() if not isinstance(v, bool))
    if non_bool:
        raise ValidationFailed(f"Permission values must be booleans: {', '.join(non_bool)}")

    return {str(k): v for k, v in raw.items()}

def validate_workspace_flags(raw: object) -> dict[str, bool]:
    return _validate_flag_map(raw, WORKSPACE_PERMISSION_SET, scope="workspace")

def validate_project_flags(raw: object) -> dict[str, bool]:
    return _validate_flag_map(raw, PROJECT_PERMISSION_SET, scope="project")
