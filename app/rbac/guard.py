"""Authorization decisions for workspace, project and task operations.

Every check reads membership and assignment rows fresh from the session and
either returns the actor's ``Member`` row or raises an ``AppError``. Nothing
is remembered between calls.

Two flag scopes are in play. Workspace checks evaluate the member's own flag
map. Project checks ignore that map and evaluate the flags stored on the
member's ``ProjectAssignment`` for that one project, so a member can hold no
workspace permissions at all and still manage tasks inside an assigned
project. Owners and admins bypass both.
"""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy.orm import Session

from app.errors import Forbidden, NotFound, NotMember
from app.models.membership import Member
from app.rbac import store
from app.rbac.perms import (
    PROJECT_IMPLICATIONS,
    ProjectPermission,
    WorkspacePermission,
    has_any_permission,
    has_permission,
    is_admin,
    is_owner,
    is_owner_or_admin,
)

logger = logging.getLogger(__name__)

DENIED = "You do not have permission to perform this action"

def require_member(db: Session, workspace_id: uuid.UUID, user_id: uuid.UUID) -> Member:
    if store.get_workspace(db, workspace_id) is None:
        raise NotFound("Workspace not found")

    member = store.get_member(db, workspace_id, user_id)
    if member is None:
        raise NotMember()
    return member

def require_permission(
    db: Session,
    workspace_id: uuid.UUID,
    user_id: uuid.UUID,
    required: Iterable[str],
    message: str = DENIED,
) -> Member:
    """Workspace-scoped check: any of ``required`` against the member's own flags."""
    member = require_member(db, workspace_id, user_id)
    if not has_any_permission(member.role, member.permissions, list(required)):
        logger.debug("workspace check failed ws=%s user=%s", workspace_id, user_id)
        raise Forbidden(message)
    return member

def require_project_permission(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    required: Iterable[str],
    message: str = DENIED,
) -> Member:
    """Project-scoped check: any of ``required`` against the assignment's flags."""
    member = require_member(db, workspace_id, user_id)
    if is_owner_or_admin(member.role):
        return member

    assignment = store.get_project_assignment(db, workspace_id, project_id, user_id)
    flags = assignment.permissions if assignment is not None else None
    # role deliberately omitted: only the owner/admin bypass above applies
    if has_any_permission(None, flags, list(required), PROJECT_IMPLICATIONS):
        return member

    logger.debug("project check failed ws=%s project=%s user=%s", workspace_id, project_id, user_id)
    raise Forbidden(message)

def can_access_project(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    user_id: uuid.UUID,
) -> bool:
    member = store.get_member(db, workspace_id, user_id)
    if member is None:
        return False
    return _member_can_access_project(db, member, project_id)

def _member_can_access_project(db: Session, member: Member, project_id: uuid.UUID) -> bool:
    if has_permission(member.role, member.permissions, WorkspacePermission.access_projects):
        return True
    # the assignment itself is the grant, whatever flags it carries
    assignment = store.get_project_assignment(db, member.workspace_id, project_id, member.user_id)
    return assignment is not None

def require_project_access(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Member:
    member = require_member(db, workspace_id, user_id)
    if not _member_can_access_project(db, member, project_id):
        raise Forbidden("You do not have access to this project")
    return member

def can_toggle_task_status(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID | None,
    task_id: uuid.UUID,
    user_id: uuid.UUID,
) -> bool:
    """Owners/admins, holders of an edit-level project flag, or any assignee of the task."""
    member = store.get_member(db, workspace_id, user_id)
    if member is None:
        return False
    if is_owner_or_admin(member.role):
        return True

    if project_id is not None:
        assignment = store.get_project_assignment(db, workspace_id, project_id, user_id)
        if assignment is not None and has_any_permission(
            None,
            assignment.permissions,
            [
                ProjectPermission.manage_tasks,
                ProjectPermission.edit_tasks,
                ProjectPermission.toggle_status,
            ],
            PROJECT_IMPLICATIONS,
        ):
            return True

    return user_id in store.get_task_assignees(db, workspace_id, task_id)

def require_owner(
    db: Session,
    workspace_id: uuid.UUID,
    user_id: uuid.UUID,
    message: str = "Only the workspace owner can perform this action",
) -> Member:
    member = require_member(db, workspace_id, user_id)
    if not is_owner(member.role):
        raise Forbidden(message)
    return member

def require_owner_or_admin(
    db: Session,
    workspace_id: uuid.UUID,
    user_id: uuid.UUID,
    message: str = "Only owners and admins can perform this action",
) -> Member:
    member = require_member(db, workspace_id, user_id)
    if not is_owner_or_admin(member.role):
        raise Forbidden(message)
    return member

def ensure_not_self(actor_id: uuid.UUID, target_id: uuid.UUID, message: str) -> None:
    if actor_id == target_id:
        raise Forbidden(message)

def ensure_can_edit_member_permissions(actor: Member, target: Member) -> None:
    if not is_owner_or_admin(actor.role):
        raise Forbidden("Only owners and admins can update permissions")
    if is_owner(target.role):
        raise Forbidden("Cannot modify owner permissions")
    if is_admin(actor.role):
        if actor.user_id == target.user_id:
            raise Forbidden("Admins cannot modify their own permissions")
        if is_admin(target.role):
            raise Forbidden("Only the workspace owner can modify admin permissions")

def ensure_can_remove_member(actor: Member, target: Member) -> None:
    if is_owner(target.role):
        raise Forbidden("Cannot remove the workspace owner")
    if is_admin(target.role) and not is_owner(actor.role):
        raise Forbidden("Only the workspace owner can remove admins")
    ensure_not_self(actor.user_id, target.user_id, "You cannot remove yourself")
    if not has_any_permission(
        actor.role,
        actor.permissions,
        [WorkspacePermission.manage_members, WorkspacePermission.remove_members],
    ):
        raise Forbidden("You do not have permission to remove members")
