import logging
import uuid
from collections.abc import Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import Forbidden, NotFound, ValidationFailed
from app.models.assignment import ProjectAssignment
from app.models.project import Project
from app.rbac import guard, store
from app.rbac.perms import WorkspacePermission, has_permission, is_owner_or_admin, validate_project_flags
from app.services import cleanup
from app.services.assignments import set_member_project_permissions, update_project_members

logger = logging.getLogger(__name__)

def _clean_title(title: object) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationFailed("Project title is required")
    return title.strip()

def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None

def _valid_member_ids(db: Session, workspace_id: uuid.UUID, member_ids: Iterable[uuid.UUID]) -> list[uuid.UUID]:
    valid, invalid = store.validate_member_ids(db, workspace_id, member_ids)
    if invalid:
        raise ValidationFailed(f"Invalid member IDs: {', '.join(str(i) for i in invalid)}")
    return valid

def _require_existing(db: Session, workspace_id: uuid.UUID, project_id: uuid.UUID) -> Project:
    project = store.get_project(db, workspace_id, project_id)
    if project is None:
        raise NotFound("Project not found")
    return project

def create_project(
    db: Session,
    workspace_id: uuid.UUID,
    actor_id: uuid.UUID,
    title: str,
    description: str | None = None,
    emoji: str | None = None,
    member_ids: list[uuid.UUID] | None = None,
) -> Project:
    title = _clean_title(title)

    guard.require_permission(
        db,
        workspace_id,
        actor_id,
        [WorkspacePermission.manage_projects, WorkspacePermission.create_projects],
        "You do not have permission to create projects",
    )

    project = Project(
        workspace_id=workspace_id,
        title=title,
        description=_clean_text(description),
        emoji=emoji or None,
        assigned_user_ids=[],
        task_count=0,
        completed_task_count=0,
    )
    db.add(project)
    db.flush()

    if member_ids:
        update_project_members(db, workspace_id, project.id, _valid_member_ids(db, workspace_id, member_ids), actor_id)

    logger.info("created project=%s ws=%s by=%s", project.id, workspace_id, actor_id)
    return project

def list_projects(db: Session, workspace_id: uuid.UUID, user_id: uuid.UUID) -> list[Project]:
    """Projects the user may read: all of them with blanket access, else only assigned ones."""
    member = guard.require_member(db, workspace_id, user_id)

    q = select(Project).where(Project.workspace_id == workspace_id).order_by(Project.created_at)
    if not has_permission(member.role, member.permissions, WorkspacePermission.access_projects):
        assigned = select(ProjectAssignment.project_id).where(
            ProjectAssignment.workspace_id == workspace_id,
            ProjectAssignment.user_id == user_id,
        )
        q = q.where(Project.id.in_(assigned))
    return list(db.scalars(q).all())

def get_project(db: Session, workspace_id: uuid.UUID, project_id: uuid.UUID, user_id: uuid.UUID) -> Project:
    guard.require_project_access(db, workspace_id, project_id, user_id)
    return _require_existing(db, workspace_id, project_id)

def update_project(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    actor_id: uuid.UUID,
    changes: Mapping[str, object],
) -> Project:
    """Apply a partial update. ``changes`` holds only the fields the caller sent.

    A request that only carries ``member_ids`` is an assignment change and is
    allowed with ``assign-project``; anything else needs ``edit-projects``.
    """
    if "title" in changes:
        changes = {**changes, "title": _clean_title(changes["title"])}

    member = guard.require_project_access(db, workspace_id, project_id, actor_id)

    member_ids = changes.get("member_ids")
    assignment_only = set(changes) == {"member_ids"}
    if assignment_only:
        required = [WorkspacePermission.edit_projects, WorkspacePermission.assign_project]
        message = "You do not have permission to assign members to projects"
    else:
        required = [WorkspacePermission.manage_projects, WorkspacePermission.edit_projects]
        message = "You do not have permission to edit projects"
    guard.require_permission(db, workspace_id, actor_id, required, message)

    project = _require_existing(db, workspace_id, project_id)

    if "title" in changes:
        project.title = changes["title"]
    if "description" in changes:
        project.description = _clean_text(changes["description"])
    if "emoji" in changes:
        project.emoji = changes["emoji"] or None
    db.flush()

    if member_ids is not None:
        valid = _valid_member_ids(db, workspace_id, member_ids)
        if not is_owner_or_admin(member.role) and actor_id in valid:
            if store.get_project_assignment(db, workspace_id, project_id, actor_id) is None:
                raise Forbidden("You cannot assign yourself to a project")
        added, removed = update_project_members(db, workspace_id, project_id, valid, actor_id)
        logger.info("project=%s members +%s -%s", project_id, len(added), len(removed))

    return project

def delete_project(db: Session, workspace_id: uuid.UUID, project_id: uuid.UUID, actor_id: uuid.UUID) -> int:
    guard.require_project_access(db, workspace_id, project_id, actor_id)
    guard.require_permission(
        db,
        workspace_id,
        actor_id,
        [WorkspacePermission.manage_projects, WorkspacePermission.delete_projects],
        "You do not have permission to delete projects",
    )
    project = _require_existing(db, workspace_id, project_id)
    return cleanup.delete_project(db, workspace_id, project)

def set_project_assignment(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    actor_id: uuid.UUID,
    member_id: uuid.UUID,
    permissions: object,
) -> ProjectAssignment:
    """Grant a member project-scoped task permissions, creating the assignment if needed."""
    flags = validate_project_flags(permissions) if permissions is not None else None

    guard.require_project_access(db, workspace_id, project_id, actor_id)
    guard.require_permission(
        db,
        workspace_id,
        actor_id,
        [WorkspacePermission.assign_project, WorkspacePermission.manage_projects],
        "You do not have permission to manage project assignments",
    )
    guard.ensure_not_self(actor_id, member_id, "You cannot assign yourself to a project")

    _require_existing(db, workspace_id, project_id)
    if store.get_member(db, workspace_id, member_id) is None:
        raise NotFound("Member not found in workspace")

    return set_member_project_permissions(db, workspace_id, project_id, member_id, flags, actor_id)
