"""Task lifecycle.

Tasks inside a project are governed by the flags on the actor's project
assignment. Workspace-level tasks (no project) are managed by owners and
admins only; their assignees can still move them between statuses.

Every mutation that changes how many tasks a project has, or how many are
completed, feeds the same delta into ``update_project_task_counters``.
"""

import logging
import uuid
from collections.abc import Mapping
from datetime import date

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from app.errors import Forbidden, NotFound, ValidationFailed
from app.models.assignment import ProjectAssignment, TaskAssignment
from app.models.enums import TaskPriority, TaskStatus
from app.models.membership import Member
from app.models.task import Task
from app.rbac import guard, store
from app.rbac.perms import ProjectPermission, WorkspacePermission, has_permission, is_owner_or_admin
from app.services import cleanup
from app.services.assignments import (
    completed_delta_for_status_change,
    update_project_task_counters,
    update_task_members,
)

logger = logging.getLogger(__name__)

WORKSPACE_TASKS_DENIED = "Only owners and admins can manage workspace tasks"

def _clean_title(title: object) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationFailed("Task title is required")
    return title.strip()

def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None

def _require_task(db: Session, workspace_id: uuid.UUID, task_id: uuid.UUID) -> Task:
    task = store.get_task(db, workspace_id, task_id)
    if task is None:
        raise NotFound("Task not found")
    return task

def _authorize(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID | None,
    actor_id: uuid.UUID,
    flag: ProjectPermission,
    message: str,
) -> Member:
    if project_id is None:
        return guard.require_owner_or_admin(db, workspace_id, actor_id, WORKSPACE_TASKS_DENIED)

    guard.require_project_access(db, workspace_id, project_id, actor_id)
    return guard.require_project_permission(
        db, workspace_id, project_id, actor_id, [ProjectPermission.manage_tasks, flag], message
    )

def _valid_member_ids(db: Session, workspace_id: uuid.UUID, member_ids: list[uuid.UUID]) -> list[uuid.UUID]:
    valid, invalid = store.validate_member_ids(db, workspace_id, member_ids)
    if invalid:
        raise ValidationFailed(f"Invalid member IDs: {', '.join(str(i) for i in invalid)}")
    return valid

def create_task(
    db: Session,
    workspace_id: uuid.UUID,
    actor_id: uuid.UUID,
    title: str,
    project_id: uuid.UUID | None = None,
    description: str | None = None,
    status: TaskStatus = TaskStatus.pending,
    priority: TaskPriority = TaskPriority.normal,
    due_date: date | None = None,
    member_ids: list[uuid.UUID] | None = None,
) -> Task:
    title = _clean_title(title)

    _authorize(
        db,
        workspace_id,
        project_id,
        actor_id,
        ProjectPermission.create_tasks,
        "You do not have permission to create tasks",
    )
    if project_id is not None and store.get_project(db, workspace_id, project_id) is None:
        raise NotFound("Project not found")

    valid = _valid_member_ids(db, workspace_id, member_ids) if member_ids else []

    task = Task(
        workspace_id=workspace_id,
        project_id=project_id,
        title=title,
        description=_clean_text(description),
        status=status,
        priority=priority,
        due_date=due_date,
        assignee_ids=[],
        created_by=actor_id,
    )
    db.add(task)
    db.flush()

    if project_id is not None:
        update_project_task_counters(
            db, workspace_id, project_id, 1, 1 if status == TaskStatus.completed else 0
        )
    if valid:
        update_task_members(db, workspace_id, project_id, task.id, valid, actor_id)

    logger.info("created task=%s ws=%s project=%s", task.id, workspace_id, project_id)
    return task

def list_tasks(db: Session, workspace_id: uuid.UUID, project_id: uuid.UUID, user_id: uuid.UUID) -> list[Task]:
    guard.require_project_access(db, workspace_id, project_id, user_id)
    if store.get_project(db, workspace_id, project_id) is None:
        raise NotFound("Project not found")

    q = (
        select(Task)
        .where(Task.workspace_id == workspace_id, Task.project_id == project_id)
        .order_by(Task.created_at)
    )
    return list(db.scalars(q).all())

TASK_SCOPES = ("all", "assigned")

def list_workspace_tasks(
    db: Session,
    workspace_id: uuid.UUID,
    user_id: uuid.UUID,
    scope: str = "all",
) -> list[Task]:
    """Tasks across the workspace that ``user_id`` can read, newest activity first.

    Project tasks follow project access. Workspace-level tasks are visible to
    owners and admins, and to their own assignees. ``scope="assigned"``
    narrows either set to tasks assigned to the caller.
    """
    if scope not in TASK_SCOPES:
        raise ValidationFailed(f"Unknown task scope: {scope}")
    member = guard.require_member(db, workspace_id, user_id)

    assigned_tasks = select(TaskAssignment.task_id).where(
        TaskAssignment.workspace_id == workspace_id,
        TaskAssignment.user_id == user_id,
    )

    if has_permission(member.role, member.permissions, WorkspacePermission.access_projects):
        project_tasks = Task.project_id.is_not(None)
    else:
        assigned_projects = select(ProjectAssignment.project_id).where(
            ProjectAssignment.workspace_id == workspace_id,
            ProjectAssignment.user_id == user_id,
        )
        project_tasks = Task.project_id.in_(assigned_projects)

    if is_owner_or_admin(member.role):
        workspace_tasks = Task.project_id.is_(None)
    else:
        workspace_tasks = and_(Task.project_id.is_(None), Task.id.in_(assigned_tasks))

    q = select(Task).where(Task.workspace_id == workspace_id, or_(project_tasks, workspace_tasks))
    if scope == "assigned":
        q = q.where(Task.id.in_(assigned_tasks))
    return list(db.scalars(q.order_by(Task.updated_at.desc(), Task.created_at.desc())).all())

def _apply_status(db: Session, workspace_id: uuid.UUID, task: Task, status: TaskStatus) -> None:
    delta = completed_delta_for_status_change(task.status, status)
    task.status = status
    db.flush()
    if delta and task.project_id is not None:
        update_project_task_counters(db, workspace_id, task.project_id, 0, delta)

def set_task_status(
    db: Session,
    workspace_id: uuid.UUID,
    task_id: uuid.UUID,
    actor_id: uuid.UUID,
    status: TaskStatus,
) -> Task:
    guard.require_member(db, workspace_id, actor_id)
    task = _require_task(db, workspace_id, task_id)

    if not guard.can_toggle_task_status(db, workspace_id, task.project_id, task.id, actor_id):
        raise Forbidden("You do not have permission to change this task's status")

    _apply_status(db, workspace_id, task, status)
    return task

def update_task(
    db: Session,
    workspace_id: uuid.UUID,
    task_id: uuid.UUID,
    actor_id: uuid.UUID,
    changes: Mapping[str, object],
) -> Task:
    """Apply a partial update. A change that only touches ``status`` goes through the toggle rule."""
    if "title" in changes:
        changes = {**changes, "title": _clean_title(changes["title"])}

    if set(changes) == {"status"}:
        return set_task_status(db, workspace_id, task_id, actor_id, changes["status"])

    guard.require_member(db, workspace_id, actor_id)
    task = _require_task(db, workspace_id, task_id)
    _authorize(
        db,
        workspace_id,
        task.project_id,
        actor_id,
        ProjectPermission.edit_tasks,
        "You do not have permission to edit tasks",
    )

    member_ids = changes.get("member_ids")
    valid = _valid_member_ids(db, workspace_id, member_ids) if member_ids else []

    if "title" in changes:
        task.title = changes["title"]
    if "description" in changes:
        task.description = _clean_text(changes["description"])
    if "priority" in changes:
        task.priority = changes["priority"]
    if "due_date" in changes:
        task.due_date = changes["due_date"]
    if "status" in changes:
        _apply_status(db, workspace_id, task, changes["status"])
    db.flush()

    if member_ids is not None:
        update_task_members(db, workspace_id, task.project_id, task.id, valid, actor_id)
    return task

def delete_task(db: Session, workspace_id: uuid.UUID, task_id: uuid.UUID, actor_id: uuid.UUID) -> None:
    guard.require_member(db, workspace_id, actor_id)
    task = _require_task(db, workspace_id, task_id)
    _authorize(
        db,
        workspace_id,
        task.project_id,
        actor_id,
        ProjectPermission.delete_tasks,
        "You do not have permission to delete tasks",
    )
    cleanup.delete_task(db, workspace_id, task)
    logger.info("deleted task=%s ws=%s by=%s", task_id, workspace_id, actor_id)
