"""Assignment fan-out and project counter maintenance.

The routines here stage their writes on the caller's session and flush; the
caller commits once, so each call lands as a single atomic batch together with
whatever mutation triggered it.

Assignment rows are the source of truth. ``Task.assignee_ids`` and
``Project.assigned_user_ids`` are denormalized copies: the first is
overwritten from the desired set, the second is always rebuilt from a full
scan of the project's tasks by ``sync_project_assignees``.
"""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.errors import NotFound
from app.models.assignment import ProjectAssignment, TaskAssignment
from app.models.enums import ProjectRole, TaskRole, TaskStatus
from app.models.project import Project
from app.models.task import Task
from app.rbac import store

logger = logging.getLogger(__name__)

def _ordered(ids: Iterable[uuid.UUID]) -> list[uuid.UUID]:
    return list(dict.fromkeys(ids))

def update_project_members(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    desired_member_ids: Iterable[uuid.UUID],
    assigned_by: uuid.UUID | None,
) -> tuple[set[uuid.UUID], set[uuid.UUID]]:
    """Reconcile project assignments to exactly ``desired_member_ids``.

    New members get an ``editor`` assignment; members no longer wanted lose
    theirs (including any project-scoped permissions). Existing assignments are
    left untouched, so re-running with the same set changes nothing.

    Returns ``(added, removed)``.
    """
    desired = _ordered(desired_member_ids)
    current = {
        a.user_id: a
        for a in db.scalars(
            select(ProjectAssignment).where(
                ProjectAssignment.workspace_id == workspace_id,
                ProjectAssignment.project_id == project_id,
            )
        )
    }

    added = {uid for uid in desired if uid not in current}
    removed = {uid for uid in current if uid not in set(desired)}

    for uid in desired:
        if uid in added:
            db.add(
                ProjectAssignment(
                    workspace_id=workspace_id,
                    project_id=project_id,
                    user_id=uid,
                    role=ProjectRole.editor,
                    assigned_by=assigned_by,
                )
            )
    for uid in removed:
        db.delete(current[uid])

    db.flush()
    return added, removed

def set_member_project_permissions(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    member_id: uuid.UUID,
    permissions: dict[str, bool] | None,
    assigned_by: uuid.UUID | None,
) -> ProjectAssignment:
    """Create or update one assignment with project-scoped permission overrides."""
    assignment = store.get_project_assignment(db, workspace_id, project_id, member_id)
    if assignment is None:
        assignment = ProjectAssignment(
            workspace_id=workspace_id,
            project_id=project_id,
            user_id=member_id,
            role=ProjectRole.editor,
            assigned_by=assigned_by,
            permissions=permissions,
        )
        db.add(assignment)
    else:
        assignment.permissions = dict(permissions) if permissions is not None else None

    db.flush()
    return assignment

def update_task_members(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID | None,
    task_id: uuid.UUID,
    desired_member_ids: Iterable[uuid.UUID],
    assigned_by: uuid.UUID | None,
) -> Task:
    """Reconcile task assignments, then mirror them onto the task and project.

    Idempotent for a given final set: concurrent callers converge on whichever
    desired set is applied last.
    """
    task = store.get_task(db, workspace_id, task_id)
    if task is None:
        raise NotFound("Task not found")

    desired = _ordered(desired_member_ids)
    current = {
        a.user_id: a
        for a in db.scalars(
            select(TaskAssignment).where(
                TaskAssignment.workspace_id == workspace_id,
                TaskAssignment.task_id == task_id,
            )
        )
    }

    for uid in desired:
        if uid not in current:
            db.add(
                TaskAssignment(
                    workspace_id=workspace_id,
                    task_id=task_id,
                    user_id=uid,
                    role=TaskRole.assignee,
                    assigned_by=assigned_by,
                )
            )
    for uid, row in current.items():
        if uid not in desired:
            db.delete(row)

    task.assignee_ids = [str(uid) for uid in desired]
    db.flush()

    if project_id is not None:
        sync_project_assignees(db, workspace_id, project_id)
    return task

def sync_project_assignees(db: Session, workspace_id: uuid.UUID, project_id: uuid.UUID) -> list[str]:
    """Rebuild ``Project.assigned_user_ids`` from every task in the project."""
    db.flush()
    project = store.get_project(db, workspace_id, project_id)
    if project is None:
        return []

    union: set[str] = set()
    for assignee_ids in db.scalars(
        select(Task.assignee_ids).where(Task.workspace_id == workspace_id, Task.project_id == project_id)
    ):
        union.update(assignee_ids or [])

    project.assigned_user_ids = sorted(union)
    db.flush()
    return project.assigned_user_ids

def recount_project_tasks(db: Session, workspace_id: uuid.UUID, project_id: uuid.UUID) -> tuple[int, int]:
    db.flush()
    base = select(func.count()).select_from(Task).where(
        Task.workspace_id == workspace_id, Task.project_id == project_id
    )
    total = db.scalar(base) or 0
    completed = db.scalar(base.where(Task.status == TaskStatus.completed)) or 0
    return int(total), int(completed)

def update_project_task_counters(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    task_count_delta: int,
    completed_count_delta: int,
) -> None:
    """Apply counter deltas, or backfill both counters when they were never set.

    Call after the task change is staged: the backfill path recounts from the
    current rows and ignores the deltas.
    """
    project = store.get_project(db, workspace_id, project_id)
    if project is None:
        return

    if project.task_count is None or project.completed_task_count is None:
        total, completed = recount_project_tasks(db, workspace_id, project_id)
        project.task_count = total
        project.completed_task_count = completed
        db.flush()
        logger.info("backfilled counters project=%s total=%s completed=%s", project_id, total, completed)
        return

    values = {}
    if task_count_delta:
        values["task_count"] = Project.task_count + task_count_delta
    if completed_count_delta:
        values["completed_task_count"] = Project.completed_task_count + completed_count_delta
    if not values:
        return

    db.flush()
    db.execute(
        update(Project)
        .where(Project.id == project_id, Project.workspace_id == workspace_id)
        .values(**values)
        .execution_options(synchronize_session="fetch")
    )

def completed_delta_for_status_change(old: TaskStatus, new: TaskStatus) -> int:
    """Completed-count delta for a status transition."""
    was_done = old == TaskStatus.completed
    is_done = new == TaskStatus.completed
    if is_done and not was_done:
        return 1
    if was_done and not is_done:
        return -1
    return 0
