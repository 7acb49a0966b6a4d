"""Deletion cascades.

Each cascade removes the assignment rows that grant access before (and in the
same transaction as) the entity they point at. A retried cascade is safe:
deleting rows that are already gone matches nothing.
"""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.models.assignment import ProjectAssignment, TaskAssignment
from app.models.enums import TaskStatus
from app.models.invite import Invite
from app.models.membership import Member
from app.models.project import Project
from app.models.task import Task
from app.models.workspace import Workspace
from app.services.assignments import sync_project_assignees, update_project_task_counters

logger = logging.getLogger(__name__)

def cleanup_member_assignments(db: Session, workspace_id: uuid.UUID, member_id: uuid.UUID) -> int:
    """Drop every project/task assignment the member holds in the workspace.

    Tasks that listed the member as assignee are rewritten and their projects'
    assignee unions rebuilt, so the denormalized lists keep matching the rows.
    Returns the number of tasks touched.
    """
    task_ids = list(
        db.scalars(
            select(TaskAssignment.task_id).where(
                TaskAssignment.workspace_id == workspace_id,
                TaskAssignment.user_id == member_id,
            )
        )
    )

    db.execute(
        delete(ProjectAssignment).where(
            ProjectAssignment.workspace_id == workspace_id,
            ProjectAssignment.user_id == member_id,
        )
    )
    db.execute(
        delete(TaskAssignment).where(
            TaskAssignment.workspace_id == workspace_id,
            TaskAssignment.user_id == member_id,
        )
    )

    projects: set[uuid.UUID] = set()
    if task_ids:
        member_key = str(member_id)
        for task in db.scalars(select(Task).where(Task.id.in_(task_ids))):
            task.assignee_ids = [uid for uid in (task.assignee_ids or []) if uid != member_key]
            if task.project_id is not None:
                projects.add(task.project_id)
        db.flush()

    for project_id in projects:
        sync_project_assignees(db, workspace_id, project_id)

    return len(task_ids)

def delete_task(db: Session, workspace_id: uuid.UUID, task: Task) -> None:
    project_id = task.project_id
    was_completed = task.status == TaskStatus.completed

    db.execute(
        delete(TaskAssignment).where(
            TaskAssignment.workspace_id == workspace_id,
            TaskAssignment.task_id == task.id,
        )
    )
    db.delete(task)
    db.flush()

    if project_id is not None:
        update_project_task_counters(db, workspace_id, project_id, -1, -1 if was_completed else 0)
        sync_project_assignees(db, workspace_id, project_id)

def delete_project(db: Session, workspace_id: uuid.UUID, project: Project) -> int:
    """Delete a project, its tasks and every assignment under it. Returns the task count."""
    task_ids = list(
        db.scalars(select(Task.id).where(Task.workspace_id == workspace_id, Task.project_id == project.id))
    )

    if task_ids:
        db.execute(
            delete(TaskAssignment).where(
                TaskAssignment.workspace_id == workspace_id,
                TaskAssignment.task_id.in_(task_ids),
            )
        )
    db.execute(
        delete(ProjectAssignment).where(
            ProjectAssignment.workspace_id == workspace_id,
            ProjectAssignment.project_id == project.id,
        )
    )
    db.execute(delete(Task).where(Task.workspace_id == workspace_id, Task.project_id == project.id))
    db.delete(project)
    db.flush()

    logger.info("deleted project=%s ws=%s tasks=%s", project.id, workspace_id, len(task_ids))
    return len(task_ids)

def delete_workspace(db: Session, workspace: Workspace) -> None:
    ws_id = workspace.id

    db.execute(delete(ProjectAssignment).where(ProjectAssignment.workspace_id == ws_id))
    db.execute(delete(TaskAssignment).where(TaskAssignment.workspace_id == ws_id))
    db.execute(delete(Task).where(Task.workspace_id == ws_id))
    db.execute(delete(Project).where(Project.workspace_id == ws_id))
    db.execute(delete(Invite).where(Invite.workspace_id == ws_id))
    db.execute(delete(Member).where(Member.workspace_id == ws_id))
    db.delete(workspace)
    db.flush()

    logger.info("deleted workspace=%s", ws_id)
