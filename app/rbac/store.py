"""Point lookups for membership and assignment rows.

A missing row is a normal "not found" answer (``None``, ``False`` or an empty
set), never an exception. Nothing is cached here: callers that make an
authorization decision always see the current row.
"""

import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.assignment import ProjectAssignment, TaskAssignment
from app.models.membership import Member
from app.models.project import Project
from app.models.task import Task
from app.models.workspace import Workspace

def get_workspace(db: Session, workspace_id: uuid.UUID) -> Workspace | None:
    return db.get(Workspace, workspace_id)

def get_member(db: Session, workspace_id: uuid.UUID, user_id: uuid.UUID) -> Member | None:
    return db.get(Member, {"workspace_id": workspace_id, "user_id": user_id})

def is_workspace_member(db: Session, workspace_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    return get_member(db, workspace_id, user_id) is not None

def list_members(db: Session, workspace_id: uuid.UUID) -> list[Member]:
    q = select(Member).where(Member.workspace_id == workspace_id).order_by(Member.joined_at)
    return list(db.scalars(q).all())

def get_project(db: Session, workspace_id: uuid.UUID, project_id: uuid.UUID) -> Project | None:
    return db.scalar(
        select(Project).where(Project.id == project_id, Project.workspace_id == workspace_id)
    )

def get_task(db: Session, workspace_id: uuid.UUID, task_id: uuid.UUID) -> Task | None:
    return db.scalar(select(Task).where(Task.id == task_id, Task.workspace_id == workspace_id))

def get_project_assignment(
    db: Session,
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    user_id: uuid.UUID,
) -> ProjectAssignment | None:
    return db.get(
        ProjectAssignment,
        {"workspace_id": workspace_id, "project_id": project_id, "user_id": user_id},
    )

def list_project_member_ids(db: Session, workspace_id: uuid.UUID, project_id: uuid.UUID) -> set[uuid.UUID]:
    q = select(ProjectAssignment.user_id).where(
        ProjectAssignment.workspace_id == workspace_id,
        ProjectAssignment.project_id == project_id,
    )
    return set(db.scalars(q).all())

def get_task_assignees(db: Session, workspace_id: uuid.UUID, task_id: uuid.UUID) -> set[uuid.UUID]:
    q = select(TaskAssignment.user_id).where(
        TaskAssignment.workspace_id == workspace_id,
        TaskAssignment.task_id == task_id,
    )
    return set(db.scalars(q).all())

def validate_member_ids(
    db: Session,
    workspace_id: uuid.UUID,
    member_ids: Iterable[uuid.UUID],
) -> tuple[list[uuid.UUID], list[uuid.UUID]]:
    """Split ids into (members of the workspace, everything else), keeping order."""
    wanted = list(dict.fromkeys(member_ids))
    if not wanted:
        return [], []

    q = select(Member.user_id).where(Member.workspace_id == workspace_id, Member.user_id.in_(wanted))
    present = set(db.scalars(q).all())
    valid = [m for m in wanted if m in present]
    invalid = [m for m in wanted if m not in present]
    return valid, invalid
