import uuid
from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.user import User
from app.schemas.tasks import TaskCreateIn, TaskEnvelope, TaskListOut, TaskOut, TaskStatusIn, TaskUpdateIn
from app.services import tasks as task_service

router = APIRouter(prefix="/workspaces/{workspace_id}/tasks", tags=["tasks"])

# status/priority cannot be cleared
NON_NULLABLE = ("status", "priority")

@router.post("", response_model=TaskEnvelope, status_code=201)
def create_task(
    workspace_id: uuid.UUID,
    payload: TaskCreateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskEnvelope:
    t = task_service.create_task(
        db,
        workspace_id,
        user.id,
        payload.title,
        project_id=payload.project_id,
        description=payload.description,
        status=payload.status,
        priority=payload.priority,
        due_date=payload.due_date,
        member_ids=payload.member_ids,
    )
    db.commit()
    return TaskEnvelope(task=TaskOut.model_validate(t))

@router.get("", response_model=TaskListOut)
def list_tasks(
    workspace_id: uuid.UUID,
    scope: Literal["all", "assigned"] = "all",
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskListOut:
    rows = task_service.list_workspace_tasks(db, workspace_id, user.id, scope)
    return TaskListOut(tasks=[TaskOut.model_validate(t) for t in rows])

@router.patch("/{task_id}", response_model=TaskEnvelope)
def update_task(
    workspace_id: uuid.UUID,
    task_id: uuid.UUID,
    payload: TaskUpdateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskEnvelope:
    changes = payload.model_dump(exclude_unset=True)
    for key in NON_NULLABLE:
        if key in changes and changes[key] is None:
            del changes[key]

    t = task_service.update_task(db, workspace_id, task_id, user.id, changes)
    db.commit()
    return TaskEnvelope(task=TaskOut.model_validate(t))

@router.post("/{task_id}/status", response_model=TaskEnvelope)
def set_task_status(
    workspace_id: uuid.UUID,
    task_id: uuid.UUID,
    payload: TaskStatusIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskEnvelope:
    t = task_service.set_task_status(db, workspace_id, task_id, user.id, payload.status)
    db.commit()
    return TaskEnvelope(task=TaskOut.model_validate(t))

@router.delete("/{task_id}")
def delete_task(
    workspace_id: uuid.UUID,
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    task_service.delete_task(db, workspace_id, task_id, user.id)
    db.commit()
    return {"success": True}
