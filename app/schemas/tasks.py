import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from app.models.enums import TaskPriority, TaskStatus

class TaskCreateIn(BaseModel):
    title: str
    project_id: uuid.UUID | None = None
    description: str | None = None
    status: TaskStatus = TaskStatus.pending
    priority: TaskPriority = TaskPriority.normal
    due_date: date | None = None
    member_ids: list[uuid.UUID] | None = None

class TaskUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None
    member_ids: list[uuid.UUID] | None = None

class TaskStatusIn(BaseModel):
    status: TaskStatus

class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    workspace_id: uuid.UUID
    project_id: uuid.UUID | None
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    due_date: date | None
    assignee_ids: list[uuid.UUID]
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime

class TaskEnvelope(BaseModel):
    success: bool = True
    task: TaskOut

class TaskListOut(BaseModel):
    success: bool = True
    tasks: list[TaskOut]
