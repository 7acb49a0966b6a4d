import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from app.models.enums import ProjectRole

class ProjectCreateIn(BaseModel):
    title: str
    description: str | None = None
    emoji: str | None = None
    member_ids: list[uuid.UUID] | None = None

class ProjectUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None
    emoji: str | None = None
    member_ids: list[uuid.UUID] | None = None

class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    workspace_id: uuid.UUID
    title: str
    description: str | None
    emoji: str | None
    assigned_user_ids: list[uuid.UUID]
    task_count: int | None
    completed_task_count: int | None
    created_at: datetime
    updated_at: datetime

class ProjectEnvelope(BaseModel):
    success: bool = True
    project: ProjectOut

class ProjectListOut(BaseModel):
    success: bool = True
    projects: list[ProjectOut]

class AssignmentIn(BaseModel):
    permissions: dict[str, Any] | None = None

class AssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_id: uuid.UUID
    user_id: uuid.UUID
    role: ProjectRole
    permissions: dict[str, bool] | None
    assigned_at: datetime
    assigned_by: uuid.UUID | None

class AssignmentEnvelope(BaseModel):
    success: bool = True
    assignment: AssignmentOut
