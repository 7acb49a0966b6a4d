import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

class WorkspaceCreateIn(BaseModel):
    name: str
    description: str | None = None

class WorkspaceUpdateIn(BaseModel):
    name: str
    description: str | None = None

class TransferOwnershipIn(BaseModel):
    target_user_id: uuid.UUID

class WorkspaceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    slug: str
    name: str
    description: str | None
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

class WorkspaceEnvelope(BaseModel):
    success: bool = True
    workspace: WorkspaceOut

class WorkspaceListOut(BaseModel):
    success: bool = True
    workspaces: list[WorkspaceOut]
