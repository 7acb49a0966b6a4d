import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from app.models.enums import Role

class MemberPermissionsIn(BaseModel):
    # shape is checked by validate_workspace_flags so errors name the bad keys
    permissions: dict[str, Any]

class MemberAdminIn(BaseModel):
    is_admin: bool

class MemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    workspace_id: uuid.UUID
    user_id: uuid.UUID
    email: str
    username: str | None
    avatar_url: str | None
    role: Role
    permissions: dict[str, bool]
    joined_at: datetime

class MemberEnvelope(BaseModel):
    success: bool = True
    member: MemberOut

class MemberListOut(BaseModel):
    success: bool = True
    members: list[MemberOut]
