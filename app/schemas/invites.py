import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr

from app.models.enums import InviteStatus
from app.schemas.members import MemberOut

class InviteCreateIn(BaseModel):
    email: EmailStr

class InviteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    workspace_id: uuid.UUID
    workspace_name: str
    invited_email: str
    inviter_name: str
    status: InviteStatus
    expires_at: datetime

class InviteSentOut(BaseModel):
    success: bool = True
    invite: InviteOut
    email_sent: bool
    # dev only, mirrors the magic-link flow
    token: str | None = None

class InvitePreviewOut(BaseModel):
    success: bool = True
    workspace_id: uuid.UUID
    workspace_name: str
    inviter_name: str
    expires_at: datetime

class InviteAcceptIn(BaseModel):
    token: str

class InviteAcceptOut(BaseModel):
    success: bool = True
    workspace_id: uuid.UUID
    member: MemberOut
