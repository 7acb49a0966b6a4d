import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    username: str | None
    avatar_url: str | None
    display_name: str
    created_at: datetime

class UserEnvelope(BaseModel):
    success: bool = True
    user: UserOut

class ProfileUpdateIn(BaseModel):
    username: str | None = None
    avatar_url: str | None = None

class UsernameCheckIn(BaseModel):
    username: str

class UsernameCheckOut(BaseModel):
    success: bool = True
    available: bool = True
