from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.user import User
from app.schemas.users import ProfileUpdateIn, UserEnvelope, UserOut
from app.services import profiles as profile_service

router = APIRouter(prefix="/me", tags=["profile"])

@router.get("", response_model=UserEnvelope)
def get_me(user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(user=UserOut.model_validate(user))

@router.patch("", response_model=UserEnvelope)
def update_me(
    payload: ProfileUpdateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserEnvelope:
    profile_service.update_profile(db, user, payload.model_dump(exclude_unset=True))
    db.commit()
    return UserEnvelope(user=UserOut.model_validate(user))
