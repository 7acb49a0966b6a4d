"""User profile edits.

Member rows carry a copy of the user's display name and avatar so member
lists read without a join. A profile change rewrites that copy in every
workspace the user belongs to, in the same transaction as the user row.
"""

import logging
from collections.abc import Mapping

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import Conflict, ValidationFailed
from app.models.membership import Member
from app.models.user import User

logger = logging.getLogger(__name__)

def _clean_username(username: object) -> str:
    if not isinstance(username, str) or not username.strip():
        raise ValidationFailed("Username is required")
    return username.strip()

def ensure_username_available(db: Session, username: object, user: User | None = None) -> str:
    """Return the cleaned username, or raise ``Conflict`` when someone else holds it."""
    username = _clean_username(username)
    holder = db.scalar(select(User).where(User.username == username))
    if holder is not None and (user is None or holder.id != user.id):
        raise Conflict("Username already exists")
    return username

def update_profile(db: Session, user: User, changes: Mapping[str, object]) -> int:
    """Apply ``changes`` to the user and mirror them onto member rows.

    Returns how many member rows were rewritten.
    """
    if "username" in changes:
        user.username = ensure_username_available(db, changes["username"], user)
    if "avatar_url" in changes:
        avatar = changes["avatar_url"]
        user.avatar_url = (avatar.strip() or None) if isinstance(avatar, str) else None

    try:
        db.flush()
    except IntegrityError:
        # lost a race for the same username
        raise Conflict("Username already exists")

    members = db.scalars(select(Member).where(Member.user_id == user.id)).all()
    for m in members:
        m.username = user.display_name
        m.avatar_url = user.avatar_url
    db.flush()

    logger.info("profile updated user=%s members_synced=%s", user.id, len(members))
    return len(members)
