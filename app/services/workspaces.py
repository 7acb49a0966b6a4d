import logging
import re
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import ValidationFailed
from app.models.enums import Role
from app.models.membership import Member
from app.models.user import User
from app.models.workspace import Workspace
from app.rbac import guard
from app.services import cleanup

logger = logging.getLogger(__name__)

def slugify(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.strip().lower())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    return slug or "workspace"

def _clean_name(name: str | None) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationFailed("Workspace name is required")
    return name.strip()

def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None

def create_workspace(db: Session, user: User, name: str, description: str | None = None) -> Workspace:
    name = _clean_name(name)

    ws = Workspace(
        slug=slugify(name),
        name=name,
        description=_clean_text(description),
        owner_id=user.id,
    )
    db.add(ws)
    db.flush()

    db.add(
        Member(
            workspace_id=ws.id,
            user_id=user.id,
            email=user.email,
            username=user.display_name,
            avatar_url=user.avatar_url,
            role=Role.owner,
            permissions={},
        )
    )
    db.flush()

    logger.info("created workspace=%s owner=%s", ws.id, user.id)
    return ws

def list_workspaces_for(db: Session, user_id: uuid.UUID) -> list[Workspace]:
    q = (
        select(Workspace)
        .join(Member, Member.workspace_id == Workspace.id)
        .where(Member.user_id == user_id)
        .order_by(Workspace.created_at.desc())
    )
    return list(db.scalars(q).all())

def update_workspace(
    db: Session,
    workspace_id: uuid.UUID,
    actor_id: uuid.UUID,
    name: str,
    description: str | None,
) -> Workspace:
    name = _clean_name(name)
    guard.require_owner(db, workspace_id, actor_id)

    ws = db.get(Workspace, workspace_id)
    ws.name = name
    ws.description = _clean_text(description)
    db.flush()
    return ws

def delete_workspace(db: Session, workspace_id: uuid.UUID, actor_id: uuid.UUID) -> None:
    guard.require_owner(db, workspace_id, actor_id, "Only the workspace owner can delete the workspace")
    cleanup.delete_workspace(db, db.get(Workspace, workspace_id))
