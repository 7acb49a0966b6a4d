import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.user import User
from app.rbac import store
from app.rbac.deps import WorkspaceContext, get_workspace_context
from app.schemas.members import MemberAdminIn, MemberEnvelope, MemberListOut, MemberOut, MemberPermissionsIn
from app.services import members as member_service

router = APIRouter(prefix="/workspaces/{workspace_id}/members", tags=["members"])

@router.get("", response_model=MemberListOut)
def list_members(
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
) -> MemberListOut:
    rows = store.list_members(db, ctx.workspace.id)
    return MemberListOut(members=[MemberOut.model_validate(m) for m in rows])

@router.patch("/{member_id}", response_model=MemberEnvelope)
def update_member_permissions(
    workspace_id: uuid.UUID,
    member_id: uuid.UUID,
    payload: MemberPermissionsIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MemberEnvelope:
    m = member_service.update_member_permissions(db, workspace_id, user.id, member_id, payload.permissions)
    db.commit()
    return MemberEnvelope(member=MemberOut.model_validate(m))

@router.patch("/{member_id}/admin", response_model=MemberEnvelope)
def set_member_admin(
    workspace_id: uuid.UUID,
    member_id: uuid.UUID,
    payload: MemberAdminIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MemberEnvelope:
    m = member_service.set_member_admin(db, workspace_id, user.id, member_id, payload.is_admin)
    db.commit()
    return MemberEnvelope(member=MemberOut.model_validate(m))

@router.delete("/{member_id}")
def remove_member(
    workspace_id: uuid.UUID,
    member_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    member_service.remove_member(db, workspace_id, user.id, member_id)
    db.commit()
    return {"success": True}
