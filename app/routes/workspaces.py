import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.user import User
from app.rbac.deps import WorkspaceContext, get_workspace_context
from app.schemas.workspaces import (
    TransferOwnershipIn,
    WorkspaceCreateIn,
    WorkspaceEnvelope,
    WorkspaceListOut,
    WorkspaceOut,
    WorkspaceUpdateIn,
)
from app.services import members as member_service
from app.services import workspaces as workspace_service

router = APIRouter(prefix="/workspaces", tags=["workspaces"])

@router.post("", response_model=WorkspaceEnvelope, status_code=201)
def create_workspace(
    payload: WorkspaceCreateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WorkspaceEnvelope:
    ws = workspace_service.create_workspace(db, user, payload.name, payload.description)
    db.commit()
    return WorkspaceEnvelope(workspace=WorkspaceOut.model_validate(ws))

@router.get("", response_model=WorkspaceListOut)
def list_workspaces(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WorkspaceListOut:
    rows = workspace_service.list_workspaces_for(db, user.id)
    return WorkspaceListOut(workspaces=[WorkspaceOut.model_validate(w) for w in rows])

@router.get("/{workspace_id}", response_model=WorkspaceEnvelope)
def get_workspace(ctx: WorkspaceContext = Depends(get_workspace_context)) -> WorkspaceEnvelope:
    return WorkspaceEnvelope(workspace=WorkspaceOut.model_validate(ctx.workspace))

@router.patch("/{workspace_id}", response_model=WorkspaceEnvelope)
def update_workspace(
    workspace_id: uuid.UUID,
    payload: WorkspaceUpdateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WorkspaceEnvelope:
    ws = workspace_service.update_workspace(db, workspace_id, user.id, payload.name, payload.description)
    db.commit()
    return WorkspaceEnvelope(workspace=WorkspaceOut.model_validate(ws))

@router.delete("/{workspace_id}")
def delete_workspace(
    workspace_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    workspace_service.delete_workspace(db, workspace_id, user.id)
    db.commit()
    return {"success": True}

@router.post("/{workspace_id}/ownership/transfer", response_model=WorkspaceEnvelope)
def transfer_ownership(
    workspace_id: uuid.UUID,
    payload: TransferOwnershipIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WorkspaceEnvelope:
    ws = member_service.transfer_ownership(db, workspace_id, user.id, payload.target_user_id)
    db.commit()
    return WorkspaceEnvelope(workspace=WorkspaceOut.model_validate(ws))
