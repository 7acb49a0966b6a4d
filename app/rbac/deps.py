import uuid

from fastapi import Depends
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.membership import Member
from app.models.user import User
from app.models.workspace import Workspace
from app.rbac import guard
from app.rbac.perms import PROJECT_PERMISSION_SET, WORKSPACE_PERMISSION_SET

class WorkspaceContext:
    def __init__(self, workspace: Workspace, member: Member, user: User):
        self.workspace = workspace
        self.member = member
        self.user = user

def get_workspace_context(
    workspace_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WorkspaceContext:
    member = guard.require_member(db, workspace_id, user.id)
    return WorkspaceContext(workspace=db.get(Workspace, workspace_id), member=member, user=user)

def require_perm(*flags: str, message: str = guard.DENIED):
    known = WORKSPACE_PERMISSION_SET | PROJECT_PERMISSION_SET
    unknown = [f for f in flags if str(getattr(f, "value", f)) not in known]
    if not flags or unknown:
        raise RuntimeError(f"unknown permission flags: {unknown or flags}")

    def _checker(
        workspace_id: uuid.UUID,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> WorkspaceContext:
        member = guard.require_permission(db, workspace_id, user.id, flags, message)
        return WorkspaceContext(workspace=db.get(Workspace, workspace_id), member=member, user=user)

    return _checker
