import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.config import settings
from app.db import get_db
from app.models.user import User
from app.ratelimit import rate_limit
from app.rbac.deps import WorkspaceContext, require_perm
from app.rbac.perms import WorkspacePermission
from app.schemas.invites import (
    InviteAcceptIn,
    InviteAcceptOut,
    InviteCreateIn,
    InviteOut,
    InvitePreviewOut,
    InviteSentOut,
)
from app.schemas.members import MemberOut
from app.services import invites as invite_service

router = APIRouter(tags=["invites"])

@router.post("/workspaces/{workspace_id}/invites", response_model=InviteSentOut, status_code=201)
def send_invite(
    workspace_id: uuid.UUID,
    payload: InviteCreateIn,
    ctx: WorkspaceContext = Depends(
        require_perm(
            WorkspacePermission.manage_members,
            WorkspacePermission.add_members,
            message="You do not have permission to invite members",
        )
    ),
    db: Session = Depends(get_db),
    _: None = Depends(
        rate_limit(
            "invites:send",
            limit_per_window=settings.rate_limit_invite_send_per_min,
            window_seconds=60,
        )
    ),
) -> InviteSentOut:
    invite = invite_service.create_invite(db, workspace_id, ctx.user, payload.email)
    db.commit()

    # persisted first; a failed send does not undo the invite
    sent = invite_service.deliver_invite_email(invite)

    token = None if settings.app_env == "prod" else invite.token
    return InviteSentOut(invite=InviteOut.model_validate(invite), email_sent=sent, token=token)

@router.get("/invites/{token}", response_model=InvitePreviewOut)
def preview_invite(token: str, db: Session = Depends(get_db)) -> InvitePreviewOut:
    invite = invite_service.preview_invite(db, token)
    return InvitePreviewOut(
        workspace_id=invite.workspace_id,
        workspace_name=invite.workspace_name,
        inviter_name=invite.inviter_name,
        expires_at=invite.expires_at,
    )

@router.post("/invites/accept", response_model=InviteAcceptOut)
def accept_invite(
    payload: InviteAcceptIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    _: None = Depends(
        rate_limit(
            "invites:accept",
            limit_per_window=settings.rate_limit_invite_accept_per_min,
            window_seconds=60,
        )
    ),
) -> InviteAcceptOut:
    member = invite_service.accept_invite(db, payload.token.strip(), user)
    db.commit()
    return InviteAcceptOut(workspace_id=member.workspace_id, member=MemberOut.model_validate(member))
