"""Workspace invitations.

An invite is ``pending`` until accepted, and accepting is a one-way
transition. Expiry is never written back: it is evaluated against
``expires_at`` whenever an invite is read or accepted.
"""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.auth.tokens import as_utc, invite_expiry, new_invite_token, now_utc
from app.errors import Conflict, Expired, Forbidden, NotFound
from app.models.enums import InviteStatus, Role
from app.models.invite import Invite
from app.models.membership import Member
from app.models.user import User
from app.notify.email import EmailNotConfiguredError, EmailSender, render_invite_email
from app.rbac import guard, store
from app.rbac.perms import WorkspacePermission

logger = logging.getLogger(__name__)

def normalize_email(email: str) -> str:
    return email.strip().lower()

def _is_expired(invite: Invite) -> bool:
    return as_utc(invite.expires_at) < now_utc()

def create_invite(db: Session, workspace_id: uuid.UUID, inviter: User, email: str) -> Invite:
    guard.require_permission(
        db,
        workspace_id,
        inviter.id,
        [WorkspacePermission.manage_members, WorkspacePermission.add_members],
        "You do not have permission to invite members",
    )
    email = normalize_email(email)

    existing = db.scalar(
        select(Member).where(Member.workspace_id == workspace_id, Member.email == email)
    )
    if existing is not None:
        raise Conflict("User is already a member of this workspace")

    workspace = store.get_workspace(db, workspace_id)
    invite = Invite(
        token=new_invite_token(),
        workspace_id=workspace_id,
        workspace_name=workspace.name,
        invited_email=email,
        inviter_id=inviter.id,
        inviter_name=inviter.display_name,
        status=InviteStatus.pending,
        expires_at=invite_expiry(),
    )
    db.add(invite)
    db.flush()

    logger.info("invite created ws=%s email=%s by=%s", workspace_id, email, inviter.id)
    return invite

def deliver_invite_email(invite: Invite, sender: EmailSender | None = None) -> bool:
    """Mail an already persisted invite. A failed send leaves the invite usable."""
    sender = sender or EmailSender()
    subject, body = render_invite_email(invite.workspace_name, invite.inviter_name, invite.token)
    try:
        sender.send(invite.invited_email, subject, body)
    except EmailNotConfiguredError:
        logger.warning("smtp not configured, invite %s not mailed", invite.id)
        return False
    except OSError as exc:
        logger.warning("invite email to %s failed: %s", invite.invited_email, exc)
        return False
    return True

def get_pending_invite(db: Session, token: str) -> Invite:
    invite = db.scalar(select(Invite).where(Invite.token == token))
    if invite is None:
        raise NotFound("Invite not found")
    if invite.status != InviteStatus.pending:
        raise Conflict("Invite already used")
    if _is_expired(invite):
        raise Expired("Invite expired")
    return invite

def preview_invite(db: Session, token: str) -> Invite:
    return get_pending_invite(db, token)

def accept_invite(db: Session, token: str, user: User) -> Member:
    """Consume an invite and add ``user`` to its workspace.

    The pending -> accepted flip is a conditional update; when two accepts
    race only one sees a matched row, the other gets ``Conflict``. The flip
    and the new member row are committed together by the caller.
    """
    invite = get_pending_invite(db, token)

    if normalize_email(user.email) != normalize_email(invite.invited_email):
        raise Forbidden("This invitation was sent to a different email address")

    result = db.execute(
        update(Invite)
        .where(Invite.id == invite.id, Invite.status == InviteStatus.pending)
        .values(status=InviteStatus.accepted, accepted_by=user.id, accepted_at=now_utc())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise Conflict("Invite already used")

    if store.get_workspace(db, invite.workspace_id) is None:
        raise NotFound("Workspace not found")
    if store.is_workspace_member(db, invite.workspace_id, user.id):
        raise Conflict("You are already a member of this workspace")

    member = Member(
        workspace_id=invite.workspace_id,
        user_id=user.id,
        email=normalize_email(user.email),
        username=user.display_name,
        avatar_url=user.avatar_url,
        role=Role.member,
        permissions={},
    )
    db.add(member)
    db.flush()

    logger.info("invite accepted ws=%s user=%s", invite.workspace_id, user.id)
    return member
