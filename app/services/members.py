"""Member role and permission changes, removal, and ownership transfer.

The owner row is only ever touched by ``transfer_ownership``; every other
mutation here refuses to act on it, which keeps exactly one owner per
workspace.
"""

import logging
import uuid

from sqlalchemy.orm import Session

from app.errors import Forbidden, NotFound, ValidationFailed
from app.models.enums import Role
from app.models.membership import Member
from app.models.workspace import Workspace
from app.rbac import guard, store
from app.rbac.perms import is_owner, validate_workspace_flags
from app.services.cleanup import cleanup_member_assignments

logger = logging.getLogger(__name__)

def _require_target(db: Session, workspace_id: uuid.UUID, member_id: uuid.UUID, message: str = "Member not found") -> Member:
    target = store.get_member(db, workspace_id, member_id)
    if target is None:
        raise NotFound(message)
    return target

def _lock_workspace(db: Session, workspace_id: uuid.UUID) -> Workspace:
    """Take the workspace row lock every role-changing mutation serializes on.

    Member rows read earlier in the session may predate a transfer that
    committed while we waited, so they are expired and re-read after the lock.
    """
    db.flush()
    db.expire_all()
    workspace = db.get(Workspace, workspace_id, with_for_update=True)
    if workspace is None:
        raise NotFound("Workspace not found")
    return workspace

def update_member_permissions(
    db: Session,
    workspace_id: uuid.UUID,
    actor_id: uuid.UUID,
    member_id: uuid.UUID,
    permissions: object,
) -> Member:
    flags = validate_workspace_flags(permissions)

    _lock_workspace(db, workspace_id)
    actor = guard.require_member(db, workspace_id, actor_id)
    target = _require_target(db, workspace_id, member_id)
    guard.ensure_can_edit_member_permissions(actor, target)

    target.permissions = flags
    db.flush()
    return target

def set_member_admin(
    db: Session,
    workspace_id: uuid.UUID,
    actor_id: uuid.UUID,
    member_id: uuid.UUID,
    make_admin: bool,
) -> Member:
    _lock_workspace(db, workspace_id)
    guard.require_owner(db, workspace_id, actor_id, "Only the workspace owner can change admin roles")
    target = _require_target(db, workspace_id, member_id)
    if is_owner(target.role):
        raise Forbidden("Cannot modify owner admin role")

    target.role = Role.admin if make_admin else Role.member
    db.flush()
    return target

def remove_member(db: Session, workspace_id: uuid.UUID, actor_id: uuid.UUID, member_id: uuid.UUID) -> None:
    _lock_workspace(db, workspace_id)
    actor = guard.require_member(db, workspace_id, actor_id)
    target = _require_target(db, workspace_id, member_id)
    guard.ensure_can_remove_member(actor, target)

    touched = cleanup_member_assignments(db, workspace_id, member_id)
    db.delete(target)
    db.flush()
    logger.info("removed member=%s ws=%s by=%s tasks_touched=%s", member_id, workspace_id, actor_id, touched)

def transfer_ownership(
    db: Session,
    workspace_id: uuid.UUID,
    actor_id: uuid.UUID,
    target_id: uuid.UUID,
) -> Workspace:
    """Hand the owner role to another member.

    The workspace row is locked first so concurrent transfers serialize; the
    owner pointer and both role flips are then staged together and land in
    one commit.
    """
    if target_id == actor_id:
        raise ValidationFailed("Cannot transfer ownership to yourself")

    workspace = _lock_workspace(db, workspace_id)
    current = guard.require_owner(db, workspace_id, actor_id)
    target = _require_target(db, workspace_id, target_id, "Target member not found")
    if is_owner(target.role):
        raise ValidationFailed("Target member is already the owner")

    workspace.owner_id = target.user_id
    current.role = Role.admin
    target.role = Role.owner
    db.flush()

    logger.info("ownership of ws=%s moved %s -> %s", workspace_id, actor_id, target_id)
    return workspace
