import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.models.enums import Role
from app.models.membership import Member
from app.models.project import Project
from app.models.task import Task
from app.models.user import User
from app.models.workspace import Workspace
from app.services.assignments import set_member_project_permissions
from app.services.projects import create_project
from app.services.tasks import create_task
from app.services.workspaces import create_workspace

@dataclass
class SeedResult:
    owner_email: str
    admin_email: str
    member_email: str
    workspace_id: uuid.UUID
    project_id: uuid.UUID
    task_id: uuid.UUID

def get_or_create_user(db: Session, email: str, username: str | None = None) -> User:
    email = email.lower().strip()
    u = db.scalar(select(User).where(User.email == email))
    if u is None:
        u = User(email=email, username=username)
        db.add(u)
        db.flush()
    return u

def get_or_create_member(db: Session, workspace_id: uuid.UUID, user: User, role: Role) -> Member:
    m = db.scalar(select(Member).where(Member.workspace_id == workspace_id, Member.user_id == user.id))
    if m is None:
        m = Member(
            workspace_id=workspace_id,
            user_id=user.id,
            email=user.email,
            username=user.display_name,
            role=role,
            permissions={},
        )
        db.add(m)
        db.flush()
    elif m.role != role and m.role != Role.owner:
        m.role = role
        db.flush()
    return m

def get_or_create_workspace(db: Session, owner: User, name: str) -> Workspace:
    ws = db.scalar(select(Workspace).where(Workspace.owner_id == owner.id, Workspace.name == name))
    if ws is None:
        ws = create_workspace(db, owner, name, "seeded for local development")
    return ws

def get_or_create_project(db: Session, ws: Workspace, owner: User, title: str) -> Project:
    p = db.scalar(select(Project).where(Project.workspace_id == ws.id, Project.title == title))
    if p is None:
        p = create_project(db, ws.id, owner.id, title)
    return p

def get_or_create_task(db: Session, ws: Workspace, project: Project, owner: User, title: str, assignee: User) -> Task:
    t = db.scalar(select(Task).where(Task.project_id == project.id, Task.title == title))
    if t is None:
        t = create_task(db, ws.id, owner.id, title, project_id=project.id, member_ids=[assignee.id])
    return t

def seed() -> SeedResult:
    db = SessionLocal()
    try:
        owner = get_or_create_user(db, "owner@example.com", "owner")
        admin = get_or_create_user(db, "admin@example.com", "admin")
        member = get_or_create_user(db, "member@example.com", "member")

        ws = get_or_create_workspace(db, owner, "seeded workspace")
        get_or_create_member(db, ws.id, admin, Role.admin)
        get_or_create_member(db, ws.id, member, Role.member)

        project = get_or_create_project(db, ws, owner, "seeded project")
        set_member_project_permissions(
            db, ws.id, project.id, member.id, {"edit-tasks": True}, owner.id
        )

        task = get_or_create_task(db, ws, project, owner, "seeded task", member)

        db.commit()

        return SeedResult(
            owner_email=owner.email,
            admin_email=admin.email,
            member_email=member.email,
            workspace_id=ws.id,
            project_id=project.id,
            task_id=task.id,
        )
    finally:
        db.close()

if __name__ == "__main__":
    r = seed()
    print("seed complete")
    print(f"workspace_id={r.workspace_id}")
    print(f"project_id={r.project_id}")
    print(f"task_id={r.task_id}")
    print("users:")
    print(f"  owner:  {r.owner_email}")
    print(f"  admin:  {r.admin_email}")
    print(f"  member: {r.member_email}")
