import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.user import User
from app.rbac.deps import WorkspaceContext, require_perm
from app.rbac.perms import WorkspacePermission
from app.schemas.projects import (
    AssignmentEnvelope,
    AssignmentIn,
    AssignmentOut,
    ProjectCreateIn,
    ProjectEnvelope,
    ProjectListOut,
    ProjectOut,
    ProjectUpdateIn,
)
from app.schemas.tasks import TaskListOut, TaskOut
from app.services import projects as project_service
from app.services import tasks as task_service

router = APIRouter(prefix="/workspaces/{workspace_id}/projects", tags=["projects"])

@router.post("", response_model=ProjectEnvelope, status_code=201)
def create_project(
    workspace_id: uuid.UUID,
    payload: ProjectCreateIn,
    ctx: WorkspaceContext = Depends(
        require_perm(
            WorkspacePermission.manage_projects,
            WorkspacePermission.create_projects,
            message="You do not have permission to create projects",
        )
    ),
    db: Session = Depends(get_db),
) -> ProjectEnvelope:
    p = project_service.create_project(
        db,
        workspace_id,
        ctx.user.id,
        payload.title,
        description=payload.description,
        emoji=payload.emoji,
        member_ids=payload.member_ids,
    )
    db.commit()
    return ProjectEnvelope(project=ProjectOut.model_validate(p))

@router.get("", response_model=ProjectListOut)
def list_projects(
    workspace_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProjectListOut:
    rows = project_service.list_projects(db, workspace_id, user.id)
    return ProjectListOut(projects=[ProjectOut.model_validate(p) for p in rows])

@router.get("/{project_id}", response_model=ProjectEnvelope)
def get_project(
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProjectEnvelope:
    p = project_service.get_project(db, workspace_id, project_id, user.id)
    return ProjectEnvelope(project=ProjectOut.model_validate(p))

@router.patch("/{project_id}", response_model=ProjectEnvelope)
def update_project(
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    payload: ProjectUpdateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProjectEnvelope:
    p = project_service.update_project(
        db, workspace_id, project_id, user.id, payload.model_dump(exclude_unset=True)
    )
    db.commit()
    return ProjectEnvelope(project=ProjectOut.model_validate(p))

@router.delete("/{project_id}")
def delete_project(
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    deleted = project_service.delete_project(db, workspace_id, project_id, user.id)
    db.commit()
    return {"success": True, "deleted_tasks": deleted}

@router.patch("/{project_id}/assignments/{member_id}", response_model=AssignmentEnvelope)
def set_project_assignment(
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    member_id: uuid.UUID,
    payload: AssignmentIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AssignmentEnvelope:
    a = project_service.set_project_assignment(
        db, workspace_id, project_id, user.id, member_id, payload.permissions
    )
    db.commit()
    return AssignmentEnvelope(assignment=AssignmentOut.model_validate(a))

@router.get("/{project_id}/tasks", response_model=TaskListOut)
def list_project_tasks(
    workspace_id: uuid.UUID,
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskListOut:
    rows = task_service.list_tasks(db, workspace_id, project_id, user.id)
    return TaskListOut(tasks=[TaskOut.model_validate(t) for t in rows])
