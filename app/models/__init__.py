from app.models.assignment import ProjectAssignment, TaskAssignment
from app.models.auth_magic_link import AuthMagicLink
from app.models.invite import Invite
from app.models.membership import Member
from app.models.project import Project
from app.models.task import Task
from app.models.user import User
from app.models.workspace import Workspace

__all__ = [
    "User",
    "Workspace",
    "Member",
    "Project",
    "Task",
    "ProjectAssignment",
    "TaskAssignment",
    "Invite",
    "AuthMagicLink",
]
