from enum import Enum

class Role(str, Enum):
    owner = "owner"
    admin = "admin"
    member = "member"

class ProjectRole(str, Enum):
    owner = "owner"
    editor = "editor"
    viewer = "viewer"

class TaskRole(str, Enum):
    assignee = "assignee"

class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"

class TaskPriority(str, Enum):
    normal = "normal"
    important = "important"
    urgent = "urgent"

class InviteStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
