"""
Workspace entity vocabulary and identifier generation.

Records inside AppState are plain dicts with camelCase keys; these constants
name the values the document uses.
"""
import uuid


class UserRole:
    ADMIN = "Admin"
    MANAGER = "Manager"
    EMPLOYEE = "Employee"


class TaskStatus:
    TODO = "To Do"
    ONGOING = "In Progress"
    BLOCKED = "Blocked"
    DONE = "Done"


class TaskPriority:
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class ProjectStatus:
    PLANNING = "Planning"
    ACTIVE = "Active"
    PAUSED = "Paused"
    DONE = "Done"


class ProjectRole:
    OWNER = "Owner"
    LEAD = "Lead"
    CONTRIBUTOR = "Contributor"


class ActionItemStatus:
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class Theme:
    LIGHT = "light"
    DARK = "dark"

    ALL = (LIGHT, DARK)


def generate_id() -> str:
    """Return a new entity identifier; never reused."""
    return uuid.uuid4().hex


class NotificationType:
    PROJECT_CREATED = "PROJECT_CREATED"
    TASK_ADDED = "TASK_ADDED"
    TASK_CLOSED = "TASK_CLOSED"
