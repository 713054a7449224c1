"""
Managerial hierarchy and per-user visibility.

managerId is a weak reference, so the hierarchy is rebuilt on demand from
the flat users list. Assignments may dangle or form cycles; traversal
guards against both.
"""
import dataclasses
import logging
from collections import defaultdict, deque

from src.shared.app_state import AppState
from src.workspace.models import NotificationType, UserRole

log = logging.getLogger(__name__)


def build_reports_index(users: list[dict]) -> dict[str, list[str]]:
    """Map managerId -> ids of direct reports, in users order."""
    index: dict[str, list[str]] = defaultdict(list)
    for user in users:
        manager_id = user.get("managerId")
        user_id = user.get("id")
        if manager_id and user_id:
            index[manager_id].append(user_id)
    return dict(index)


def subordinate_ids(root_id: str, users: list[dict]) -> list[str]:
    """
    All direct and indirect reports of root_id, breadth-first.

    The root is never part of the result, even when a cycle leads back to it.
    """
    index = build_reports_index(users)
    seen = {root_id}
    result = []
    queue = deque(index.get(root_id, []))
    while queue:
        user_id = queue.popleft()
        if user_id in seen:
            log.warning("Manager cycle detected at user %s; branch ignored", user_id)
            continue
        seen.add(user_id)
        result.append(user_id)
        queue.extend(index.get(user_id, []))
    return result


def _project_visible(project: dict, accessible: set[str]) -> bool:
    if project.get("managerId") in accessible:
        return True
    return any(m.get("userId") in accessible for m in project.get("members", []))


def _visible_teams(teams: list[dict], accessible: set[str]) -> list[dict]:
    """Managed teams stay whole; other teams keep only their visible projects."""
    result = []
    for team in teams:
        if team.get("managerId") in accessible:
            result.append(team)
            continue
        projects = [p for p in team.get("projects", []) if _project_visible(p, accessible)]
        if projects:
            result.append({**team, "projects": projects})
    return result


def _involved_project_ids(teams: list[dict], my_id: str) -> set[str]:
    """Projects the user manages, belongs to, or whose team the user manages."""
    ids = set()
    for team in teams:
        manages_team = team.get("managerId") == my_id
        for project in team.get("projects", []):
            if (
                manages_team
                or project.get("managerId") == my_id
                or any(m.get("userId") == my_id for m in project.get("members", []))
            ):
                ids.add(project.get("id"))
    return ids


def _meeting_visible(meeting: dict, accessible: set[str]) -> bool:
    if any(a in accessible for a in meeting.get("attendees", [])):
        return True
    return any(
        item.get("ownerId") in accessible for item in meeting.get("actionItems", [])
    )


def _notification_visible(notification: dict, state: AppState, my_id: str) -> bool:
    data = notification.get("data")
    if not data:
        return False
    kind = notification.get("type")
    if kind == NotificationType.PROJECT_CREATED:
        team = next((t for t in state.teams if t.get("id") == data.get("teamId")), None)
        if team is None:
            return False
        return (
            team.get("managerId") == my_id
            or state.current_user.get("role") == UserRole.MANAGER
        )
    return kind in (NotificationType.TASK_ADDED, NotificationType.TASK_CLOSED)


def visible_state(state: AppState) -> AppState:
    """
    Restrict state to what the current user may see.

    Admins (and the logged-out view) see everything. Others see themselves
    and their transitive reports with their reports and notes, teams they
    manage, the projects an accessible user manages or works on, meetings
    with an accessible attendee or action owner, working groups they belong
    to or that hang off one of their projects, and the notifications
    addressed to their role.
    """
    me = state.current_user
    if not me or me.get("role") == UserRole.ADMIN:
        return state

    my_id = me.get("id")
    accessible = {my_id, *subordinate_ids(my_id, state.users)}
    my_projects = _involved_project_ids(state.teams, my_id)

    return dataclasses.replace(
        state,
        users=[u for u in state.users if u.get("id") in accessible],
        weekly_reports=[r for r in state.weekly_reports if r.get("userId") in accessible],
        notes=[n for n in state.notes if n.get("userId") in accessible],
        teams=_visible_teams(state.teams, accessible),
        meetings=[m for m in state.meetings if _meeting_visible(m, accessible)],
        working_groups=[
            g for g in state.working_groups
            if my_id in g.get("memberIds", []) or g.get("projectId") in my_projects
        ],
        notifications=[
            n for n in state.notifications if _notification_visible(n, state, my_id)
        ],
    )
