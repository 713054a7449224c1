"""
Pure state transitions for the workspace intents.

Each function takes the current AppState (plus arguments) and returns a new
AppState; none modifies its input. Pass them to StateCoordinator.update,
e.g. ``coordinator.update(lambda s: add_user(s, user))``.
"""
import dataclasses

from src.shared.app_state import AppState
from src.workspace.models import Theme


def _upsert(records: list[dict], record: dict) -> list[dict]:
    if any(r.get("id") == record["id"] for r in records):
        return [record if r.get("id") == record["id"] else r for r in records]
    return [*records, record]


def _without(records: list[dict], record_id: str) -> list[dict]:
    return [r for r in records if r.get("id") != record_id]


# ── Users ──

def add_user(state: AppState, user: dict) -> AppState:
    """Append a user. Ids are unique; an id already in use is a ValueError."""
    if state.find_user(user.get("id")) is not None:
        raise ValueError(f"User id '{user['id']}' already exists")
    return dataclasses.replace(state, users=[*state.users, user])


def update_user(state: AppState, user_id: str, changes: dict) -> AppState:
    """Merge changes into one user record. Unknown ids leave state as is."""
    users = [{**u, **changes, "id": user_id} if u.get("id") == user_id else u
             for u in state.users]
    current_user = state.current_user
    if current_user and current_user.get("id") == user_id:
        current_user = {**current_user, **changes, "id": user_id}
    return dataclasses.replace(state, users=users, current_user=current_user)


def remove_user(state: AppState, user_id: str) -> AppState:
    """Drop the user record only. References to it elsewhere are left dangling."""
    return dataclasses.replace(state, users=_without(state.users, user_id))


def set_user_password(state: AppState, user_id: str, password: str) -> AppState:
    return update_user(state, user_id, {"password": password})


def set_current_user(state: AppState, user: dict | None) -> AppState:
    return dataclasses.replace(state, current_user=user)


# ── Teams, meetings, reports, notes ──

def upsert_team(state: AppState, team: dict) -> AppState:
    return dataclasses.replace(state, teams=_upsert(state.teams, team))


def remove_team(state: AppState, team_id: str) -> AppState:
    return dataclasses.replace(state, teams=_without(state.teams, team_id))


def add_meeting(state: AppState, meeting: dict) -> AppState:
    return dataclasses.replace(state, meetings=[*state.meetings, meeting])


def upsert_weekly_report(state: AppState, report: dict) -> AppState:
    return dataclasses.replace(
        state, weekly_reports=_upsert(state.weekly_reports, report)
    )


def upsert_note(state: AppState, note: dict) -> AppState:
    return dataclasses.replace(state, notes=_upsert(state.notes, note))


def remove_note(state: AppState, note_id: str) -> AppState:
    return dataclasses.replace(state, notes=_without(state.notes, note_id))


def mark_notifications_read(state: AppState, notification_id: str | None = None) -> AppState:
    """Mark one notification read, or all of them when no id is given."""
    return dataclasses.replace(
        state,
        notifications=[
            {**n, "read": True}
            if notification_id is None or n.get("id") == notification_id else n
            for n in state.notifications
        ],
    )


# ── Preferences ──

def set_theme(state: AppState, theme: str) -> AppState:
    if theme not in Theme.ALL:
        raise ValueError(f"Unknown theme '{theme}'")
    return dataclasses.replace(state, theme=theme)


def toggle_theme(state: AppState) -> AppState:
    return set_theme(state, Theme.DARK if state.theme == Theme.LIGHT else Theme.LIGHT)


def set_llm_config(state: AppState, config: dict) -> AppState:
    return dataclasses.replace(state, llm_config=dict(config))


def set_prompts(state: AppState, prompts: dict) -> AppState:
    return dataclasses.replace(state, prompts=dict(prompts))
