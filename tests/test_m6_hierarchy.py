"""
M6 Acceptance Tests: Hierarchy, visibility and state transitions.
"""
import copy

import pytest

from src.shared.app_state import AppState, bootstrap_state
from src.workspace import mutators
from src.workspace.hierarchy import build_reports_index, subordinate_ids, visible_state


def _user(user_id, manager_id=None, role="Employee"):
    return {"id": user_id, "uid": user_id, "firstName": user_id.title(), "lastName": "X",
            "functionTitle": "", "role": role, "managerId": manager_id, "password": "p"}


@pytest.fixture
def org():
    """boss -> (lead -> (dev1, dev2), solo); outsider reports to nobody."""
    return [
        _user("boss", role="Manager"),
        _user("lead", "boss", role="Manager"),
        _user("dev1", "lead"),
        _user("dev2", "lead"),
        _user("solo", "boss"),
        _user("outsider"),
    ]


# ── Hierarchy ──


def test_reports_index(org):
    index = build_reports_index(org)
    assert index["boss"] == ["lead", "solo"]
    assert index["lead"] == ["dev1", "dev2"]
    assert "outsider" not in index


def test_subordinates_are_transitive(org):
    assert subordinate_ids("boss", org) == ["lead", "solo", "dev1", "dev2"]
    assert subordinate_ids("lead", org) == ["dev1", "dev2"]
    assert subordinate_ids("dev1", org) == []


def test_unknown_root_has_no_subordinates(org):
    assert subordinate_ids("ghost", org) == []


def test_dangling_manager_reference_is_ignored():
    users = [_user("a", "deleted-manager")]
    assert subordinate_ids("a", users) == []
    assert subordinate_ids("deleted-manager", users) == ["a"]


def test_manager_cycle_terminates(caplog):
    users = [_user("a", "c"), _user("b", "a"), _user("c", "b")]

    result = subordinate_ids("a", users)

    assert result == ["b", "c"]
    assert "a" not in result
    assert "cycle" in caplog.text


def test_self_managed_user_terminates():
    users = [_user("a", "a")]
    assert subordinate_ids("a", users) == []


# ── Visibility ──


def _workspace(org):
    return AppState(
        users=org,
        teams=[
            {"id": "t-lead", "name": "Lead team", "managerId": "lead", "projects": []},
            {"id": "t-other", "name": "Other", "managerId": "outsider", "projects": [
                {"id": "p1", "name": "Shared", "managerId": "outsider",
                 "members": [{"userId": "dev1", "role": "Contributor"}], "tasks": []},
                {"id": "p2", "name": "Private", "managerId": "outsider",
                 "members": [], "tasks": []},
            ]},
            {"id": "t-hidden", "name": "Hidden", "managerId": "outsider", "projects": []},
        ],
        meetings=[
            {"id": "m1", "teamId": "t-lead", "attendees": ["dev2"], "actionItems": []},
            {"id": "m2", "teamId": "t-hidden", "attendees": ["outsider"], "actionItems": [
                {"id": "a1", "ownerId": "dev1", "status": "Open"}]},
            {"id": "m3", "teamId": "t-hidden", "attendees": ["outsider"], "actionItems": []},
        ],
        weekly_reports=[{"id": "r1", "userId": "dev1"}, {"id": "r2", "userId": "outsider"}],
        notes=[{"id": "n1", "userId": "lead"}, {"id": "n2", "userId": "solo"}],
        working_groups=[
            {"id": "g1", "memberIds": ["lead"]},
            {"id": "g2", "memberIds": []},
            {"id": "g3", "memberIds": [], "projectId": "p1"},
        ],
        notifications=[
            {"id": "n1", "type": "PROJECT_CREATED", "data": {"teamId": "t-hidden"}},
            {"id": "n2", "type": "PROJECT_CREATED", "data": {"teamId": "t-lead"}},
            {"id": "n3", "type": "TASK_ADDED", "data": {"taskId": "k1"}},
            {"id": "n4", "type": "TASK_CLOSED"},
            {"id": "n5", "type": "SOMETHING_ELSE", "data": {"x": 1}},
        ],
    )


def test_admin_sees_everything(org):
    state = _workspace(org)
    state.current_user = _user("root", role="Admin")
    assert visible_state(state) is state


def test_logged_out_view_is_unfiltered(org):
    state = _workspace(org)
    assert visible_state(state) is state


def test_manager_sees_own_subtree(org):
    state = _workspace(org)
    state.current_user = org[1]

    view = visible_state(state)

    assert [u["id"] for u in view.users] == ["lead", "dev1", "dev2"]
    assert [r["id"] for r in view.weekly_reports] == ["r1"]
    assert [n["id"] for n in view.notes] == ["n1"]
    assert [t["id"] for t in view.teams] == ["t-lead", "t-other"]
    assert [m["id"] for m in view.meetings] == ["m1", "m2"]
    assert [g["id"] for g in view.working_groups] == ["g1"]
    assert [n["id"] for n in view.notifications] == ["n1", "n2", "n3"]


def test_project_membership_makes_team_visible(org):
    state = _workspace(org)
    state.current_user = org[2]

    view = visible_state(state)

    assert [u["id"] for u in view.users] == ["dev1"]
    assert "t-other" in [t["id"] for t in view.teams]
    assert "t-hidden" not in [t["id"] for t in view.teams]


def test_unmanaged_team_is_trimmed_to_visible_projects(org):
    state = _workspace(org)
    state.current_user = org[2]

    view = visible_state(state)

    other = next(t for t in view.teams if t["id"] == "t-other")
    assert [p["id"] for p in other["projects"]] == ["p1"]
    # The stored team keeps every project
    assert len(state.teams[1]["projects"]) == 2


def test_subordinate_project_membership_counts(org):
    state = _workspace(org)
    state.current_user = org[1]

    view = visible_state(state)

    other = next(t for t in view.teams if t["id"] == "t-other")
    assert [p["id"] for p in other["projects"]] == ["p1"]


def test_managed_team_stays_whole(org):
    state = _workspace(org)
    state.teams[0]["projects"] = [{"id": "p9", "managerId": "outsider", "members": []}]
    state.current_user = org[1]

    view = visible_state(state)

    assert view.teams[0]["projects"] == state.teams[0]["projects"]


def test_project_linked_working_group_visible(org):
    state = _workspace(org)
    state.current_user = org[2]

    view = visible_state(state)

    assert [g["id"] for g in view.working_groups] == ["g3"]


def test_employee_notifications_filtered(org):
    state = _workspace(org)
    state.current_user = org[2]

    view = visible_state(state)

    assert [n["id"] for n in view.notifications] == ["n3"]


def test_team_manager_sees_own_project_notification(org):
    state = _workspace(org)
    state.current_user = {**org[1], "role": "Employee"}

    view = visible_state(state)

    assert [n["id"] for n in view.notifications] == ["n2", "n3"]


def test_user_without_id_is_skipped(org):
    state = _workspace(org)
    state.users = [*org, {"uid": "ghost", "managerId": "lead"}]
    state.current_user = org[1]

    assert subordinate_ids("lead", state.users) == ["dev1", "dev2"]
    assert [u["id"] for u in visible_state(state).users] == ["lead", "dev1", "dev2"]


def test_visibility_does_not_modify_state(org):
    state = _workspace(org)
    state.current_user = org[3]
    snapshot = copy.deepcopy(state)

    visible_state(state)

    assert state == snapshot


# ── Mutators ──


def test_mutators_do_not_modify_input():
    state = bootstrap_state()
    snapshot = copy.deepcopy(state)

    mutators.add_user(state, _user("u2", "u1"))
    mutators.update_user(state, "u1", {"location": "Lyon"})
    mutators.upsert_team(state, {"id": "t1", "name": "A", "managerId": "u1", "projects": []})
    mutators.set_theme(state, "dark")

    assert state == snapshot


def test_add_user_rejects_existing_id():
    state = bootstrap_state()
    with pytest.raises(ValueError):
        mutators.add_user(state, _user("u1"))
    assert [u["id"] for u in state.users] == ["u1"]


def test_update_unknown_user_leaves_users_as_is():
    state = bootstrap_state()
    assert mutators.update_user(state, "ghost", {"uid": "x"}).users == state.users


def test_update_user_keeps_id():
    state = mutators.update_user(bootstrap_state(), "u1", {"id": "hijack", "uid": "root"})
    assert state.find_user("u1")["uid"] == "root"
    assert state.find_user("hijack") is None


def test_remove_user_leaves_references_dangling(org):
    state = AppState(users=org)
    after = mutators.remove_user(state, "lead")

    assert after.find_user("lead") is None
    assert after.find_user("dev1")["managerId"] == "lead"


def test_set_user_password():
    state = mutators.set_user_password(bootstrap_state(), "u1", "new-secret")
    assert state.find_user("u1")["password"] == "new-secret"


def test_upsert_replaces_by_id():
    team = {"id": "t1", "name": "A", "managerId": "u1", "projects": []}
    state = mutators.upsert_team(bootstrap_state(), team)
    state = mutators.upsert_team(state, {**team, "name": "B"})

    assert [t["name"] for t in state.teams] == ["B"]
    assert mutators.remove_team(state, "t1").teams == []


def test_notes_and_reports():
    state = mutators.upsert_note(bootstrap_state(), {"id": "n1", "userId": "u1", "blocks": []})
    state = mutators.upsert_weekly_report(state, {"id": "r1", "userId": "u1", "weekOf": "2026-10-12"})
    state = mutators.add_meeting(state, {"id": "m1", "teamId": "t1", "attendees": []})

    assert len(state.notes) == 1
    assert len(state.weekly_reports) == 1
    assert len(state.meetings) == 1
    assert mutators.remove_note(state, "n1").notes == []


def test_mark_notifications_read():
    state = AppState(notifications=[{"id": "x", "read": False}, {"id": "y", "read": False}])

    one = mutators.mark_notifications_read(state, "x")
    assert [n["read"] for n in one.notifications] == [True, False]

    everything = mutators.mark_notifications_read(state)
    assert all(n["read"] for n in everything.notifications)


def test_theme_changes():
    state = bootstrap_state()
    assert mutators.toggle_theme(state).theme == "dark"
    assert mutators.toggle_theme(mutators.set_theme(state, "dark")).theme == "light"
    with pytest.raises(ValueError):
        mutators.set_theme(state, "sepia")


def test_preferences():
    state = mutators.set_llm_config(bootstrap_state(), {"provider": "ollama", "model": "llama3"})
    state = mutators.set_prompts(state, {"weeklySummary": "Short"})
    state = mutators.set_current_user(state, state.find_user("u1"))

    assert state.llm_config["model"] == "llama3"
    assert state.prompts == {"weeklySummary": "Short"}
    assert state.current_user["id"] == "u1"
