"""Users router: directory management, hierarchy and the local session."""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.shared.errors import AppErrors
from src.web.dependencies import get_coordinator
from src.workspace.hierarchy import subordinate_ids
from src.workspace.models import UserRole, generate_id
from src.workspace.mutators import (
    add_user,
    remove_user,
    set_current_user,
    update_user,
)

log = logging.getLogger(__name__)
router = APIRouter()


def _public(user: dict) -> dict:
    return {k: v for k, v in user.items() if k != "password"}


@router.post("/api/users")
async def create_user(request: Request):
    body = await request.json()
    uid = (body.get("uid") or "").strip()
    if not uid:
        return JSONResponse({"error": "uid is required."}, status_code=400)
    user = {
        "firstName": "",
        "lastName": "",
        "functionTitle": "",
        "role": UserRole.EMPLOYEE,
        "managerId": None,
        **body,
        "id": body.get("id") or generate_id(),
        "uid": uid,
    }
    conflict = False

    def mutate(state):
        nonlocal conflict
        conflict = state.find_user(user["id"]) is not None
        return state if conflict else add_user(state, user)

    get_coordinator().update(mutate)
    if conflict:
        return JSONResponse({"error": AppErrors.DUPLICATE_USER_ID}, status_code=409)
    log.info("User %s added", user["id"])
    return _public(user)


@router.put("/api/users/{user_id}")
async def edit_user(user_id: str, request: Request):
    changes = await request.json()
    changes.pop("id", None)
    found = False

    def mutate(state):
        nonlocal found
        found = state.find_user(user_id) is not None
        return update_user(state, user_id, changes) if found else state

    state = get_coordinator().update(mutate)
    if not found:
        return JSONResponse({"error": AppErrors.UNKNOWN_USER}, status_code=404)
    return _public(state.find_user(user_id))


@router.delete("/api/users/{user_id}")
async def delete_user(user_id: str):
    found = False

    def mutate(state):
        nonlocal found
        found = state.find_user(user_id) is not None
        return remove_user(state, user_id) if found else state

    get_coordinator().update(mutate)
    if not found:
        return JSONResponse({"error": AppErrors.UNKNOWN_USER}, status_code=404)
    return {"status": "deleted", "id": user_id}


@router.get("/api/users/{user_id}/subordinates")
async def list_subordinates(user_id: str):
    state = get_coordinator().current()
    if state.find_user(user_id) is None:
        return JSONResponse({"error": AppErrors.UNKNOWN_USER}, status_code=404)
    ids = subordinate_ids(user_id, state.users)
    return {"id": user_id, "subordinates": ids}


@router.post("/api/session/login")
async def login(request: Request):
    body = await request.json()
    uid = (body.get("uid") or "").strip()
    password = body.get("password") or ""
    state = get_coordinator().current()
    user = next((u for u in state.users if u.get("uid") == uid), None)
    if user is None or user.get("password") != password:
        return JSONResponse({"error": "Invalid credentials."}, status_code=401)
    get_coordinator().update(lambda s: set_current_user(s, s.find_user(user["id"])))
    return {"currentUser": _public(user)}


@router.post("/api/session/logout")
async def logout():
    get_coordinator().update(lambda s: set_current_user(s, None))
    return {"currentUser": None}
