"""Workspace document router: read, export, import, reset, theme."""
import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from src.shared.errors import ImportValidationFailure
from src.web.dependencies import get_coordinator
from src.workspace.hierarchy import visible_state
from src.workspace.models import Theme
from src.workspace.mutators import set_theme, toggle_theme

log = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/state")
async def read_state():
    state = get_coordinator().current()
    return visible_state(state).to_dict()


@router.get("/api/state/export")
async def export_state():
    body = get_coordinator().store.export_json()
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="teamsync_backup.json"'},
    )


@router.post("/api/state/import")
async def import_state(request: Request):
    raw = await request.body()
    try:
        document = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ImportValidationFailure(f"Backup is not valid JSON: {e}") from e
    state = get_coordinator().import_backup(document)
    return {
        "status": "ok",
        "users": len(state.users),
        "teams": len(state.teams),
        "lastUpdated": state.last_updated,
    }


@router.post("/api/state/clear")
async def clear_state():
    state = get_coordinator().reset()
    log.warning("Workspace reset to initial state")
    return state.to_dict()


@router.post("/api/state/theme")
async def change_theme(request: Request):
    body = await request.json()
    theme = body.get("theme")
    coordinator = get_coordinator()
    if theme is None:
        state = coordinator.update(toggle_theme)
    elif theme in Theme.ALL:
        state = coordinator.update(lambda s: set_theme(s, theme))
    else:
        return JSONResponse({"error": f"theme must be one of {', '.join(Theme.ALL)}."}, status_code=400)
    return {"theme": state.theme}
