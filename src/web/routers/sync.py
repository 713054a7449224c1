"""Sync router: manual pull/push against the remote persistence service."""
import logging

from fastapi import APIRouter

from src.web.dependencies import get_bridge, get_coordinator, get_runtime

log = logging.getLogger(__name__)
router = APIRouter()

_DISABLED = {"online": False, "error": "Remote sync is disabled (TEAMSYNC_REMOTE_URL is empty)."}


@router.post("/api/sync/pull")
def pull_remote():
    bridge = get_bridge()
    if bridge is None:
        return _DISABLED
    status = bridge.sync_once(get_coordinator())
    return {
        "online": status.online,
        "applied": status.applied,
        "remoteTimestamp": status.remote_timestamp,
        "error": status.error,
    }


@router.post("/api/sync/push")
def push_remote():
    bridge = get_bridge()
    if bridge is None:
        return _DISABLED
    result = bridge.publish(get_coordinator())
    return {
        "online": result.error is None,
        "accepted": result.accepted,
        "timestamp": result.timestamp,
        "error": result.error,
    }


@router.get("/api/sync/status")
async def sync_status():
    runtime = get_runtime()
    local = runtime.coordinator.current()
    last = runtime.periodic_sync.last_status if runtime.periodic_sync else None
    return {
        "enabled": runtime.bridge is not None,
        "instanceId": runtime.store.instance_id,
        "localTimestamp": local.last_updated,
        "externalChanges": runtime.external_changes,
        "online": last.online if last else None,
        "lastError": last.error if last else None,
    }
