"""
Schema migration for persisted workspace documents.

Brings a document written by any earlier version up to the current shape.
Pure: no I/O, the input is never modified.
"""
import copy
import logging

from src.shared.app_state import (
    COLLECTION_KEYS,
    DEFAULT_LLM_CONFIG,
    INITIAL_ADMIN,
    AppState,
)
from src.shared.errors import CorruptPersistedData
from src.workspace.models import Theme, UserRole

log = logging.getLogger(__name__)

# uids the administrative account has carried over time
LEGACY_ADMIN_UIDS = ("Admin", "ADM001")
DEFAULT_USER_PASSWORD = "1234"


def _normalize_user(user):
    if not isinstance(user, dict):
        return user
    if user.get("uid") in LEGACY_ADMIN_UIDS:
        return {
            **user,
            "uid": INITIAL_ADMIN["uid"],
            "firstName": INITIAL_ADMIN["firstName"],
            "password": INITIAL_ADMIN["password"],
            "role": UserRole.ADMIN,
        }
    if not user.get("password"):
        return {**user, "password": DEFAULT_USER_PASSWORD}
    return user


def migrate(raw: dict) -> AppState:
    """
    Normalize a raw persisted document to the current AppState shape.

    Missing collections become empty lists, missing llmConfig/prompts/theme
    get defaults, and legacy user records are patched. Nothing present in
    the input is dropped; unknown keys end up in AppState.extra.

    Raises:
        CorruptPersistedData: If raw is not a JSON object.
    """
    if not isinstance(raw, dict):
        raise CorruptPersistedData(
            f"Persisted document must be an object, got {type(raw).__name__}"
        )

    doc = copy.deepcopy(raw)

    added = []
    for key in COLLECTION_KEYS.values():
        if doc.get(key) is None:
            doc[key] = []
            added.append(key)

    if not doc.get("llmConfig"):
        doc["llmConfig"] = dict(DEFAULT_LLM_CONFIG)
        added.append("llmConfig")
    if doc.get("prompts") is None:
        doc["prompts"] = {}
        added.append("prompts")
    if doc.get("theme") is None:
        doc["theme"] = Theme.LIGHT
    doc.setdefault("currentUser", None)
    doc.setdefault("lastUpdated", None)

    if isinstance(doc["users"], list):
        doc["users"] = [_normalize_user(u) for u in doc["users"]]

    if added:
        log.debug("Migrated document: initialized %s", ", ".join(added))

    return AppState.from_dict(doc)
