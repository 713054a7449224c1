"""
Structural validation for externally supplied workspace documents (backups).

Runs before anything touches the live store.
"""
import json

from src.shared.app_state import COLLECTION_KEYS, KNOWN_KEYS
from src.shared.errors import ImportValidationFailure

REQUIRED_COLLECTIONS = ("users", "teams")

_OBJECT_KEYS = ("llmConfig", "prompts")


def validate_import(raw) -> dict:
    """
    Check that raw looks like a workspace document.

    Accepts a dict, or a str/bytes holding JSON. Returns the parsed dict.

    Raises:
        ImportValidationFailure: With every problem found.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ImportValidationFailure(f"Backup is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ImportValidationFailure(
            "Backup must be a JSON object",
            problems=[f"top level is {type(raw).__name__}"],
        )

    problems = []

    for key in REQUIRED_COLLECTIONS:
        if key not in raw:
            problems.append(f"missing '{key}'")

    for key in COLLECTION_KEYS.values():
        if key in raw and raw[key] is not None and not isinstance(raw[key], list):
            problems.append(f"'{key}' must be a list")

    for key in _OBJECT_KEYS:
        if key in raw and raw[key] is not None and not isinstance(raw[key], dict):
            problems.append(f"'{key}' must be an object")

    if raw.get("currentUser") is not None and not isinstance(raw["currentUser"], dict):
        problems.append("'currentUser' must be an object or null")

    unknown = sorted(k for k in raw if k not in KNOWN_KEYS)
    if unknown:
        problems.append(f"unknown keys: {', '.join(unknown)}")

    if isinstance(raw.get("users"), list):
        for i, user in enumerate(raw["users"]):
            if not isinstance(user, dict) or not user.get("id"):
                problems.append(f"users[{i}] has no id")

    if problems:
        raise ImportValidationFailure("Backup failed validation", problems=problems)

    return raw
