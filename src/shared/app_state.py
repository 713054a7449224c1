"""
Application state: the single shared workspace document.

Every instance reads and writes this aggregate as one JSON object.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_LLM_CONFIG = {
    "provider": "ollama",
    "baseUrl": "http://localhost:11434",
    "model": "llama3",
}

INITIAL_ADMIN = {
    "id": "u1",
    "uid": "Admin",
    "firstName": "Mathieu",
    "lastName": "Admin",
    "functionTitle": "System Administrator",
    "role": "Admin",
    "managerId": None,
    "password": "59565956",
}

# dataclass attribute -> JSON key, for every top-level collection
COLLECTION_KEYS = {
    "users": "users",
    "teams": "teams",
    "meetings": "meetings",
    "weekly_reports": "weeklyReports",
    "notes": "notes",
    "working_groups": "workingGroups",
    "notifications": "notifications",
}

SCALAR_KEYS = {
    "current_user": "currentUser",
    "theme": "theme",
    "llm_config": "llmConfig",
    "prompts": "prompts",
    "last_updated": "lastUpdated",
}

KNOWN_KEYS = set(COLLECTION_KEYS.values()) | set(SCALAR_KEYS.values())


@dataclass
class AppState:
    """Root aggregate persisted and synchronized by the workspace core."""
    users: list[dict] = field(default_factory=list)
    teams: list[dict] = field(default_factory=list)
    meetings: list[dict] = field(default_factory=list)
    weekly_reports: list[dict] = field(default_factory=list)
    notes: list[dict] = field(default_factory=list)
    working_groups: list[dict] = field(default_factory=list)
    notifications: list[dict] = field(default_factory=list)
    current_user: Optional[dict] = None
    theme: str = "light"
    llm_config: dict = field(default_factory=lambda: dict(DEFAULT_LLM_CONFIG))
    prompts: dict = field(default_factory=dict)
    last_updated: Optional[int] = None
    # Unknown top-level keys, carried through untouched
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "AppState":
        """Build from a document that already has every known key in place."""
        kwargs = {}
        for attr, key in {**COLLECTION_KEYS, **SCALAR_KEYS}.items():
            if key in data:
                kwargs[attr] = data[key]
        kwargs["extra"] = {k: v for k, v in data.items() if k not in KNOWN_KEYS}
        return cls(**kwargs)

    def to_dict(self) -> dict:
        """Serialize to the camelCase document shape."""
        doc = dict(self.extra)
        for attr, key in {**COLLECTION_KEYS, **SCALAR_KEYS}.items():
            doc[key] = getattr(self, attr)
        return doc

    def find_user(self, user_id: Optional[str]) -> Optional[dict]:
        """Resolve a weak user reference. Dangling ids resolve to None."""
        if not user_id:
            return None
        for user in self.users:
            if user.get("id") == user_id:
                return user
        return None


def bootstrap_state() -> AppState:
    """Initial state when nothing is persisted: one admin, empty collections."""
    return AppState(users=[dict(INITIAL_ADMIN)])
