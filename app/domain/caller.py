"""
app/domain/caller.py

Resolved identity of the user invoking a parse or import.
"""

from __future__ import annotations

from dataclasses import dataclass, field

IMPORT_ALLOWED_ROLES = frozenset({"admin", "environmental_manager", "site_manager", "executive"})


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str
    organization_id: str | None
    roles: frozenset[str] = field(default_factory=frozenset)

    def can_import(self) -> bool:
        return bool(self.roles & IMPORT_ALLOWED_ROLES)
