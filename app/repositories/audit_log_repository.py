"""
app/repositories/audit_log_repository.py

Audit sink writes.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.orm import Session

from db.models.audit_log import AuditLog


class AuditLogRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def write(self, payload: dict[str, Any]) -> None:
        entry = AuditLog(
            user_id=_optional_uuid(payload.get("user_id")),
            organization_id=_optional_uuid(payload.get("organization_id")),
            action=payload["action"],
            module=payload["module"],
            entity_type=payload["entity_type"],
            entity_id=_optional_uuid(payload.get("entity_id")),
            details=payload.get("details"),
        )
        self._session.add(entry)
        self._session.flush()


def _optional_uuid(value: Any) -> uuid.UUID | None:
    if value is None or value == "":
        return None
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
