"""
app/api/dependencies.py

Shared FastAPI dependencies for caller identity resolution.
"""

from __future__ import annotations

import uuid

from fastapi import Header, HTTPException, status

from app.domain.caller import CallerIdentity


def _parse_uuid_header(value: str, header_name: str) -> str:
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{header_name} must be a UUID.",
        ) from exc


def get_caller_identity(
    x_user_id: str | None = Header(default=None),
    x_organization_id: str | None = Header(default=None),
    x_user_roles: str | None = Header(default=None),
) -> CallerIdentity:
    """
    Build the caller identity from headers set by the upstream auth gateway.
    """

    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    organization_id = (
        _parse_uuid_header(x_organization_id, "X-Organization-Id")
        if x_organization_id and x_organization_id.strip()
        else None
    )
    roles = frozenset(
        role.strip().lower() for role in (x_user_roles or "").split(",") if role.strip()
    )
    return CallerIdentity(
        user_id=_parse_uuid_header(x_user_id, "X-User-Id"),
        organization_id=organization_id,
        roles=roles,
    )
