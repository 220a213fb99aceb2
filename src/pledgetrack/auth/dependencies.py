"""Caller identity forwarded by the authenticating gateway."""

from __future__ import annotations

from fastapi import Header, HTTPException


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> str:
    """Return the authenticated user's id or raise 401."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()
