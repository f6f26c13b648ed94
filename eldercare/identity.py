# eldercare/identity.py
from __future__ import annotations

from typing import Optional

from fastapi import Header

from .engine.persistence import CurrentUser
from .errors import MissingIdentityError


def current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Optional[CurrentUser]:
    """Identity is resolved upstream; this service only reads the forwarded headers."""
    if not x_user_id or not x_user_id.strip():
        return None
    return CurrentUser(id=x_user_id.strip(), role=(x_user_role or "user").strip())


def require_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> CurrentUser:
    user = current_user(x_user_id, x_user_role)
    if user is None:
        raise MissingIdentityError("Sign in to work on assessments")
    return user
