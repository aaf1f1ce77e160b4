# backend/reliefdb/security.py
"""
Actor resolution.

Authentication and role checks are performed by the gateway in front of this
service; it forwards the authenticated user id in `X-User-Id`. The id is passed
through to services untouched and only recorded for attribution.
"""

from typing import Optional

from fastapi import Header, HTTPException, status


def get_actor_user_id(x_user_id: Optional[int] = Header(None, alias="X-User-Id")) -> Optional[int]:
    return x_user_id


def require_actor_user_id(x_user_id: Optional[int] = Header(None, alias="X-User-Id")) -> int:
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required for this operation.",
        )
    return x_user_id
