"""Request authentication dependencies."""

from __future__ import annotations

import os

from fastapi import Depends, Header, HTTPException, Request
from sqlmodel import Session

from teachassist.db import get_session
from teachassist.models import User, UserRole


_PUBLIC_PATHS = {
    "/",
    "/health",
    "/health/deep",
    "/docs",
    "/openapi.json",
    "/redoc",
}


def require_api_key(request: Request, x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    if request.method == "OPTIONS":
        return

    if request.url.path in _PUBLIC_PATHS:
        return

    expected = os.getenv("BACKEND_API_KEY", "").strip()
    if not expected:
        return

    if x_api_key != expected:
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_current_user(
    x_user_id: int | None = Header(default=None, alias="X-User-Id"),
    session: Session = Depends(get_session),
) -> User:
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    user = session.get(User, x_user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def require_role(user: User, *roles: UserRole, detail: str) -> None:
    if user.role not in roles:
        raise HTTPException(status_code=403, detail=detail)
