"""Dependency providers for v1 API."""

from __future__ import annotations

from fastapi import Depends, Request

from careeros.core.context import CareerSession

from ...errors import APIError
from ...store import SessionStore


def get_store(request: Request) -> SessionStore:
    """Access the shared session store from app state."""
    return request.app.state.session_store


async def get_session(session_id: str, store: SessionStore = Depends(get_store)) -> CareerSession:
    return await store.get_session(session_id)


async def get_signed_in_session(session: CareerSession = Depends(get_session)) -> CareerSession:
    """Chat and workspace routes are only open to a signed-in profile."""
    if not session.is_authenticated:
        raise APIError(401, "UNAUTHENTICATED", "Sign in before using this session")
    return session
