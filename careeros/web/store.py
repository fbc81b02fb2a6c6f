"""In-memory registry of live chat sessions for the web API."""

from __future__ import annotations

import asyncio
import logging
import os
import re
import uuid
from typing import Dict, FrozenSet, Optional

from careeros.core.config import CareerConfig
from careeros.core.context import CareerSession
from careeros.core.session import ProfileStore
from careeros.providers import create_provider
from careeros.providers.base import ChatProvider

from .errors import APIError

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_ALLOWED_UPLOAD_TYPES = frozenset({"image/png", "image/jpeg", "image/webp", "application/pdf"})

_PROFILE_KEY_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _env_upload_types() -> FrozenSet[str]:
    raw = os.getenv("CAREEROS_ALLOWED_UPLOAD_TYPES", "")
    types = frozenset(t.strip().lower() for t in raw.split(",") if t.strip())
    return types or DEFAULT_ALLOWED_UPLOAD_TYPES


class SessionStore:
    """Creates, looks up and tears down CareerSessions.

    Each session persists its profile under ``profile_dir/<profile_key>``; a
    client that keeps its profile key gets its profile back in a new session,
    signed out until it presents an identity token again.
    """

    def __init__(
        self,
        config: CareerConfig,
        provider: Optional[ChatProvider] = None,
        max_upload_bytes: Optional[int] = None,
        allowed_upload_types: Optional[FrozenSet[str]] = None,
    ) -> None:
        self.config = config
        self._provider = provider
        self._sessions: Dict[str, CareerSession] = {}
        self._lock = asyncio.Lock()
        self.max_upload_bytes = max_upload_bytes or int(
            os.getenv("CAREEROS_MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))
        )
        self.allowed_upload_types = allowed_upload_types or _env_upload_types()

    @property
    def provider(self) -> ChatProvider:
        if self._provider is None:
            try:
                self._provider = create_provider(
                    self.config.provider,
                    self.config.api_key,
                    self.config.model,
                    search_grounding=self.config.search_grounding,
                    image_model=self.config.image_model,
                )
            except ValueError as e:
                raise APIError(503, "PROVIDER_UNAVAILABLE", str(e)) from e
        return self._provider

    def runtime_metadata(self) -> Dict[str, str]:
        return {"provider": self.config.provider, "model": self.config.model}

    async def create_session(self, profile_key: Optional[str] = None) -> CareerSession:
        if profile_key is not None and not _PROFILE_KEY_RE.match(profile_key):
            raise APIError(400, "BAD_REQUEST", "profile_key must be 1-64 letters, digits, '-' or '_'")
        profile_key = profile_key or uuid.uuid4().hex
        store = ProfileStore(self.config.profile_path / profile_key)
        session = CareerSession.create(self.config, self.provider, profile_store=store, restore_sign_in=False)
        async with self._lock:
            self._sessions[session.session_id] = session
        logger.info("Created session %s", session.session_id)
        return session

    async def get_session(self, session_id: str) -> CareerSession:
        async with self._lock:
            session = self._sessions.get(session_id)
        if not session:
            raise APIError(404, "SESSION_NOT_FOUND", f"Session '{session_id}' not found")
        return session

    async def remove_session(self, session_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            await session.close()

    async def stop(self) -> None:
        """Close every live session (voice resources included)."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()
