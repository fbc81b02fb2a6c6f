"""Per-session context: everything one signed-in user's session owns."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from careeros.domain.models import PPTContent, UserProfile
from careeros.domain.slides import SLIDE_ASPECT_RATIO, render_slide_images
from careeros.providers.base import ChatProvider
from careeros.tools.registry import ToolRegistry
from careeros.voice.session import AudioBackend, LiveConnector, VoiceSession

from .config import CareerConfig
from .continuation import AutoContinuationPolicy
from .conversation import ConversationStore
from .dispatcher import ToolDispatcher
from .observability import ChatObserver
from .orchestrator import ChatOrchestrator
from .session import ProfileStore, SessionLifecycle
from .state import AppView, ApplicationState
from .transport import TurnTransport

logger = logging.getLogger(__name__)


class CareerSession:
    """Explicit owner of state, conversation, retry policy and voice resources.

    Created when a session starts; ``close`` tears down the voice session and
    ``sign_out`` additionally discards the persisted profile.
    """

    def __init__(
        self,
        config: CareerConfig,
        provider: ChatProvider,
        profile_store: ProfileStore,
        session_id: Optional[str] = None,
        policy: Optional[AutoContinuationPolicy] = None,
        registry: Optional[ToolRegistry] = None,
        verbose: bool = False,
        restore_sign_in: bool = True,
    ) -> None:
        self.session_id = session_id or f"sess_{uuid.uuid4().hex[:10]}"
        self.created_at = datetime.now(timezone.utc)
        self.config = config
        self.provider = provider
        self.observer = ChatObserver(session_id=self.session_id, verbose=verbose)
        self.state = ApplicationState()
        self.conversation = ConversationStore()
        self.policy = policy or AutoContinuationPolicy()
        self.lifecycle = SessionLifecycle(profile_store, restore_sign_in=restore_sign_in)
        registry = registry or ToolRegistry()
        self.dispatcher = ToolDispatcher(
            self.state,
            self.conversation,
            self.policy,
            registry=registry,
            observer=self.observer,
            profile_sync=self.lifecycle.merge_profile_sync,
        )
        self.transport = TurnTransport(provider, config, registry=registry, observer=self.observer)
        self.orchestrator = ChatOrchestrator(
            self.transport, self.dispatcher, observer=self.observer, max_chain_turns=config.max_chain_turns
        )
        self.voice: Optional[VoiceSession] = None

    @classmethod
    def create(
        cls,
        config: CareerConfig,
        provider: ChatProvider,
        profile_store: Optional[ProfileStore] = None,
        **kwargs: Any,
    ) -> "CareerSession":
        return cls(config, provider, profile_store or ProfileStore(config.profile_path), **kwargs)

    @property
    def profile(self) -> UserProfile:
        return self.lifecycle.profile

    @property
    def is_authenticated(self) -> bool:
        return self.lifecycle.is_authenticated

    def sign_in(self, credential: str) -> bool:
        """Sign in from an identity token; an incomplete profile lands on the profile editor."""
        if not self.lifecycle.sign_in(credential):
            return False
        if not self.lifecycle.is_complete():
            self.orchestrator.navigate(AppView.PROFILE)
        return True

    def save_profile(self, profile: UserProfile) -> bool:
        complete = self.lifecycle.save_profile(profile)
        self.orchestrator.navigate(AppView.DASHBOARD if complete else AppView.PROFILE)
        return complete

    async def render_deck(self) -> Optional[PPTContent]:
        """The current deck with AI slide images filled in; the deck slice itself is left as is."""
        if self.state.deck is None:
            return None

        async def generate(prompt: str) -> Optional[str]:
            return await self.provider.generate_image(prompt, SLIDE_ASPECT_RATIO, self.config.image_model)

        return await render_slide_images(self.state.deck, generate)

    async def start_voice(self, backend: AudioBackend, connector: LiveConnector) -> VoiceSession:
        if self.voice is not None and self.voice.is_active:
            return self.voice
        voice = VoiceSession(backend, connector, self.config.live_model)
        await voice.start()
        self.voice = voice
        return voice

    async def stop_voice(self) -> None:
        voice, self.voice = self.voice, None
        if voice is not None:
            await voice.close()

    async def close(self) -> None:
        await self.stop_voice()

    async def sign_out(self) -> None:
        await self.close()
        self.lifecycle.sign_out()
        logger.info("Session %s signed out", self.session_id)

    def snapshot(self) -> Dict[str, Any]:
        data = self.state.snapshot()
        data.update(
            {
                "session_id": self.session_id,
                "created_at": self.created_at.isoformat(),
                "optimizing": self.policy.is_optimizing,
                "optimization_attempts": self.policy.attempts,
                "authenticated": self.is_authenticated,
                "profile_complete": self.lifecycle.is_complete(),
                "profile": self.profile.to_payload(),
                "voice_active": bool(self.voice and self.voice.is_active),
            }
        )
        return data
