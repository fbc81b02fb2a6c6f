"""Session, sign-in and profile endpoints for Web API v1."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from careeros.core.context import CareerSession
from careeros.core.state import view_label
from careeros.domain.models import UserProfile

from ..deps import get_session, get_signed_in_session, get_store
from ....store import SessionStore

router = APIRouter(prefix="/sessions", tags=["sessions"])


class CreateSessionRequest(BaseModel):
    profile_key: Optional[str] = Field(default=None)


class CreateSessionResponse(BaseModel):
    session_id: str
    profile_key: str
    created_at: str
    authenticated: bool
    active_view: str


class SignInRequest(BaseModel):
    credential: str = Field(min_length=1)


class SignInResponse(BaseModel):
    authenticated: bool
    profile_complete: bool
    active_view: str
    view_label: str


class SaveProfileResponse(BaseModel):
    profile_complete: bool
    active_view: str
    view_label: str
    profile: Dict[str, Any]


@router.post("", response_model=CreateSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: Optional[CreateSessionRequest] = None,
    store: SessionStore = Depends(get_store),
) -> CreateSessionResponse:
    session = await store.create_session(profile_key=request.profile_key if request else None)
    return CreateSessionResponse(
        session_id=session.session_id,
        profile_key=session.lifecycle.store.directory.name,
        created_at=session.created_at.isoformat(),
        authenticated=session.is_authenticated,
        active_view=session.state.active_view.value,
    )


@router.get("/{session_id}")
async def get_session_snapshot(session: CareerSession = Depends(get_session)) -> Dict[str, Any]:
    snapshot = session.snapshot()
    snapshot["turns"] = [turn.to_dict() for turn in session.conversation.visible_turns()]
    return snapshot


@router.post("/{session_id}/sign-in", response_model=SignInResponse)
async def sign_in(request: SignInRequest, session: CareerSession = Depends(get_session)) -> SignInResponse:
    # an undecodable credential leaves the session signed out; no error is surfaced
    authenticated = session.sign_in(request.credential)
    return SignInResponse(
        authenticated=authenticated,
        profile_complete=session.lifecycle.is_complete(),
        active_view=session.state.active_view.value,
        view_label=view_label(session.state.active_view),
    )


@router.post("/{session_id}/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    session: CareerSession = Depends(get_session),
    store: SessionStore = Depends(get_store),
) -> None:
    await session.sign_out()
    await store.remove_session(session.session_id)


@router.put("/{session_id}/profile", response_model=SaveProfileResponse)
async def save_profile(
    profile: UserProfile,
    session: CareerSession = Depends(get_signed_in_session),
) -> SaveProfileResponse:
    complete = session.save_profile(profile)
    return SaveProfileResponse(
        profile_complete=complete,
        active_view=session.state.active_view.value,
        view_label=view_label(session.state.active_view),
        profile=session.profile.to_payload(),
    )
