"""Chat, upload and navigation endpoints for Web API v1."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, Field

from careeros.core.context import CareerSession
from careeros.core.orchestrator import ChainResult
from careeros.core.state import AppView, view_label
from careeros.core.transport import Attachment
from careeros.domain.prompts import DEFAULT_RESUME_STYLE

from ..deps import get_signed_in_session, get_store
from ..upload import check_mime_type, read_attachment
from ....errors import APIError
from ....store import SessionStore

router = APIRouter(prefix="/sessions/{session_id}", tags=["chat"])


class AttachmentPayload(BaseModel):
    data: str = Field(min_length=1, description="base64-encoded file content")
    mime_type: str
    name: str = ""


class SendMessageRequest(BaseModel):
    text: str = ""
    attachment: Optional[AttachmentPayload] = None


class NavigateRequest(BaseModel):
    target_view: AppView


class TurnsResponse(BaseModel):
    turns: List[Dict[str, Any]]
    active_view: str
    view_label: str
    processing: bool
    optimizing: bool
    error: Optional[str] = None
    truncated: bool = False


def _turns_response(session: CareerSession, result: Optional[ChainResult]) -> TurnsResponse:
    turns = result.visible_turns if result else []
    return TurnsResponse(
        turns=[turn.to_dict() for turn in turns],
        active_view=session.state.active_view.value,
        view_label=view_label(session.state.active_view),
        processing=session.orchestrator.processing,
        optimizing=session.policy.is_optimizing,
        error=result.error if result else None,
        truncated=result.truncated if result else False,
    )


@router.post("/messages", response_model=TurnsResponse)
async def send_message(
    request: SendMessageRequest,
    session: CareerSession = Depends(get_signed_in_session),
    store: SessionStore = Depends(get_store),
) -> TurnsResponse:
    attachment: Optional[Attachment] = None
    if request.attachment is not None:
        mime_type = check_mime_type(request.attachment.mime_type, store.allowed_upload_types)
        try:
            attachment = Attachment.from_base64(request.attachment.data, mime_type, request.attachment.name)
        except ValueError as e:
            raise APIError(400, "BAD_REQUEST", str(e)) from e
        if len(attachment.data) > store.max_upload_bytes:
            raise APIError(
                422,
                "UPLOAD_TOO_LARGE",
                "Uploaded file exceeds size limit",
                {"max_upload_bytes": store.max_upload_bytes},
            )
    if not request.text.strip() and attachment is None:
        raise APIError(400, "BAD_REQUEST", "Message needs text or an attachment")

    result = await session.orchestrator.send_message(request.text, attachment=attachment)
    return _turns_response(session, result)


@router.get("/messages")
async def list_messages(session: CareerSession = Depends(get_signed_in_session)) -> Dict[str, Any]:
    return {"turns": [turn.to_dict() for turn in session.conversation.visible_turns()]}


@router.post("/job-post", response_model=TurnsResponse)
async def analyze_job_post(
    file: UploadFile = File(...),
    session: CareerSession = Depends(get_signed_in_session),
    store: SessionStore = Depends(get_store),
) -> TurnsResponse:
    attachment = await read_attachment(file, store.max_upload_bytes, store.allowed_upload_types)
    result = await session.orchestrator.analyze_job_post(attachment)
    return _turns_response(session, result)


@router.post("/resume", response_model=TurnsResponse)
async def generate_resume(
    style: str = Form(DEFAULT_RESUME_STYLE),
    file: Optional[UploadFile] = File(None),
    session: CareerSession = Depends(get_signed_in_session),
    store: SessionStore = Depends(get_store),
) -> TurnsResponse:
    reference = None
    if file is not None and file.filename:
        reference = await read_attachment(file, store.max_upload_bytes, store.allowed_upload_types)
    result = await session.orchestrator.generate_resume(session.profile, reference=reference, style=style)
    return _turns_response(session, result)


@router.post("/view")
async def navigate(
    request: NavigateRequest,
    session: CareerSession = Depends(get_signed_in_session),
) -> Dict[str, str]:
    session.orchestrator.navigate(request.target_view)
    return {"active_view": session.state.active_view.value, "view_label": view_label(session.state.active_view)}


@router.get("/deck")
async def get_deck(session: CareerSession = Depends(get_signed_in_session)) -> Dict[str, Any]:
    deck = await session.render_deck()
    if deck is None:
        raise APIError(404, "DECK_NOT_FOUND", "No slide deck has been generated yet")
    return deck.to_payload()
