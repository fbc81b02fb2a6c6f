"""Top-level v1 API router."""

from __future__ import annotations

from fastapi import APIRouter

from .endpoints.chat import router as chat_router
from .endpoints.sessions import router as sessions_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(sessions_router)
api_v1_router.include_router(chat_router)
