"""Domain payloads, prompts and helpers for CareerOS."""

from .identity import IdentityClaims, IdentityDecodeError, decode_id_token_claims
from .models import (
    ATSResult,
    InterviewPrepData,
    JobData,
    PPTContent,
    ProfileSyncData,
    ResumeData,
    RoadmapData,
    Slide,
    UserProfile,
    is_profile_complete,
)
from .slides import render_slide_images

__all__ = [
    "ATSResult",
    "IdentityClaims",
    "IdentityDecodeError",
    "InterviewPrepData",
    "JobData",
    "PPTContent",
    "ProfileSyncData",
    "ResumeData",
    "RoadmapData",
    "Slide",
    "UserProfile",
    "decode_id_token_claims",
    "is_profile_complete",
    "render_slide_images",
]
