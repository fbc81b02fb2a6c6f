"""CareerOS tools - the callable operations the model may request."""

from .registry import (
    ANALYZE_JOB,
    APP_VIEWS,
    CHECK_ATS,
    DEFAULT_TOOLS,
    GENERATE_PROJECTS_PPT,
    GENERATE_RESUME,
    GENERATE_ROADMAP,
    NAVIGATE_APP,
    PREPARE_INTERVIEW,
    SYNC_PROFILE_DATA,
    ToolRegistry,
)
from .validation import CoercedArguments, MalformedToolCall, coerce_arguments

__all__ = [
    "ANALYZE_JOB",
    "APP_VIEWS",
    "CHECK_ATS",
    "CoercedArguments",
    "DEFAULT_TOOLS",
    "GENERATE_PROJECTS_PPT",
    "GENERATE_RESUME",
    "GENERATE_ROADMAP",
    "MalformedToolCall",
    "NAVIGATE_APP",
    "PREPARE_INTERVIEW",
    "SYNC_PROFILE_DATA",
    "ToolRegistry",
    "coerce_arguments",
]
