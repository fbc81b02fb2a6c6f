"""Declarative catalog of the tools the model may call."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from careeros.providers.types import ToolSchema

NAVIGATE_APP = "navigateApp"
ANALYZE_JOB = "analyzeJob"
GENERATE_RESUME = "generateResume"
GENERATE_ROADMAP = "generateRoadmap"
CHECK_ATS = "checkATS"
PREPARE_INTERVIEW = "prepareInterview"
GENERATE_PROJECTS_PPT = "generateProjectsPPT"
SYNC_PROFILE_DATA = "syncProfileData"

APP_VIEWS = ["dashboard", "resume", "roadmap", "ats", "projects", "interview", "profile"]
RESOURCE_PLATFORMS = ["YouTube", "Article", "Course"]


def _string(description: str = "", enum: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "string"}
    if description:
        schema["description"] = description
    if enum:
        schema["enum"] = list(enum)
    return schema


def _number(description: str = "") -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "number"}
    if description:
        schema["description"] = description
    return schema


def _array(items: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "array", "items": items}


def _object(properties: Dict[str, Any], required: Sequence[str] = ()) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = list(required)
    return schema


def _strings() -> Dict[str, Any]:
    return _array(_string())


def _experience() -> Dict[str, Any]:
    return _array(
        _object(
            {
                "company": _string(),
                "role": _string(),
                "location": _string(),
                "date": _string(),
                "bullets": _strings(),
            }
        )
    )


def _projects() -> Dict[str, Any]:
    return _array(
        _object(
            {
                "name": _string(),
                "description": _string(),
                "link": _string(),
                "bullets": _strings(),
            }
        )
    )


def _resources() -> Dict[str, Any]:
    return _array(
        _object(
            {
                "title": _string(),
                "url": _string(),
                "platform": _string(enum=RESOURCE_PLATFORMS),
                "description": _string(),
            }
        )
    )


NAVIGATE_APP_TOOL = ToolSchema(
    name=NAVIGATE_APP,
    description="Navigates the user to different sections of the CareerOS application.",
    parameters=_object(
        {"targetView": _string("The view/tab to open.", enum=APP_VIEWS)},
        required=["targetView"],
    ),
)

SYNC_PROFILE_DATA_TOOL = ToolSchema(
    name=SYNC_PROFILE_DATA,
    description="Synchronizes user profile data from a provided LinkedIn or GitHub URL using search grounding.",
    parameters=_object(
        {
            "platform": _string(enum=["linkedin", "github"]),
            "url": _string(),
            "name": _string(),
            "summary": _string(),
            "skills": _strings(),
            "experience": _experience(),
            "projects": _projects(),
        },
        required=["platform", "url", "name", "skills"],
    ),
)

ANALYZE_JOB_TOOL = ToolSchema(
    name=ANALYZE_JOB,
    description="Analyzes job descriptions to extract structured data.",
    parameters=_object(
        {
            "title": _string(),
            "company": _string(),
            "location": _string(),
            "roleSummary": _string(),
            "requiredSkills": _strings(),
            "preferredSkills": _strings(),
            "tools": _strings(),
            "experienceLevel": _string(),
            "keywords": _strings(),
        },
        required=["title", "company", "requiredSkills", "roleSummary", "experienceLevel"],
    ),
)

GENERATE_RESUME_TOOL = ToolSchema(
    name=GENERATE_RESUME,
    description=(
        "MIMICRY ENGINE: Strictly use the reference resume as a template. "
        "Replace content with User Profile data. Phrasing must be ATS-optimized."
    ),
    parameters=_object(
        {
            "personalInfo": _object(
                {
                    "name": _string(),
                    "email": _string(),
                    "phone": _string(),
                    "linkedin": _string(),
                    "github": _string(),
                    "website": _string(),
                },
                required=["name", "email", "phone"],
            ),
            "summary": _string(),
            "skills": _strings(),
            "latexCode": _string(),
            "experience": _experience(),
            "education": _array(
                _object(
                    {
                        "institution": _string(),
                        "degree": _string(),
                        "location": _string(),
                        "date": _string(),
                        "grade": _string(),
                    }
                )
            ),
            "projects": _projects(),
            "achievements": _strings(),
            "extra": _array(_object({"category": _string(), "details": _string()})),
            "mimicScore": _number(),
        },
        required=["personalInfo", "summary", "skills", "latexCode", "experience", "education", "mimicScore"],
    ),
)

GENERATE_ROADMAP_TOOL = ToolSchema(
    name=GENERATE_ROADMAP,
    description=(
        "Creates a step-by-step learning roadmap. You MUST include recommended resources "
        "like YouTube playlists or specific professional courses for each module."
    ),
    parameters=_object(
        {
            "steps": _array(
                _object(
                    {
                        "title": _string(),
                        "description": _string(),
                        "topics": _strings(),
                        "timeline": _string(),
                        "status": _string(enum=["pending", "completed", "in-progress"]),
                    }
                )
            ),
            "recommendedResources": _resources(),
        },
        required=["steps", "recommendedResources"],
    ),
)

CHECK_ATS_TOOL = ToolSchema(
    name=CHECK_ATS,
    description="Analyzes ATS score and suggests improvements.",
    parameters=_object(
        {
            "score": _number(),
            "matchingSkills": _strings(),
            "missingSkills": _strings(),
            "suggestions": _strings(),
        },
        required=["score", "matchingSkills", "missingSkills", "suggestions"],
    ),
)

PREPARE_INTERVIEW_TOOL = ToolSchema(
    name=PREPARE_INTERVIEW,
    description="Generates mock questions and prep assets.",
    parameters=_object(
        {
            "questions": _array(
                _object({"question": _string(), "category": _string(), "hint": _string()})
            ),
            "technicalTopics": _strings(),
            "resources": _resources(),
        },
        required=["questions", "technicalTopics", "resources"],
    ),
)

GENERATE_PROJECTS_PPT_TOOL = ToolSchema(
    name=GENERATE_PROJECTS_PPT,
    description="Creates a visual slide presentation for projects or seminars.",
    parameters=_object(
        {
            "title": _string(),
            "theme": _string(enum=["modern", "dark", "professional", "creative"]),
            "font": _string(enum=["sans", "serif", "mono"]),
            "slides": _array(
                _object(
                    {
                        "header": _string(),
                        "content": _strings(),
                        "speakerNotes": _string(),
                        "imagePrompt": _string(),
                        "imageType": _string(enum=["AI", "BROWSER", "NONE"]),
                    },
                    required=["header", "content", "imageType"],
                )
            ),
        },
        required=["title", "theme", "font", "slides"],
    ),
)

DEFAULT_TOOLS: Tuple[ToolSchema, ...] = (
    ANALYZE_JOB_TOOL,
    GENERATE_RESUME_TOOL,
    GENERATE_ROADMAP_TOOL,
    CHECK_ATS_TOOL,
    PREPARE_INTERVIEW_TOOL,
    GENERATE_PROJECTS_PPT_TOOL,
    NAVIGATE_APP_TOOL,
    SYNC_PROFILE_DATA_TOOL,
)


class ToolRegistry:
    """Read-only, name-unique collection of tool schemas."""

    def __init__(self, schemas: Sequence[ToolSchema] = DEFAULT_TOOLS):
        by_name: Dict[str, ToolSchema] = {}
        for schema in schemas:
            if schema.name in by_name:
                raise ValueError(f"Duplicate tool schema: {schema.name}")
            by_name[schema.name] = schema
        self._schemas: Mapping[str, ToolSchema] = MappingProxyType(by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[ToolSchema]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)

    def get(self, name: str) -> Optional[ToolSchema]:
        return self._schemas.get(name)

    def names(self) -> frozenset:
        return frozenset(self._schemas)

    def schemas(self) -> List[ToolSchema]:
        """Schemas in declaration order, as passed to the model."""
        return list(self._schemas.values())
