"""Application-state slices written by the tool dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Optional

from careeros.domain.models import (
    ATSResult,
    InterviewPrepData,
    JobData,
    PPTContent,
    ResumeData,
    RoadmapData,
)


class AppView(str, Enum):
    DASHBOARD = "dashboard"
    RESUME = "resume"
    ROADMAP = "roadmap"
    ATS = "ats"
    PROJECTS = "projects"
    INTERVIEW = "interview"
    PROFILE = "profile"


def view_label(view: AppView) -> str:
    """Header text for a view; the projects view is always labelled PROJECTS."""
    if view == AppView.PROJECTS:
        return "PROJECTS"
    return view.value.upper()


class Slice(str, Enum):
    JOB = "job"
    RESUME = "resume"
    ROADMAP = "roadmap"
    ATS = "ats"
    INTERVIEW = "interview"
    DECK = "deck"


_SLICE_TYPES = {
    Slice.JOB: JobData,
    Slice.RESUME: ResumeData,
    Slice.ROADMAP: RoadmapData,
    Slice.ATS: ATSResult,
    Slice.INTERVIEW: InterviewPrepData,
    Slice.DECK: PPTContent,
}


@dataclass
class ApplicationState:
    """Named, independently owned buckets of session state.

    Artifact slices are replaced whole; nothing ever patches a field inside one.
    """

    job: Optional[JobData] = None
    resume: Optional[ResumeData] = None
    roadmap: Optional[RoadmapData] = None
    ats: Optional[ATSResult] = None
    interview: Optional[InterviewPrepData] = None
    deck: Optional[PPTContent] = None
    active_view: AppView = AppView.DASHBOARD
    processing: bool = False

    def write(self, slice_name: Slice, value: Any) -> None:
        expected = _SLICE_TYPES[Slice(slice_name)]
        if not isinstance(value, expected):
            raise TypeError(f"Slice {slice_name.value} expects {expected.__name__}, got {type(value).__name__}")
        setattr(self, Slice(slice_name).value, value)

    def read(self, slice_name: Slice) -> Any:
        return getattr(self, Slice(slice_name).value)

    def switch_view(self, view: AppView) -> None:
        self.active_view = AppView(view)

    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if hasattr(value, "to_payload"):
                value = value.to_payload()
            elif isinstance(value, Enum):
                value = value.value
            data[f.name] = value
        data["view_label"] = view_label(self.active_view)
        return data
