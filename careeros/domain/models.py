"""Typed payloads for application-state slices and the user profile."""

from __future__ import annotations

import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CareerModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class ExperienceEntry(CareerModel):
    company: str = ""
    role: str = ""
    location: str = ""
    date: str = ""
    bullets: List[str] = Field(default_factory=list)


class EducationEntry(CareerModel):
    institution: str = ""
    degree: str = ""
    location: str = ""
    date: str = ""
    grade: str = ""


class ProjectEntry(CareerModel):
    name: str = ""
    description: str = ""
    link: str = ""
    bullets: List[str] = Field(default_factory=list)


class ExtraEntry(CareerModel):
    category: str = ""
    details: str = ""


class JobData(CareerModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:10])
    title: str = ""
    company: str = ""
    location: str = ""
    description: str = ""
    required_skills: List[str] = Field(default_factory=list)
    preferred_skills: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    experience_level: str = ""
    role_summary: str = ""
    keywords: List[str] = Field(default_factory=list)


class PersonalInfo(CareerModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    linkedin: str = ""
    github: str = ""
    website: str = ""


class ResumeData(CareerModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    summary: str = ""
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)
    extra: List[ExtraEntry] = Field(default_factory=list)
    latex_code: str = ""
    reference_highlights: List[str] = Field(default_factory=list)
    mimic_score: Optional[float] = None


class Resource(CareerModel):
    title: str = ""
    url: str = ""
    platform: str = "Article"
    description: str = ""


class RoadmapStep(CareerModel):
    title: str = ""
    description: str = ""
    topics: List[str] = Field(default_factory=list)
    timeline: str = ""
    status: str = "pending"


class RoadmapData(CareerModel):
    steps: List[RoadmapStep] = Field(default_factory=list)
    recommended_resources: List[Resource] = Field(default_factory=list)


class ATSResult(CareerModel):
    score: float = 0.0
    matching_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class InterviewQuestion(CareerModel):
    question: str = ""
    category: str = ""
    hint: str = ""


class InterviewPrepData(CareerModel):
    questions: List[InterviewQuestion] = Field(default_factory=list)
    technical_topics: List[str] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)


class Slide(CareerModel):
    header: str = ""
    content: List[str] = Field(default_factory=list)
    speaker_notes: str = ""
    image_prompt: str = ""
    image_type: str = "NONE"
    image_url: Optional[str] = None


class PPTContent(CareerModel):
    title: str = ""
    theme: str = "modern"
    font: str = "sans"
    slides: List[Slide] = Field(default_factory=list)


class ProfileSyncData(CareerModel):
    platform: str = ""
    url: str = ""
    name: str = ""
    summary: str = ""
    skills: List[str] = Field(default_factory=list)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)


class UserProfile(CareerModel):
    is_authenticated: bool = False
    profile_id: str = ""
    name: str = ""
    email: str = ""
    picture: Optional[str] = None
    phone: str = ""
    linkedin: str = ""
    github: str = ""
    portfolio: str = ""
    summary: str = ""
    academics_summary: str = ""
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)
    extra: List[ExtraEntry] = Field(default_factory=list)


def is_profile_complete(profile: UserProfile) -> bool:
    """Name, email and a non-blank summary, plus at least one experience or education entry."""
    if not profile.name or not profile.email or not profile.summary.strip():
        return False
    return bool(profile.experience or profile.education)
