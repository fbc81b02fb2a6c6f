"""Prompts sent to the model: system instruction, silent follow-ups, resume requests."""

from __future__ import annotations

import json
from typing import Sequence

from .models import UserProfile

SYSTEM_INSTRUCTION = """You are CareerOS.
CORE MISSION: Turn any job post into a tailored application.
PROJECTS: The Projects section uses a PPT Generator to visualize ideas. When the user asks to generate a project or slide deck, use 'generateProjectsPPT'.
ROADMAPS: You MUST include YouTube playlist links and specific course URLs in the recommendedResources field.
VISUALS: Header in the Projects view must say 'PROJECTS'."""

ATS_CHECK_PROMPT = "Perform an ATS check for this newly generated resume based on the job description."

JOB_POST_SCREENSHOT_PROMPT = "Analyze this job post screenshot."

SERVICE_ERROR_TEXT = "Service error. Please try again."

DEFAULT_RESUME_STYLE = "modern"


def format_score(score: float) -> str:
    """Render a score the way it is shown to the user: 65.0 -> '65'."""
    if float(score).is_integer():
        return str(int(score))
    return f"{score:.1f}"


def keyword_optimization_prompt(score: float, missing_skills: Sequence[str]) -> str:
    return (
        f"The current resume has an ATS score of {format_score(score)}%. "
        f"Regenerate the resume with keywords: {', '.join(missing_skills)}."
    )


def _profile_context(profile: UserProfile) -> str:
    return json.dumps(
        {
            "personalInfo": {
                "name": profile.name,
                "email": profile.email,
                "phone": profile.phone,
                "linkedin": profile.linkedin,
                "github": profile.github,
            },
            "summary": profile.summary,
            "experience": [entry.to_payload() for entry in profile.experience],
            "education": [entry.to_payload() for entry in profile.education],
            "skills": profile.skills,
            "projects": [entry.to_payload() for entry in profile.projects],
        }
    )


def resume_architect_prompt(profile: UserProfile, style: str = DEFAULT_RESUME_STYLE, with_reference: bool = False) -> str:
    """Build the resume-generation request from the user's own profile data.

    With a reference image the model is asked to mimic its visual layout;
    otherwise it writes the named style.
    """
    prompt = f"""
ACT AS A RESUME ARCHITECT.

TASK: Generate a resume using the data provided below.

DATA SOURCE (Use this content EXACTLY):
{_profile_context(profile)}
"""
    if with_reference:
        prompt += """
VISUAL INSTRUCTION: I have uploaded an image of a resume.
GOAL: Write LaTeX code that mimics the VISUAL LAYOUT of the uploaded image exactly.
- Use the same header style (left/right/center aligned).
- Use the same font styles (serif vs sans-serif).
- Use the same section spacing and lines.
- BUT replace the text content with the DATA SOURCE provided above.
- Also return a JSON representation of the resume structure for the web preview.
"""
    else:
        prompt += f"""
VISUAL INSTRUCTION: Create a {style or DEFAULT_RESUME_STYLE} style resume.
- Generate professional LaTeX code for this style.
- Return the JSON structure for web preview.
"""
    return prompt
