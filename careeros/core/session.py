"""Session lifecycle: sign-in, profile persistence and the completeness gate."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError

from careeros.domain.identity import IdentityDecodeError, decode_id_token_claims
from careeros.domain.models import ExperienceEntry, ProfileSyncData, ProjectEntry, UserProfile, is_profile_complete

logger = logging.getLogger(__name__)

PROFILE_STORAGE_KEY = "career_os_profile"


class ProfileStore:
    """Persists the single UserProfile record as JSON under a fixed key."""

    def __init__(self, directory: Union[Path, str]):
        self.directory = Path(directory).expanduser()
        self.path = self.directory / f"{PROFILE_STORAGE_KEY}.json"

    def load(self) -> UserProfile:
        """Load the saved profile; missing or unreadable data yields the empty default."""
        if not self.path.exists():
            return UserProfile()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return UserProfile.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Failed to load profile from %s, using defaults: %s", self.path, e)
            return UserProfile()

    def save(self, profile: UserProfile) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{PROFILE_STORAGE_KEY}", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(profile.model_dump_json(by_alias=True, indent=2))
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionLifecycle:
    """Owns the user profile for one session and keeps it persisted."""

    def __init__(self, store: ProfileStore, restore_sign_in: bool = True):
        self.store = store
        profile = store.load()
        if profile.is_authenticated and not restore_sign_in:
            profile = profile.model_copy(update={"is_authenticated": False})
        self.profile = profile

    @property
    def is_authenticated(self) -> bool:
        return self.profile.is_authenticated

    def is_complete(self) -> bool:
        return is_profile_complete(self.profile)

    def sign_in(self, credential: str) -> bool:
        """Merge identity claims into the profile. A bad token aborts without side effects."""
        try:
            claims = decode_id_token_claims(credential)
        except IdentityDecodeError as e:
            logger.warning("Sign-in aborted: %s", e)
            return False

        if self.profile.profile_id and self.profile.profile_id != claims.subject:
            logger.info("Stored profile belongs to another subject; starting a new one")
            self.profile = UserProfile()
        self.profile = self.profile.model_copy(
            update={
                "is_authenticated": True,
                "profile_id": claims.subject,
                "name": claims.name,
                "email": claims.email,
                "picture": claims.picture,
            }
        )
        self.store.save(self.profile)
        logger.info("Signed in profile %s", claims.subject)
        return True

    def save_profile(self, profile: UserProfile) -> bool:
        """Replace the profile (keeping the signed-in identity) and report completeness."""
        self.profile = profile.model_copy(
            update={
                "is_authenticated": self.profile.is_authenticated,
                "profile_id": self.profile.profile_id or profile.profile_id,
            }
        )
        self.store.save(self.profile)
        return self.is_complete()

    def sign_out(self) -> None:
        self.store.clear()
        self.profile = UserProfile()
        logger.info("Signed out; persisted profile cleared")

    def merge_profile_sync(self, data: ProfileSyncData) -> str:
        """Fold data pulled from a LinkedIn/GitHub profile into the user's profile."""
        update: dict = {}
        if data.name:
            update["name"] = data.name
        if data.summary:
            update["summary"] = data.summary
        if data.platform in ("linkedin", "github") and data.url:
            update[data.platform] = data.url

        new_skills = [s for s in data.skills if s and s not in self.profile.skills]
        if new_skills:
            update["skills"] = self.profile.skills + new_skills

        new_experience = _new_experience(self.profile.experience, data.experience)
        if new_experience:
            update["experience"] = self.profile.experience + new_experience

        new_projects = _new_projects(self.profile.projects, data.projects)
        if new_projects:
            update["projects"] = self.profile.projects + new_projects

        self.profile = self.profile.model_copy(update=update)
        self.store.save(self.profile)

        source = data.platform.capitalize() if data.platform else "external profile"
        return (
            f"Profile synced from {source}: {len(new_skills)} new skills, "
            f"{len(new_experience)} experience entries, {len(new_projects)} projects added."
        )


def _new_experience(existing: List[ExperienceEntry], incoming: List[ExperienceEntry]) -> List[ExperienceEntry]:
    seen = {(e.company.lower(), e.role.lower()) for e in existing}
    added: List[ExperienceEntry] = []
    for entry in incoming:
        key = (entry.company.lower(), entry.role.lower())
        if not (entry.company or entry.role) or key in seen:
            continue
        seen.add(key)
        added.append(entry)
    return added


def _new_projects(existing: List[ProjectEntry], incoming: List[ProjectEntry]) -> List[ProjectEntry]:
    seen = {p.name.lower() for p in existing}
    added: List[ProjectEntry] = []
    for project in incoming:
        if not project.name or project.name.lower() in seen:
            continue
        seen.add(project.name.lower())
        added.append(project)
    return added

