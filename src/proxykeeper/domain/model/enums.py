"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    USER = "user"
    TEAM = "team"
    KEY = "key"
    MODEL = "model"


class TeamRole(StrEnum):
    ORG_ADMIN = "org_admin"
    INTERNAL_USER = "internal_user"
    INTERNAL_USER_VIEWER = "internal_user_viewer"
    ADMIN = "admin"
    USER = "user"

    @property
    def user_role(self) -> str:
        """Role recorded on the user entity when membership mirrors onto it."""
        if self is TeamRole.USER:
            return TeamRole.INTERNAL_USER.value
        return self.value


class ModelMode(StrEnum):
    COMPLETION = "completion"
    EMBEDDINGS = "embeddings"
    IMAGE_GENERATION = "image_generation"
    MODERATION = "moderation"
    AUDIO_TRANSCRIPTION = "audio_transcription"
