#!/usr/bin/env python
"""
Pydantic DTOs for request payloads carrying denormalized song fields.

The wire format keeps the camelCase names the web client sends
(songId, songTitle, ...); Python code uses the snake_case attributes.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from tracktide.errors import ValidationError

SONG_FIELDS_REQUIRED = "All song details are required"


class SongPayload(BaseModel):
    """Song fields required on every favorite/history/playlist write."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    song_id: str = Field(alias="songId", min_length=1)
    song_title: str = Field(alias="songTitle", min_length=1)
    artist_name: str = Field(alias="artistName", min_length=1)
    album_name: str = Field(alias="albumName", min_length=1)
    duration: int = Field(gt=0)
    cover: str = Field(min_length=1)
    preview: str = Field(min_length=1)

    @field_validator("song_id", mode="before")
    @classmethod
    def _coerce_song_id(cls, value: object) -> object:
        # Catalog ids arrive as integers from the search payload
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, value: object) -> object:
        if isinstance(value, float):
            return int(value)
        return value


class FavoritePayload(SongPayload):
    context: str = "search"

    @field_validator("context", mode="before")
    @classmethod
    def _normalize_context(cls, value: Optional[object]) -> str:
        if value is None or value == "":
            return "search"
        return str(value).strip().lower()


class PlaylistPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = Field(default=None, alias="isPublic")


def parse_payload(model, payload: Optional[dict], message: str = SONG_FIELDS_REQUIRED):
    """Validate a JSON body, raising the API ValidationError on failure."""
    try:
        return model.model_validate(payload or {})
    except PydanticValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise ValidationError(message, details={"fields": fields}) from exc


__all__ = ["SongPayload", "FavoritePayload", "PlaylistPayload", "parse_payload", "SONG_FIELDS_REQUIRED"]
