#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Pydantic models for Videocatalog API requests and responses.

The wire format uses camelCase field names (``publishedAt``, ``channelName``);
snake_case names are accepted on input as well.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TITLE_MAX_LENGTH = 200


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class VideoCreate(CamelModel):
    """Payload for creating a video, also produced by the YouTube import."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
        description="Video title (max 200 characters)."
    )
    duration: Optional[str] = Field(
        None,
        description="Platform-native duration, e.g. ISO 8601 'PT4M13S'."
    )
    author: Optional[str] = Field(None, description="Author or channel name.")
    published_at: datetime = Field(
        ...,
        description="Publication timestamp (ISO 8601). Naive values are interpreted as UTC."
    )
    description: Optional[str] = Field(None, description="Video description.")
    channel_name: Optional[str] = Field(None, description="Channel display name.")

    @field_validator("published_at")
    @classmethod
    def validate_published_at(cls, v: datetime) -> datetime:
        """Ensure the publication date is timezone-aware UTC."""
        return ensure_utc(v)


class VideoUpdate(VideoCreate):
    """Payload for a full update; ``id`` must match the id in the path."""

    id: int = Field(..., description="Identifier of the video being updated.")


class VideoRead(CamelModel):
    """A stored video record as returned by the API."""

    id: int
    title: str
    duration: Optional[str] = None
    author: Optional[str] = None
    published_at: datetime
    description: Optional[str] = None
    channel_name: Optional[str] = None
    deleted: bool = False

    @field_validator("published_at")
    @classmethod
    def validate_published_at(cls, v: datetime) -> datetime:
        """Re-attach UTC to timestamps read back from stores without tz support."""
        return ensure_utc(v)


class VideoFilter(BaseModel):
    """Optional filters for listing videos. Absent or empty values are ignored."""

    title: Optional[str] = None
    duration: Optional[str] = None
    author: Optional[str] = None
    published_after: Optional[datetime] = None
    q: Optional[str] = None

    @field_validator("published_after", mode="before")
    @classmethod
    def blank_published_after(cls, v):
        # An empty query-string value means "no filter"
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("published_after")
    @classmethod
    def validate_published_after(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class LoginRequest(BaseModel):
    """Credentials exchanged for a bearer token."""

    username: str = Field(..., description="User name.")
    password: str = Field(..., description="Password.")


class TokenResponse(BaseModel):
    """Bearer token issued by /auth/login."""

    access_token: str = Field(..., description="Bearer token to send in the Authorization header.")
    token_type: str = Field("bearer", description="Always 'bearer'.")
    expires_in: int = Field(..., description="Token lifetime in seconds.")


class ImportResponse(BaseModel):
    """Result of a YouTube import run."""

    count: int = Field(..., description="Number of videos inserted.")
    message: str = Field(..., description="Human-readable summary.")


class ErrorResponse(BaseModel):
    """Model for error responses.

    Defines the structure of error responses returned by the API.
    """

    detail: str = Field(
        ...,
        description="Detailed error message."
    )
    error_code: Optional[str] = Field(
        None,
        description="Optional internal error code."
    )
