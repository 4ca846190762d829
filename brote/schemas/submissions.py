"""Schemas for submissions and the per-type payloads they carry.

A submission stores its payload as opaque JSON. The typed payload models
below are applied only when an approved submission is turned into a
catalogue entity.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

SubmissionType = Literal[
    "band",
    "event",
    "eventvenue",
    "venue",
    "news",
    "song",
    "video",
    "artist_link",
]

SUBMISSION_TYPES: tuple[str, ...] = (
    "band",
    "event",
    "eventvenue",
    "venue",
    "news",
    "song",
    "video",
    "artist_link",
)

ReviewStatus = Literal["approved", "rejected"]


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


class _Payload(BaseModel):
    """Base for submission payloads. A JSON null on an optional field takes the field default."""

    @field_validator("*", mode="before")
    @classmethod
    def null_is_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is not None:
            return v
        field = cls.model_fields[info.field_name]
        if field.is_required():
            return v
        return field.get_default(call_default_factory=True)


class BandPayload(_Payload):
    name: str = Field(..., min_length=1, max_length=255)
    bio: str = ""
    slug: str = Field(default="", max_length=255)
    social: dict[str, str] = Field(default_factory=dict)


class VenuePayload(_Payload):
    name: str = Field(..., min_length=1, max_length=255)
    address: str = ""
    description: str = ""
    slug: str = Field(default="", max_length=255)
    latlng: str = ""
    city: str = ""


class EventPayload(_Payload):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(default="", max_length=255)
    tags: str = ""
    content: str = ""
    date_start: str = ""
    date_end: str = ""
    id_venue: int | None = None
    band_ids: list[int] = Field(default_factory=list)

    @field_validator("id_venue", mode="before")
    @classmethod
    def blank_venue_is_none(cls, v: Any) -> Any:
        return _blank_to_none(v)


class EventVenuePayload(_Payload):
    """A new event together with the new venue that hosts it."""

    venue: VenuePayload
    event: EventPayload


class NewsPayload(_Payload):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(default="", max_length=255)
    content: str = ""
    band_ids: list[int] = Field(default_factory=list)


class SongPayload(_Payload):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(default="", max_length=255)
    band_id: int | None = None
    genre_id: int | None = None

    @field_validator("band_id", "genre_id", mode="before")
    @classmethod
    def blank_id_is_none(cls, v: Any) -> Any:
        return _blank_to_none(v)


class VideoPayload(_Payload):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(default="", max_length=255)
    youtube_id: str = Field(..., min_length=1, max_length=64)
    band_ids: list[int] = Field(default_factory=list)


class ArtistLinkPayload(_Payload):
    """Request to be linked to an existing artist. Accepts the flat or the {"data": {...}} shape."""

    artist_id: int = Field(..., gt=0)
    name: str = ""
    slug: str = ""
    rol: str = Field(default="", max_length=64)

    @model_validator(mode="before")
    @classmethod
    def unwrap_nested(cls, v: Any) -> Any:
        if isinstance(v, dict) and isinstance(v.get("data"), dict):
            return v["data"]
        return v


PAYLOAD_SCHEMAS: dict[str, type[BaseModel]] = {
    "band": BandPayload,
    "event": EventPayload,
    "eventvenue": EventVenuePayload,
    "venue": VenuePayload,
    "news": NewsPayload,
    "song": SongPayload,
    "video": VideoPayload,
    "artist_link": ArtistLinkPayload,
}


class SubmissionCreate(BaseModel):
    """New submission; the submitting user comes from the caller's token."""

    type: SubmissionType
    data: dict[str, Any]


class SubmissionStatusUpdate(BaseModel):
    """Review decision for a pending submission."""

    status: str = Field(..., description="approved or rejected")
    comment: str | None = Field(default=None, max_length=2000)


class SubmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None
    type: str
    data: dict[str, Any]
    status: str
    reviewed_by: int | None = None
    comment: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubmissionListResponse(BaseModel):
    submissions: list[SubmissionOut]


class SubmissionCreatedResponse(BaseModel):
    status: Literal["ok"] = "ok"
    id: int


class TransitionResponse(BaseModel):
    """Outcome of a review: the updated submission and, on approval, the created entity."""

    submission: SubmissionOut
    entity_type: str | None = None
    entity_id: int | None = None
    publication_scheduled: bool = False
