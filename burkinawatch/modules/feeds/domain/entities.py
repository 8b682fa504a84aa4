"""Feed aggregation domain entities."""

import hashlib
from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FeedDomain(StrEnum):
    """Independently cached aggregation domains."""

    NEWS = "news"
    BULLETINS = "bulletins"
    EVENTS = "events"


class SourceCategory(StrEnum):
    """Editorial category of an upstream source."""

    OFFICIAL = "Officiel"
    MEDIA = "Média"
    ECONOMY = "Économie"
    REGIONAL = "Régional"
    INTERNATIONAL = "International"


class EventType(StrEnum):
    """Kinds of event the classifier may report."""

    NATIONAL_HOLIDAY = "NationalHoliday"
    CULTURAL = "Cultural"
    CONCERT = "Concert"
    CONFERENCE = "Conference"
    SPORT = "Sport"
    INFRASTRUCTURE = "Infrastructure"


class SourceDescriptor(BaseModel):
    """One upstream endpoint. Immutable, defined at process start."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique human-readable source name")
    endpoint: str = Field(..., description="Feed URL")
    category: SourceCategory = Field(..., description="Editorial category")
    fallback_endpoint: str | None = Field(
        default=None, description="Tried once when the primary endpoint fails"
    )


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class NormalizedItem(_ApiModel):
    """A news or bulletin entry in the common shape."""

    id: str = Field(..., description="Stable hash of source, link and title")
    source_name: str
    title: str
    body_snippet: str = ""
    link: str
    published_at: datetime
    category: str | None = None
    image: str | None = None


class ExtractedEvent(_ApiModel):
    """A future-dated event extracted from an article."""

    id: str
    name: str
    type: EventType
    date: date
    venue: str
    city: str
    time: str | None = None
    description: str = ""
    official_link: str | None = None
    image: str | None = None


def stable_item_id(*parts: str | None) -> str:
    """Derive an id that survives refreshes for the same upstream entry."""
    raw = "\x1f".join((p or "").strip().lower() for p in parts)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]
