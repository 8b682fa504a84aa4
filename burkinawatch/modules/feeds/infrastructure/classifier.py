"""LLM event classifier.

Decides whether an article announces a future event and extracts its
structured fields. The model must answer with one JSON object:

    {"isEvent": bool, "name"?, "type"?, "date"?, "venue"?, "city"?,
     "time"?, "description"?}

Extraction is best-effort: any failure makes the candidate contribute nothing.
"""

import asyncio
import json
import re
import unicodedata
from datetime import date, datetime
from typing import Any

import openai
from loguru import logger
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from burkinawatch.core.config import settings
from burkinawatch.modules.feeds.domain.entities import (
    EventType,
    ExtractedEvent,
    NormalizedItem,
    stable_item_id,
)
from burkinawatch.modules.feeds.domain.exceptions import (
    ClassificationParseFailure,
    ClassificationUnavailable,
)

DEFAULT_CITY = "Ouagadougou"

BURKINA_CITIES = (
    "Ouagadougou",
    "Bobo-Dioulasso",
    "Koudougou",
    "Ouahigouya",
    "Banfora",
    "Fada N'Gourma",
    "Kaya",
    "Tenkodogo",
    "Dori",
    "Dédougou",
    "Gaoua",
    "Ziniaré",
    "Manga",
    "Kongoussi",
    "Djibo",
    "Nouna",
    "Diébougou",
    "Orodara",
    "Yako",
    "Boulsa",
    "Bogandé",
    "Diapaga",
    "Tougan",
    "Boromo",
    "Houndé",
    "Kombissiri",
    "Koupéla",
    "Garango",
)

_CITY_ALIASES = {"ouaga": "Ouagadougou", "bobo": "Bobo-Dioulasso", "fada": "Fada N'Gourma"}

_HOUR_RE = re.compile(r"\b(\d{1,2})\s*[hH:]\s*(\d{2})?\b")

_EVENT_TYPE_ALIASES: dict[str, EventType] = {
    "nationalholiday": EventType.NATIONAL_HOLIDAY,
    "fetenationale": EventType.NATIONAL_HOLIDAY,
    "holiday": EventType.NATIONAL_HOLIDAY,
    "cultural": EventType.CULTURAL,
    "culturel": EventType.CULTURAL,
    "festival": EventType.CULTURAL,
    "concert": EventType.CONCERT,
    "cafeconcert": EventType.CONCERT,
    "conference": EventType.CONFERENCE,
    "forum": EventType.CONFERENCE,
    "sport": EventType.SPORT,
    "sports": EventType.SPORT,
    "infrastructure": EventType.INFRASTRUCTURE,
}


def _fold(text: str) -> str:
    """Lowercase ASCII form used for lenient matching."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if c.isalnum()).lower()


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first well-formed JSON object embedded in ``text``.

    Leading or trailing prose and markdown fences around the object are
    tolerated. Returns None when no decodable object exists.
    """
    if not text:
        return None
    decoder = json.JSONDecoder()
    position = text.find("{")
    while position != -1:
        try:
            value, _ = decoder.raw_decode(text, position)
        except json.JSONDecodeError:
            position = text.find("{", position + 1)
            continue
        if isinstance(value, dict):
            return value
        position = text.find("{", position + 1)
    return None


class EventClassification(BaseModel):
    """Classifier output schema."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_event: bool = Field(..., alias="isEvent")
    name: str | None = None
    type: str | None = None
    date: str | None = None
    venue: str | None = None
    city: str | None = None
    time: str | None = None
    description: str | None = None


def parse_event_date(value: str | None) -> date | None:
    if not value:
        return None
    value = value.strip()
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        pass
    for fmt in ("%d/%m/%Y", "%d-%m-%Y"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_event_type(value: str | None) -> EventType:
    if not value:
        return EventType.CULTURAL
    return _EVENT_TYPE_ALIASES.get(_fold(value), EventType.CULTURAL)


def detect_city(text: str) -> str | None:
    folded = _fold(text)
    for city in BURKINA_CITIES:
        if _fold(city) in folded:
            return city
    lowered = text.lower()
    for alias, city in _CITY_ALIASES.items():
        if re.search(rf"\b{alias}\b", lowered):
            return city
    return None


def detect_time(text: str) -> str | None:
    for match in _HOUR_RE.finditer(text):
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if 0 <= hour <= 23 and 0 <= minute <= 59:
            return f"{hour:02d}:{minute:02d}"
    return None


def build_event(
    raw_response: str,
    item: NormalizedItem,
    today: date,
) -> ExtractedEvent | None:
    """Turn a raw classifier answer into an event, or None when discarded.

    Raises:
        ClassificationParseFailure: no usable JSON object in the answer
    """
    data = extract_json_object(raw_response)
    if data is None:
        raise ClassificationParseFailure("No JSON object in classifier response")

    try:
        output = EventClassification.model_validate(data)
    except PydanticValidationError as e:
        raise ClassificationParseFailure(f"Schema validation error: {e}") from e

    if not output.is_event:
        return None

    event_date = parse_event_date(output.date)
    if event_date is None or event_date < today:
        return None

    text = f"{item.title} {item.body_snippet}"
    city = (output.city or "").strip() or detect_city(text) or DEFAULT_CITY
    name = (output.name or "").strip() or item.title
    if len(name) > 120:
        name = name[:117] + "..."

    return ExtractedEvent(
        id=stable_item_id(item.source_name, item.link, name),
        name=name,
        type=parse_event_type(output.type),
        date=event_date,
        venue=(output.venue or "").strip() or city,
        city=city,
        time=(output.time or "").strip() or detect_time(text),
        description=(output.description or "").strip() or item.body_snippet or name,
        official_link=item.link,
        image=item.image,
    )


class OpenAIEventClassifier:
    """Event classifier backed by an OpenAI-compatible chat endpoint."""

    SYSTEM_PROMPT = """You extract upcoming public events in Burkina Faso from news articles written in French.

Answer with exactly one JSON object and nothing else:
{
  "isEvent": true or false,
  "name": "event name",
  "type": "NationalHoliday" | "Cultural" | "Concert" | "Conference" | "Sport" | "Infrastructure",
  "date": "YYYY-MM-DD",
  "venue": "venue",
  "city": "city",
  "time": "HH:MM",
  "description": "one or two sentences in French"
}

Rules:
1. isEvent is true only when the article announces a dated event that has not happened yet.
2. Reports about past events, opinion pieces and general news are not events.
3. Resolve relative dates ("samedi prochain", "demain") against the publication date.
4. Omit fields you cannot determine."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        enabled: bool | None = None,
        max_concurrency: int | None = None,
        openai_client: AsyncOpenAI | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.CLASSIFIER_MODEL
        self.enabled = settings.LLM_ENABLED if enabled is None else enabled
        self._client = openai_client
        self._semaphore = asyncio.Semaphore(
            max_concurrency or settings.CLASSIFIER_CONCURRENCY
        )
        self._logger = logger.bind(service="OpenAIEventClassifier")

    @property
    def client(self) -> AsyncOpenAI:
        """Lazily created OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=settings.OPENAI_API_BASE,
                timeout=settings.CLASSIFIER_TIMEOUT_SEC,
            )
        return self._client

    def ensure_available(self) -> None:
        """Raise ClassificationUnavailable when calls cannot be made."""
        if not self.enabled:
            raise ClassificationUnavailable("LLM classification is disabled")
        if not self._api_key and self._client is None:
            raise ClassificationUnavailable("OPENAI_API_KEY is not configured")

    async def classify(self, item: NormalizedItem, today: date) -> ExtractedEvent | None:
        try:
            self.ensure_available()
        except ClassificationUnavailable:
            return None

        messages = [
            {"role": "system", "content": self.SYSTEM_PROMPT},
            {"role": "user", "content": self._build_user_prompt(item, today)},
        ]

        try:
            async with self._semaphore:
                content = await self._call_llm(messages)
        except openai.OpenAIError as e:
            self._logger.warning(f"Classifier call failed for '{item.title}': {e}")
            return None

        try:
            return build_event(content, item, today)
        except ClassificationParseFailure as e:
            self._logger.debug(f"Discarding '{item.title}': {e.message}")
            return None

    @staticmethod
    def _build_user_prompt(item: NormalizedItem, today: date) -> str:
        return f"""Today: {today.isoformat()}
Published: {item.published_at.date().isoformat()}
Title: {item.title}
Summary: {item.body_snippet or "-"}"""

    @retry(
        retry=retry_if_exception_type(
            (openai.APIConnectionError, openai.APITimeoutError)
        ),
        stop=stop_after_attempt(settings.CLASSIFIER_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    async def _call_llm(self, messages: list[dict[str, str]]) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,  # type: ignore[arg-type]
            temperature=0.0,
            max_tokens=300,
        )
        return response.choices[0].message.content or ""
