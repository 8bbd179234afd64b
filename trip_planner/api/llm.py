"""LLM helper functions for the travel planner.

Generates itineraries through the OpenAI Responses API with web search
enabled, then pulls the fenced JSON payload out of the free-text answer and
validates it.  The model is never forced into a schema, so everything it
returns is treated as untrusted text until ``parse_itinerary`` accepts it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, List, Optional

from openai import OpenAI

from trip_planner.api.config import get_openai_api_key, get_openai_model_name
from trip_planner.api.errors import GenerationError, GenerationErrorKind
from trip_planner.api.models import (
    Coordinates,
    GenerationResult,
    GroundingSource,
    Itinerary,
    ItineraryStop,
)

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL = {"type": "web_search_preview"}

# ---------------------------------------------------------------------------
# Fence extraction
# ---------------------------------------------------------------------------

# A complete ``` block, with or without a language tag on the opening line.
_FENCED_BLOCK = re.compile(r"```[ \t]*[\w+.-]*[ \t]*\r?\n(.*?)```", re.DOTALL)
# Unbalanced fences left over when the model forgets to close the block.
_LEADING_FENCE = re.compile(r"^```[ \t]*[\w+.-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?[ \t]*```$")


def extract_json_payload(raw_text: str) -> str:
    """Return the JSON body of a model answer.

    Handles:
    - JSON in a fenced block (```json, ```JSON, plain ```, any other tag)
    - prose before or after the block
    - an opening fence without a closing one, or the reverse
    - leading/trailing whitespace everywhere

    Raises:
        GenerationError: MALFORMED_RESPONSE if no JSON object is found
    """
    text = (raw_text or "").strip()

    match = _FENCED_BLOCK.search(text)
    if match:
        body = match.group(1)
    else:
        body = _TRAILING_FENCE.sub("", _LEADING_FENCE.sub("", text))
    body = body.strip()

    if not body.startswith("{"):
        start = body.find("{")
        end = body.rfind("}")
        if start == -1 or end < start:
            raise GenerationError(
                GenerationErrorKind.MALFORMED_RESPONSE,
                f"no JSON object in response: {text[:200]!r}",
            )
        body = body[start:end + 1]

    return body


# ---------------------------------------------------------------------------
# Schema validation
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _schema_error(detail: str) -> GenerationError:
    return GenerationError(GenerationErrorKind.SCHEMA_VIOLATION, detail)


def _parse_stop(index: int, raw: Any) -> ItineraryStop:
    if not isinstance(raw, dict):
        raise _schema_error(f"stop {index} is not an object")

    for key in ("place_name", "description"):
        if not isinstance(raw.get(key), str):
            raise _schema_error(f"stop {index} has no string '{key}'")

    coords = raw.get("coordinates")
    if not isinstance(coords, dict):
        raise _schema_error(f"stop {index} has no 'coordinates' object")
    lat = coords.get("latitude")
    lng = coords.get("longitude")
    if not (_is_number(lat) and _is_number(lng)):
        raise _schema_error(f"stop {index} has non-numeric coordinates")

    return ItineraryStop(
        place_name=raw["place_name"],
        description=raw["description"],
        coordinates=Coordinates(float(lat), float(lng)),
    )


def parse_itinerary(payload: str) -> Itinerary:
    """Parse and validate an extracted JSON payload. All or nothing."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise GenerationError(GenerationErrorKind.MALFORMED_RESPONSE, str(exc)) from exc

    if not isinstance(data, dict):
        raise _schema_error("top level is not an object")
    if not isinstance(data.get("summary"), str):
        raise _schema_error("missing string 'summary'")
    if not isinstance(data.get("itinerary"), list):
        raise _schema_error("missing array 'itinerary'")

    stops = tuple(_parse_stop(i, raw) for i, raw in enumerate(data["itinerary"]))
    return Itinerary(summary=data["summary"], stops=stops)


# ---------------------------------------------------------------------------
# Grounding metadata
# ---------------------------------------------------------------------------

def _get(obj: Any, name: str, default: Any = None) -> Any:
    # The SDK returns typed objects; recorded or hand-built responses are dicts.
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def extract_grounding_sources(response: Any) -> List[GroundingSource]:
    """Collect url_citation annotations from a Responses API result.

    Missing metadata just yields an empty list.
    """
    sources: List[GroundingSource] = []
    seen = set()
    for item in _get(response, "output") or []:
        if _get(item, "type") != "message":
            continue
        for part in _get(item, "content") or []:
            for annotation in _get(part, "annotations") or []:
                if _get(annotation, "type") != "url_citation":
                    continue
                uri = _get(annotation, "url")
                if not uri or uri in seen:
                    continue
                seen.add(uri)
                sources.append(GroundingSource(uri=uri, title=_get(annotation, "title") or uri))
    return sources


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class ItineraryClient:
    """Talks to the generation service. No retries: one failure ends the run."""

    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None):
        self.client = client or OpenAI(api_key=get_openai_api_key())
        self.model = model or get_openai_model_name()

    async def invoke(self, prompt: str) -> Any:
        """Send the prompt with web search grounding enabled."""
        logger.debug("Calling OpenAI Responses API: model=%s", self.model)
        try:
            return await asyncio.to_thread(
                self.client.responses.create,
                model=self.model,
                input=prompt,
                tools=[WEB_SEARCH_TOOL],
            )
        except Exception as exc:
            logger.error("Itinerary generation request failed: %s", exc)
            raise GenerationError(GenerationErrorKind.SERVICE_UNAVAILABLE, str(exc)) from exc

    def parse_response(self, response: Any) -> GenerationResult:
        """Extract, validate and attach grounding sources."""
        raw_text = _get(response, "output_text") or ""
        if not raw_text.strip():
            raise GenerationError(GenerationErrorKind.MALFORMED_RESPONSE, "empty response text")

        itinerary = parse_itinerary(extract_json_payload(raw_text))
        sources = extract_grounding_sources(response)
        logger.info(
            "Parsed itinerary with %d stops and %d sources",
            len(itinerary.stops),
            len(sources),
        )
        return GenerationResult(itinerary=itinerary, sources=tuple(sources))

    async def generate(self, prompt: str) -> GenerationResult:
        response = await self.invoke(prompt)
        return self.parse_response(response)


__all__ = [
    "ItineraryClient",
    "extract_json_payload",
    "parse_itinerary",
    "extract_grounding_sources",
]
