"""Turn routing: query labels and the route decisions between workflow steps.
Routes are enum members, never raw strings, so each predicate can only return
the transitions that are legal from its step.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

DEFAULT_LANGUAGE = "en"


class QueryLabel(str, Enum):
    """Classification of a user question."""

    GREETING = "greeting"
    DOMAIN = "domain"
    OTHER = "other"


class Route(str, Enum):
    """Next step of the turn workflow."""

    TRANSLATE_IN = "translate_in"
    CLASSIFY = "classify"
    SIMPLE_RESPONSE = "simple_response"
    TRANSFORM = "transform"
    TRANSLATE_OUT = "translate_out"
    SYNTHESIZE_AUDIO = "synthesize_audio"
    END = "end"


def _normalize(text: str | None) -> str:
    """Normalize for matching: strip and lowercase."""
    return (text or "").strip().lower()


def parse_label(raw: str | None) -> QueryLabel:
    """
    Map raw model output onto a QueryLabel.
    Anything that is not exactly one of the labels after normalization is OTHER.
    """
    normalized = _normalize(raw)
    for label in QueryLabel:
        if normalized == label.value:
            return label
    return QueryLabel.OTHER


def needs_translation(language: str | None) -> bool:
    """True when a language is set and it is not English."""
    normalized = _normalize(language)
    return bool(normalized) and normalized != DEFAULT_LANGUAGE


def route_after_start(state: Mapping[str, Any]) -> Route:
    if needs_translation(state.get("target_language")):
        return Route.TRANSLATE_IN
    return Route.CLASSIFY


def route_after_classify(state: Mapping[str, Any]) -> Route:
    """Domain questions take the retrieval branch; greetings and everything else get a simple response."""
    label = state.get("query_label")
    if label == QueryLabel.DOMAIN:
        return Route.TRANSFORM
    return Route.SIMPLE_RESPONSE


def route_after_answer(state: Mapping[str, Any]) -> Route:
    """Shared routing after SimpleResponse and Generate."""
    if needs_translation(state.get("target_language")):
        return Route.TRANSLATE_OUT
    if state.get("audio_requested"):
        return Route.SYNTHESIZE_AUDIO
    return Route.END


def route_after_output_translation(state: Mapping[str, Any]) -> Route:
    if state.get("audio_requested"):
        return Route.SYNTHESIZE_AUDIO
    return Route.END
