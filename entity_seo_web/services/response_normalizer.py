from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, Optional, Tuple

from entity_seo_web.domain.errors import ParseError
from entity_seo_web.domain.models import Backlink, PersonaResult, SourceRef

logger = logging.getLogger(__name__)

SENTIMENTS = ("positive", "neutral", "negative")

FALLBACK_RECOMMENDATIONS = "Analysis completed"


def fallback_result(raw_text: str) -> PersonaResult:
    return PersonaResult(
        summary=raw_text,
        entity_found=False,
        confidence_score=5,
        sentiment_score=5,
        sentiment="neutral",
        top_sources=(),
        backlinks=(),
        press_opportunities=(),
        podcast_opportunities=(),
        recommendations=FALLBACK_RECOMMENDATIONS,
    )


# -----------------------------
# Stage 1: brace span
# -----------------------------
def extract_brace_span(text: str) -> Optional[str]:
    """Largest '{' ... '}' substring (first opening brace to last closing brace), or None."""
    start = text.find("{")
    if start < 0:
        return None
    end = text.rfind("}")
    if end < start:
        return None
    return text[start:end + 1]


# -----------------------------
# Stage 2: strict decode
# -----------------------------
def _number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise ParseError(f"{field}: expected a number, got a boolean")
    if not isinstance(value, (int, float, str)):
        raise ParseError(f"{field}: expected a number, got {type(value).__name__}")
    try:
        num = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError) as e:
        raise ParseError(f"{field}: not a number: {value!r}") from e
    if math.isnan(num) or math.isinf(num):
        raise ParseError(f"{field}: not a finite number")
    return num


def _score(data: Dict[str, Any], key: str) -> Optional[int]:
    if data.get(key) is None:
        return None
    num = _number(data[key], key)
    return max(1, min(10, int(round(num))))


def _authority(value: Any) -> Optional[int]:
    # Model estimates are advisory; unreadable values are dropped instead of failing the record.
    if value is None:
        return None
    try:
        num = _number(value, "domainAuthority")
    except ParseError:
        return None
    return max(0, min(100, int(round(num))))


def _text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return "\n".join(value)
    raise ParseError(f"{key}: expected text, got {type(value).__name__}")


def _flag(data: Dict[str, Any], key: str) -> Optional[bool]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ParseError(f"{key}: expected true/false, got {value!r}")


def _records(data: Dict[str, Any], key: str) -> Optional[Tuple[Dict[str, Any], ...]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ParseError(f"{key}: expected a list, got {type(value).__name__}")
    return tuple(item for item in value if isinstance(item, dict))


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _sentiment(data: Dict[str, Any]) -> Optional[str]:
    value = _text(data, "sentiment")
    if value is None:
        return None
    value = value.strip().lower()
    return value if value in SENTIMENTS else None


def decode_result(span: str) -> PersonaResult:
    try:
        data = json.loads(span)
    except (ValueError, RecursionError) as e:
        raise ParseError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(f"expected a JSON object, got {type(data).__name__}")

    sources = _records(data, "topSources")
    backlinks = _records(data, "backlinks")

    return PersonaResult(
        summary=_text(data, "summary"),
        entity_found=_flag(data, "entityFound"),
        confidence_score=_score(data, "confidenceScore"),
        sentiment_score=_score(data, "sentimentScore"),
        sentiment=_sentiment(data),
        top_sources=None if sources is None else tuple(
            SourceRef(
                url=_opt_str(s.get("url")),
                title=_opt_str(s.get("title")),
                snippet=_opt_str(s.get("snippet")),
                domain_authority=_authority(s.get("domainAuthority")),
            )
            for s in sources
        ),
        backlinks=None if backlinks is None else tuple(
            Backlink(
                url=_opt_str(b.get("url")),
                anchor_text=_opt_str(b.get("anchorText")),
                domain_authority=_authority(b.get("domainAuthority")),
                type=_opt_str(b.get("type")),
            )
            for b in backlinks
        ),
        press_opportunities=_records(data, "pressOpportunities"),
        podcast_opportunities=_records(data, "podcastOpportunities"),
        recommendations=_text(data, "recommendations"),
    )


def normalize(raw_text: Optional[str]) -> PersonaResult:
    """Best-effort model text -> PersonaResult. Never raises."""
    raw_text = raw_text or ""

    span = extract_brace_span(raw_text)
    if span is None:
        logger.debug("No JSON object in model output (%d chars); using fallback.", len(raw_text))
        return fallback_result(raw_text)

    try:
        return decode_result(span)
    except ParseError as e:
        logger.debug("Unparseable model output, using fallback: %s", e)
        return fallback_result(raw_text)
