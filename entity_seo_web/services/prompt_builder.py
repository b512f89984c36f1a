from __future__ import annotations

from typing import Optional

from entity_seo_web.domain.errors import ValidationError
from entity_seo_web.domain.models import (
    HINT_BACKLINKS,
    HINT_COMPETITOR,
    HINT_ENTITY,
    HINT_LEADERSHIP,
    EntityTarget,
)

_BASE_FIELDS = [
    '  "summary": "2-3 sentence summary of findings"',
    '  "entityFound": true/false',
    '  "confidenceScore": 1-10',
]

_SOURCES_FIELD = (
    '  "topSources": [\n'
    '    {"url": "source url", "title": "source title", "snippet": "brief description"}\n'
    "  ]"
)

_SOURCES_WITH_DA_FIELD = (
    '  "topSources": [\n'
    '    {"url": "source url", "title": "source title", "snippet": "brief description", '
    '"domainAuthority": 1-100}\n'
    "  ]"
)

_SENTIMENT_SCORE_FIELD = '  "sentimentScore": 1-10 (1 = very negative, 10 = very positive)'

_LINK_FIELDS = [
    '  "backlinks": [\n'
    '    {"url": "linking page url", "anchorText": "anchor text", "domainAuthority": 1-100, '
    '"type": "editorial/directory/guest post/citation"}\n'
    "  ]",
    '  "pressOpportunities": [\n'
    '    {"outlet": "publication name", "url": "publication url", "reason": "why it fits"}\n'
    "  ]",
    '  "podcastOpportunities": [\n'
    '    {"name": "podcast name", "url": "podcast url", "reason": "why it fits"}\n'
    "  ]",
]

_TAIL_FIELDS = [
    '  "sentiment": "positive/neutral/negative"',
    '  "recommendations": "brief recommendation for improving visibility"',
]


def schema_fields(analysis_hint: Optional[str]) -> str:
    """Literal JSON template the model is asked to fill in for the given hint."""
    hint = analysis_hint or HINT_ENTITY
    fields = list(_BASE_FIELDS)

    if hint in (HINT_BACKLINKS, HINT_COMPETITOR):
        fields.append(_SOURCES_WITH_DA_FIELD)
        fields += _LINK_FIELDS
    else:
        fields.append(_SOURCES_FIELD)

    if hint == HINT_LEADERSHIP:
        fields.append(_SENTIMENT_SCORE_FIELD)

    fields += _TAIL_FIELDS
    return "{\n" + ",\n".join(fields) + "\n}"


def build_query_prompt(query: str, persona_name: str, analysis_type: Optional[str] = None) -> str:
    query = (query or "").strip()
    if not query:
        raise ValidationError("Query is required")

    persona_name = (persona_name or "").strip() or "an AI search engine"

    return (
        f'You are simulating how the AI search engine "{persona_name}" would respond to a query. '
        "Search the web and provide information as that AI would.\n\n"
        f"Query: {query}\n\n"
        "Provide your response in this JSON format "
        "(respond ONLY with valid JSON, no markdown, no code fences, no text before or after the JSON):\n"
        f"{schema_fields(analysis_type)}"
    )


def build_prompt(target: EntityTarget, persona_name: str) -> str:
    return build_query_prompt(target.query_text, persona_name, target.analysis_hint)
