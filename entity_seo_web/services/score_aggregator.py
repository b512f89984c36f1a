from __future__ import annotations

import math
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from entity_seo_web.domain.models import (
    COMPETITOR_KINDS,
    KIND_COMPANY,
    KIND_COMPETITOR,
    KIND_KEYWORD,
    KIND_LEADER,
    KIND_WEBSITE,
    AnalysisRun,
    Backlink,
    PersonaResult,
)
from entity_seo_web.domain.personas import persona_name

NEUTRAL_SENTIMENT = 5
MAX_BACKLINK_GAP = 3
MAX_RECOMMENDATIONS = 5

CATEGORY_KINDS = OrderedDict([
    ("company", frozenset({KIND_COMPANY, KIND_WEBSITE})),
    ("leadership", frozenset({KIND_LEADER})),
    ("keywords", frozenset({KIND_KEYWORD})),
])


def round_score(x: float) -> float:
    """Nearest 0.1, halves rounded up."""
    return math.floor(x * 10 + 0.5) / 10


def _mean(values: List[float]) -> float:
    return round_score(sum(values) / len(values)) if values else 0.0


@dataclass(frozen=True)
class StatusBand:
    label: str
    description: str
    min_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "description": self.description}


# Highest band first
STATUS_BANDS = (
    StatusBand("Excellent", "AI search engines recognize your entity and describe it with confidence.", 8),
    StatusBand("Good", "Your entity is visible in AI answers, with room to strengthen its signals.", 6),
    StatusBand("Needs Work", "AI search engines know of you, but answers are thin or low-confidence.", 4),
    StatusBand("Poor", "AI search engines struggle to find reliable information about you.", 2),
    StatusBand("Critical", "Your entity is largely invisible to AI search.", 0),
)


def status_band(score: float) -> StatusBand:
    for band in STATUS_BANDS:
        if score >= band.min_score:
            return band
    return STATUS_BANDS[-1]


def score_color(score: float) -> str:
    if score >= 7:
        return "#00c853"
    if score >= 4:
        return "#ffc107"
    return "#ff5252"


@dataclass(frozen=True)
class LeaderSentiment:
    label: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "score": self.score}


@dataclass(frozen=True)
class Recommendations:
    press: List[Dict[str, Any]]
    podcasts: List[Dict[str, Any]]
    backlinks: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {"press": self.press, "podcasts": self.podcasts, "backlinks": self.backlinks}


def _url_key(url: Optional[str]) -> str:
    return (url or "").strip().lower().rstrip("/")


def _scored(result: PersonaResult) -> bool:
    return not result.error and result.confidence_score is not None


def _dedupe(items: Iterable[Dict[str, Any]], *keys: str, limit: int = MAX_RECOMMENDATIONS) -> List[Dict[str, Any]]:
    """First item per natural key (first non-empty of `keys`); items without a key are dropped."""
    seen = set()
    out: List[Dict[str, Any]] = []
    for item in items:
        key = next((str(item[k]).strip().lower() for k in keys if str(item.get(k) or "").strip()), "")
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(item)
        if len(out) >= limit:
            break
    return out


@dataclass(frozen=True)
class ScoreAggregator:
    """Read-only views over a finished AnalysisRun. Nothing here mutates the run."""
    run: AnalysisRun

    def _confidences(self, kinds: Optional[frozenset] = None, persona_id: Optional[str] = None) -> List[float]:
        values = []
        for _, tr, pid, result in self.run.cells():
            if tr.kind in COMPETITOR_KINDS or not _scored(result):
                continue
            if kinds is not None and tr.kind not in kinds:
                continue
            if persona_id is not None and pid != persona_id:
                continue
            values.append(result.confidence_score)
        return values

    def overall_score(self) -> float:
        return _mean(self._confidences())

    def category_scores(self) -> Dict[str, float]:
        return {name: _mean(self._confidences(kinds)) for name, kinds in CATEGORY_KINDS.items()}

    def persona_scores(self) -> Dict[str, float]:
        return {pid: _mean(self._confidences(persona_id=pid)) for pid in self.run.persona_ids}

    def leadership_sentiment(self) -> List[LeaderSentiment]:
        out = []
        for label, tr in self.run.targets.items():
            if tr.kind != KIND_LEADER or not tr.results:
                continue
            scores = [
                r.sentiment_score if r.sentiment_score is not None else NEUTRAL_SENTIMENT
                for r in tr.results.values()
            ]
            out.append(LeaderSentiment(label=label, score=_mean(scores)))
        return out

    def _backlinks_for(self, kind: str) -> Iterable[Backlink]:
        for _, tr, _, result in self.run.cells():
            if tr.kind == kind and not result.error:
                yield from (result.backlinks or ())

    def backlink_gap(self) -> List[Backlink]:
        """Competitor backlinks the website does not have yet, strongest domains first."""
        own = {_url_key(b.url) for b in self._backlinks_for(KIND_WEBSITE)}

        missing: Dict[str, Backlink] = {}
        for b in self._backlinks_for(KIND_COMPETITOR):
            key = _url_key(b.url)
            if key and key not in own and key not in missing:
                missing[key] = b

        ranked = sorted(missing.values(), key=lambda b: b.domain_authority or 0, reverse=True)
        return ranked[:MAX_BACKLINK_GAP]

    def recommendations(self) -> Recommendations:
        press: List[Dict[str, Any]] = []
        podcasts: List[Dict[str, Any]] = []
        for _, _, _, result in self.run.cells():
            press += result.press_opportunities or ()
            podcasts += result.podcast_opportunities or ()

        backlinks = [b.to_dict() for b in self._backlinks_for(KIND_COMPETITOR)]

        return Recommendations(
            press=_dedupe(press, "outlet", "name"),
            podcasts=_dedupe(podcasts, "name"),
            backlinks=_dedupe(backlinks, "url"),
        )

    def status(self) -> StatusBand:
        return status_band(self.overall_score())

    def summary(self) -> Dict[str, Any]:
        overall = self.overall_score()
        return {
            "overall": overall,
            "status": status_band(overall).to_dict(),
            "categories": self.category_scores(),
            "personas": [
                {"id": pid, "name": persona_name(pid), "score": score}
                for pid, score in self.persona_scores().items()
            ],
            "leadershipSentiment": [s.to_dict() for s in self.leadership_sentiment()],
            "backlinkGap": [b.to_dict() for b in self.backlink_gap()],
            "recommendations": self.recommendations().to_dict(),
        }
