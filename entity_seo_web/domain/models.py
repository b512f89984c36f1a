from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

# Target kinds
KIND_COMPANY = "company"
KIND_WEBSITE = "website"
KIND_LEADER = "leader"
KIND_KEYWORD = "keyword"
KIND_COMPETITOR = "competitor"
KIND_COMPETITOR_LEADER = "competitor_leader"

COMPETITOR_KINDS = frozenset({KIND_COMPETITOR, KIND_COMPETITOR_LEADER})

# Analysis hints (also the analysisType values accepted by /api/analyze)
HINT_ENTITY = "entity"
HINT_BACKLINKS = "backlinks"
HINT_LEADERSHIP = "leadership"
HINT_COMPETITOR = "competitor"

ANALYSIS_HINTS = (HINT_ENTITY, HINT_BACKLINKS, HINT_LEADERSHIP, HINT_COMPETITOR)


def _compact(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


@dataclass(frozen=True)
class EntityTarget:
    kind: str                   # one of the KIND_* constants
    label: str                  # unique within a run
    query_text: str
    analysis_hint: Optional[str] = None


@dataclass(frozen=True)
class SourceRef:
    url: Optional[str] = None
    title: Optional[str] = None
    snippet: Optional[str] = None
    domain_authority: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "url": self.url,
            "title": self.title,
            "snippet": self.snippet,
            "domainAuthority": self.domain_authority,
        })


@dataclass(frozen=True)
class Backlink:
    url: Optional[str] = None
    anchor_text: Optional[str] = None
    domain_authority: Optional[int] = None
    type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "url": self.url,
            "anchorText": self.anchor_text,
            "domainAuthority": self.domain_authority,
            "type": self.type,
        })


@dataclass(frozen=True)
class PersonaResult:
    """
    One persona's answer for one target (a "cell").
    Fields the model did not return stay None.
    """
    summary: Optional[str] = None
    entity_found: Optional[bool] = None
    confidence_score: Optional[int] = None   # 1..10, 0 on error
    sentiment_score: Optional[int] = None    # 1..10
    sentiment: Optional[str] = None          # "positive" | "neutral" | "negative"
    top_sources: Optional[Tuple[SourceRef, ...]] = None
    backlinks: Optional[Tuple[Backlink, ...]] = None
    press_opportunities: Optional[Tuple[Dict[str, Any], ...]] = None
    podcast_opportunities: Optional[Tuple[Dict[str, Any], ...]] = None
    recommendations: Optional[str] = None
    error: bool = False

    @classmethod
    def failure(cls, message: str) -> "PersonaResult":
        return cls(
            summary=f"Error: {message}",
            confidence_score=0,
            sentiment_score=5,
            error=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape used by /api/analyze (camelCase, absent fields omitted)."""
        d = _compact({
            "summary": self.summary,
            "entityFound": self.entity_found,
            "confidenceScore": self.confidence_score,
            "sentimentScore": self.sentiment_score,
            "sentiment": self.sentiment,
            "topSources": [s.to_dict() for s in self.top_sources] if self.top_sources is not None else None,
            "backlinks": [b.to_dict() for b in self.backlinks] if self.backlinks is not None else None,
            "pressOpportunities": list(self.press_opportunities) if self.press_opportunities is not None else None,
            "podcastOpportunities": (
                list(self.podcast_opportunities) if self.podcast_opportunities is not None else None
            ),
            "recommendations": self.recommendations,
        })
        if self.error:
            d["error"] = True
        return d


@dataclass
class TargetResults:
    kind: str
    query_text: str
    analysis_hint: Optional[str] = None
    results: Dict[str, PersonaResult] = field(default_factory=dict)


@dataclass
class AnalysisRun:
    """
    Result matrix for one submitted form: target label -> persona id -> cell.
    Append-only while the orchestrator fills it; read-only after freeze().
    """
    run_id: str
    persona_ids: Tuple[str, ...]
    targets: Dict[str, TargetResults] = field(default_factory=dict)
    generated_at: str = ""
    duration_seconds: int = 0
    _frozen: bool = field(default=False, repr=False)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add_target(self, target: EntityTarget) -> None:
        self._ensure_writable()
        if target.label in self.targets:
            raise ValueError(f"Duplicate target label: {target.label!r}")
        self.targets[target.label] = TargetResults(
            kind=target.kind, query_text=target.query_text, analysis_hint=target.analysis_hint,
        )

    def record(self, label: str, persona_id: str, result: PersonaResult) -> None:
        self._ensure_writable()
        if persona_id not in self.persona_ids:
            raise ValueError(f"Persona {persona_id!r} was not selected for this run.")
        self.targets[label].results[persona_id] = result

    def freeze(self, generated_at: str = "", duration_seconds: int = 0) -> None:
        self.generated_at = generated_at
        self.duration_seconds = duration_seconds
        self._frozen = True

    def _ensure_writable(self) -> None:
        if self._frozen:
            raise RuntimeError(f"Run {self.run_id} is frozen.")

    def work_targets(self) -> Iterator[EntityTarget]:
        for label, tr in self.targets.items():
            yield EntityTarget(kind=tr.kind, label=label, query_text=tr.query_text, analysis_hint=tr.analysis_hint)

    def cells(self) -> Iterator[Tuple[str, TargetResults, str, PersonaResult]]:
        for label, tr in self.targets.items():
            for persona_id, result in tr.results.items():
                yield label, tr, persona_id, result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runId": self.run_id,
            "personas": list(self.persona_ids),
            "generatedAt": self.generated_at,
            "durationSeconds": self.duration_seconds,
            "targets": {
                label: {
                    "type": tr.kind,
                    "query": tr.query_text,
                    "results": {pid: r.to_dict() for pid, r in tr.results.items()},
                }
                for label, tr in self.targets.items()
            },
        }


@dataclass(frozen=True)
class Progress:
    completed: int = 0
    total: int = 0
    message: str = ""

    def advanced(self, message: str) -> "Progress":
        return Progress(completed=self.completed + 1, total=self.total, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {"completed": self.completed, "total": self.total, "message": self.message}


IDLE_PROGRESS = Progress()


# -----------------------------
# Form input
# -----------------------------
@dataclass(frozen=True)
class Leader:
    name: str = ""
    role: str = ""


@dataclass(frozen=True)
class Competitor:
    name: str = ""
    url: str = ""
    leader_name: str = ""
    leader_role: str = ""


def _s(raw: Any) -> str:
    return str(raw or "").strip()


def _records(raw: Any) -> list:
    """Mapping items of a JSON list; any other shape is treated as empty."""
    if not isinstance(raw, (list, tuple)):
        return []
    return [item for item in raw if isinstance(item, Mapping)]


def _keywords(raw: Any) -> Tuple[str, ...]:
    # A bare string is one keyword, not a sequence of characters.
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        return ()
    return tuple(_s(k) for k in raw if isinstance(k, str))


@dataclass(frozen=True)
class AnalysisForm:
    company_name: str = ""
    website_url: str = ""
    leaders: Tuple[Leader, ...] = ()
    keywords: Tuple[str, ...] = ()
    competitors: Tuple[Competitor, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisForm":
        """Accepts the camelCase JSON shape posted to /api/runs."""
        leaders = tuple(
            Leader(name=_s(l.get("name")), role=_s(l.get("role")))
            for l in _records(data.get("leaders"))
        )
        competitors = tuple(
            Competitor(
                name=_s(c.get("name")),
                url=_s(c.get("url")),
                leader_name=_s(c.get("leaderName")),
                leader_role=_s(c.get("leaderRole")),
            )
            for c in _records(data.get("competitors"))
        )
        return cls(
            company_name=_s(data.get("companyName")),
            website_url=_s(data.get("websiteUrl")),
            leaders=leaders,
            keywords=_keywords(data.get("keywords")),
            competitors=competitors,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "companyName": self.company_name,
            "websiteUrl": self.website_url,
            "leaders": [{"name": l.name, "role": l.role} for l in self.leaders],
            "keywords": list(self.keywords),
            "competitors": [
                {"name": c.name, "url": c.url, "leaderName": c.leader_name, "leaderRole": c.leader_role}
                for c in self.competitors
            ],
        }


SESSION_RUNNING = "running"
SESSION_DONE = "done"
SESSION_FAILED = "failed"


@dataclass
class AnalysisSession:
    """
    Everything one user submission owns: form, persona selection, latest run, progress.
    A new run replaces the previous one.

    The session is stored before its run executes, so readers on other threads see
    `progress` move while the run fills in. Only `progress`, `error` and the run's
    frozen flag change during execution; the run matrix is read once it is frozen.
    """
    form: AnalysisForm
    persona_ids: Tuple[str, ...]
    run: Optional[AnalysisRun] = None
    progress: Progress = IDLE_PROGRESS
    error: Optional[str] = None

    @property
    def status(self) -> str:
        if self.error is not None:
            return SESSION_FAILED
        if self.run is not None and self.run.frozen:
            return SESSION_DONE
        return SESSION_RUNNING

    @property
    def finished(self) -> bool:
        return self.status == SESSION_DONE

    def progress_dict(self) -> Dict[str, Any]:
        return {
            "runId": self.run.run_id if self.run else None,
            "status": self.status,
            "progress": self.progress.to_dict(),
            "error": self.error,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "form": self.form.to_dict(),
            "personas": list(self.persona_ids),
            "status": self.status,
            "progress": self.progress.to_dict(),
            "error": self.error,
            "run": self.run.to_dict() if self.finished else None,
        }
