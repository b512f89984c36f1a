from .errors import EntitySeoError, ParseError, RunNotFoundError, UpstreamError, ValidationError
from .models import (
    AnalysisForm,
    AnalysisRun,
    AnalysisSession,
    Backlink,
    Competitor,
    EntityTarget,
    Leader,
    PersonaResult,
    Progress,
    SourceRef,
    TargetResults,
)

__all__ = [
    "EntitySeoError",
    "ParseError",
    "RunNotFoundError",
    "UpstreamError",
    "ValidationError",
    "AnalysisForm",
    "AnalysisRun",
    "AnalysisSession",
    "Backlink",
    "Competitor",
    "EntityTarget",
    "Leader",
    "PersonaResult",
    "Progress",
    "SourceRef",
    "TargetResults",
]
