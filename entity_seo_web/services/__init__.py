from .analysis_service import AnalysisService, PersonaAnalyzer
from .query_client import PersonaQueryClient
from .score_aggregator import ScoreAggregator
from .target_builder import TargetBuilder
from .url_normalization import UrlNormalizer, GuessComUrlNormalizer

__all__ = [
    "AnalysisService",
    "PersonaAnalyzer",
    "PersonaQueryClient",
    "ScoreAggregator",
    "TargetBuilder",
    "UrlNormalizer",
    "GuessComUrlNormalizer",
]
