"""Entity SEO Checker: multi-persona AI search visibility analysis."""

__version__ = "0.1.0"
