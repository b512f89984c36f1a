from __future__ import annotations

from typing import Any, Dict, List

from entity_seo_web.domain.models import AnalysisForm, AnalysisSession
from entity_seo_web.domain.personas import persona_name
from entity_seo_web.services.score_aggregator import ScoreAggregator, score_color

SUMMARY_PREVIEW_CHARS = 200


def _preview(text: str) -> str:
    text = text or "N/A"
    return text if len(text) <= SUMMARY_PREVIEW_CHARS else text[:SUMMARY_PREVIEW_CHARS] + "..."


def competitor_list(form: AnalysisForm) -> str:
    return ", ".join(c.name or c.url for c in form.competitors if c.name or c.url)


def build_report_context(session: AnalysisSession) -> Dict[str, Any]:
    """
    Template model for report.html (the printable report) and the dashboard in result.html.
    Everything is derived from the frozen run; nothing is recomputed in the template.
    """
    run = session.run
    agg = ScoreAggregator(run)
    summary = agg.summary()

    details: List[Dict[str, Any]] = []
    for label, tr in run.targets.items():
        details.append({
            "label": label,
            "type": tr.kind,
            "query": tr.query_text,
            "rows": [
                {
                    "persona": persona_name(pid),
                    "score": r.confidence_score or 0,
                    "color": score_color(r.confidence_score or 0),
                    "sentiment": r.sentiment or "",
                    "found": bool(r.entity_found),
                    "error": r.error,
                    "summary": _preview(r.summary or ""),
                    "sources": [s.to_dict() for s in (r.top_sources or ())],
                }
                for pid, r in tr.results.items()
            ],
        })

    categories = [
        {"name": name.title(), "score": score, "color": score_color(score)}
        for name, score in summary["categories"].items()
    ]
    personas = [dict(p, color=score_color(p["score"])) for p in summary["personas"]]

    return {
        "run_id": run.run_id,
        "company_name": session.form.company_name or "Analysis",
        "generated_at": run.generated_at,
        "duration_seconds": run.duration_seconds,
        "overall": summary["overall"],
        "overall_color": score_color(summary["overall"]),
        "status": summary["status"],
        "categories": categories,
        "personas": personas,
        "leadership_sentiment": summary["leadershipSentiment"],
        "backlink_gap": summary["backlinkGap"],
        "recommendations": summary["recommendations"],
        "details": details,
        # Strategy form prefill
        "form_company": session.form.company_name,
        "form_website": session.form.website_url,
        "form_competitors": competitor_list(session.form),
    }
