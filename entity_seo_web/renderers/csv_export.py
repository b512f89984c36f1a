from __future__ import annotations

import csv
import io
import re
from datetime import date
from typing import Optional

from entity_seo_web.domain.models import AnalysisRun
from entity_seo_web.domain.personas import persona_name

CSV_COLUMNS = ["Entity", "Type", "Persona", "Score", "Sentiment", "Found", "Summary"]


def run_to_csv(run: AnalysisRun) -> str:
    """One row per (target, persona) cell, in run order."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)

    for label, tr, persona_id, r in run.cells():
        writer.writerow([
            label,
            tr.kind,
            persona_name(persona_id),
            r.confidence_score or 0,
            r.sentiment or "",
            "true" if r.entity_found else "false",
            r.summary or "",
        ])

    return buf.getvalue()


def csv_filename(company_name: str, on: Optional[date] = None) -> str:
    slug = re.sub(r"[^A-Za-z0-9_-]+", "-", (company_name or "").strip()).strip("-") or "report"
    return f"entity-seo-{slug}-{(on or date.today()).isoformat()}.csv"
