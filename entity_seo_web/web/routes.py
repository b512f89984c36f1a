## routes.py
from __future__ import annotations

import re

from flask import Blueprint, Response, abort, current_app, redirect, render_template, request, url_for

from entity_seo_web.config import AppSettings
from entity_seo_web.domain.errors import RunNotFoundError, ValidationError
from entity_seo_web.domain.models import AnalysisForm, AnalysisSession, Competitor, Leader
from entity_seo_web.domain.personas import PERSONAS
from entity_seo_web.renderers import build_report_context, csv_filename, run_to_csv
from entity_seo_web.repositories.run_repository import RunRepository
from entity_seo_web.services.analysis_service import AnalysisService
from entity_seo_web.services.score_aggregator import ScoreAggregator

LEADER_SLOTS = 3
KEYWORD_SLOTS = 3
COMPETITOR_SLOTS = 3

STRATEGY_FIELDS = (
    "name", "email", "phone", "company", "website",
    "goals", "budget", "timeline", "challenges", "competitors",
)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _padded(items: list, size: int, blank) -> list:
    return list(items) + [blank] * max(0, size - len(items))


def _form_from_request(form) -> AnalysisForm:
    def col(name: str) -> list[str]:
        return [(v or "").strip() for v in form.getlist(name)]

    leaders = tuple(Leader(name=n, role=r) for n, r in zip(col("leader_name"), col("leader_role")))

    c_names, c_urls = col("competitor_name"), col("competitor_url")
    c_lnames, c_lroles = col("competitor_leader_name"), col("competitor_leader_role")
    competitors = tuple(
        Competitor(
            name=c_names[i] if i < len(c_names) else "",
            url=url,
            leader_name=c_lnames[i] if i < len(c_lnames) else "",
            leader_role=c_lroles[i] if i < len(c_lroles) else "",
        )
        for i, url in enumerate(c_urls)
    )

    return AnalysisForm(
        company_name=(form.get("company_name") or "").strip(),
        website_url=(form.get("website_url") or "").strip(),
        leaders=leaders,
        keywords=tuple(col("keyword")),
        competitors=competitors,
    )


def _index_model(
    form: AnalysisForm,
    selected: tuple[str, ...],
    error: str | None = None,
    last_run: AnalysisSession | None = None,
) -> dict:
    return dict(
        personas=PERSONAS,
        selected_personas=selected,
        company_name=form.company_name,
        website_url=form.website_url,
        leaders=_padded(list(form.leaders), LEADER_SLOTS, Leader()),
        keywords=_padded(list(form.keywords), KEYWORD_SLOTS, ""),
        competitors=_padded(list(form.competitors), COMPETITOR_SLOTS, Competitor()),
        error=error,
        last_run=last_run,
    )


def create_blueprint(analysis_service: AnalysisService, run_repo: RunRepository, settings: AppSettings) -> Blueprint:
    bp = Blueprint("web", __name__)

    def load_session(run_id: str) -> AnalysisSession:
        try:
            return run_repo.get(run_id)
        except RunNotFoundError:
            abort(404)

    def load_finished(run_id: str) -> AnalysisSession:
        session = load_session(run_id)
        if not session.finished:
            abort(409)
        return session

    @bp.get("/")
    def index():
        model = _index_model(AnalysisForm(), settings.default_personas, last_run=run_repo.latest())
        return render_template("index.html", **model)

    @bp.post("/run")
    def run_analysis():
        form = _form_from_request(request.form)
        selected = tuple(request.form.getlist("personas"))

        try:
            session = analysis_service.launch_session(form, selected)
        except ValidationError as e:
            current_app.logger.info("Run rejected: %s", e)
            return render_template("index.html", **_index_model(form, selected, error=str(e))), 400

        run = session.run
        current_app.logger.info("Run %s started: %d targets x %d personas",
                                run.run_id, len(run.targets), len(run.persona_ids))
        return redirect(url_for("web.show_run", run_id=run.run_id), code=303)

    @bp.get("/runs/<run_id>")
    def show_run(run_id: str):
        session = load_session(run_id)
        if not session.finished:
            return render_template("progress.html", run_id=run_id, session=session)

        run = session.run
        current_app.logger.info("Run %s shown: %ss, overall=%s",
                                run.run_id, run.duration_seconds, ScoreAggregator(run).overall_score())
        return render_template("result.html", **build_report_context(session))

    @bp.get("/runs/<run_id>/export.csv")
    def export_csv(run_id: str):
        session = load_finished(run_id)
        filename = csv_filename(session.form.company_name)
        return Response(
            run_to_csv(session.run),
            mimetype="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @bp.get("/runs/<run_id>/report")
    def report(run_id: str):
        return render_template("report.html", **build_report_context(load_finished(run_id)))

    @bp.post("/strategy-request")
    def strategy_request():
        data = {k: (request.form.get(k) or "").strip() for k in STRATEGY_FIELDS}
        run_id = (request.form.get("run_id") or "").strip()

        if not data["name"] or not _EMAIL_RE.match(data["email"]):
            return render_template(
                "strategy.html", submitted=False, run_id=run_id, data=data,
                error="Please provide your name and a valid email address.",
            ), 400

        session = run_repo.find(run_id) if run_id else None
        scores = None
        if session is not None and session.finished:
            agg = ScoreAggregator(session.run)
            scores = dict(overall=agg.overall_score(), **agg.category_scores())

        # Strategy requests are not persisted; the log is the hand-off.
        current_app.logger.info("Strategy request: %r scores=%r", data, scores)
        return render_template("strategy.html", submitted=True, run_id=run_id, data=data, error=None)

    return bp
