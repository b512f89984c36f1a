## api.py
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from entity_seo_web.domain.errors import RunNotFoundError, ValidationError
from entity_seo_web.domain.models import ANALYSIS_HINTS, AnalysisForm, AnalysisSession
from entity_seo_web.repositories.run_repository import RunRepository
from entity_seo_web.services.analysis_service import AnalysisService, PersonaAnalyzer
from entity_seo_web.services.score_aggregator import ScoreAggregator

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Every verb is routed here so non-POST calls get the JSON 405 body instead of Flask's HTML page.
ANALYZE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _json_object(raw) -> dict:
    """Request bodies and nested objects must be JSON objects; anything else reads as empty."""
    return raw if isinstance(raw, dict) else {}


def _finished_body(session: AnalysisSession) -> dict:
    return dict(
        run_id=session.run.run_id,
        session=session.to_dict(),
        aggregates=ScoreAggregator(session.run).summary(),
    )


def create_api_blueprint(
    analyzer: PersonaAnalyzer,
    analysis_service: AnalysisService,
    run_repo: RunRepository,
) -> Blueprint:
    bp = Blueprint("api", __name__, url_prefix="/api")

    def load_session(run_id: str) -> AnalysisSession | None:
        try:
            return run_repo.get(run_id)
        except RunNotFoundError:
            return None

    @bp.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    @bp.route("/analyze", methods=ANALYZE_METHODS)
    def analyze():
        if request.method == "OPTIONS":
            return "", 200

        if request.method != "POST":
            return jsonify(error="Method not allowed"), 405

        body = _json_object(request.get_json(silent=True))
        query = str(body.get("query") or "").strip()
        if not query:
            return jsonify(error="Query is required"), 400

        llm_name = str(body.get("llmName") or "").strip()
        analysis_type = body.get("analysisType")
        if analysis_type not in ANALYSIS_HINTS:
            analysis_type = None

        try:
            result = analyzer.analyze(query, llm_name, analysis_type)
        except Exception as e:
            current_app.logger.exception("API Error")
            return jsonify(error="Analysis failed", message=str(e)), 500

        return jsonify(result.to_dict()), 200

    @bp.post("/runs")
    def create_run():
        body = _json_object(request.get_json(silent=True))
        form = AnalysisForm.from_dict(_json_object(body.get("form")) or body)
        personas = body.get("personas") or []
        if not isinstance(personas, list):
            return jsonify(error="personas must be a list"), 400

        persona_ids = [str(p) for p in personas]
        try:
            if body.get("wait", True) is False:
                session = analysis_service.launch_session(form, persona_ids)
            else:
                session = analysis_service.start_session(form, persona_ids)
        except ValidationError as e:
            return jsonify(error=str(e)), 400

        if not session.finished:
            return jsonify(session.progress_dict()), 202
        return jsonify(_finished_body(session)), 200

    @bp.get("/runs/<run_id>")
    def get_run(run_id: str):
        session = load_session(run_id)
        if session is None:
            return jsonify(error=f"Run {run_id!r} not found."), 404

        if not session.finished:
            return jsonify(run_id=run_id, session=session.to_dict()), 202
        return jsonify(_finished_body(session)), 200

    @bp.get("/runs/<run_id>/progress")
    def get_run_progress(run_id: str):
        session = load_session(run_id)
        if session is None:
            return jsonify(error=f"Run {run_id!r} not found."), 404
        return jsonify(session.progress_dict()), 200

    return bp
