from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional

from flask import Flask

from entity_seo_web.adapters.llm_anthropic import AnthropicQueryClient
from entity_seo_web.config import AppSettings, IniConfig
from entity_seo_web.repositories.run_repository import RunRepository
from entity_seo_web.services.analysis_service import AnalysisService, PersonaAnalyzer
from entity_seo_web.services.query_client import PersonaQueryClient
from entity_seo_web.services.target_builder import TargetBuilder
from entity_seo_web.services.url_normalization import GuessComUrlNormalizer
from entity_seo_web.web import create_api_blueprint, create_blueprint


def create_app(
    settings: Optional[AppSettings] = None,
    query_client: Optional[PersonaQueryClient] = None,
    executor: Optional[Executor] = None,
) -> Flask:
    """
    Composition root. Tests pass settings, a fake query client and an inline executor;
    the CLI entry point passes nothing and everything is read from the INI.
    """
    if settings is None:
        settings = IniConfig.from_env_or_default().load_settings()

    if query_client is None:
        query_client = AnthropicQueryClient(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            max_tokens=settings.max_tokens,
            timeout_seconds=settings.timeout_seconds,
        )

    url_norm = GuessComUrlNormalizer(
        default_scheme=settings.default_scheme,
        guess_com_if_no_dot=settings.guess_com_if_no_dot,
        no_guess_hosts=settings.no_guess_hosts,
    )

    run_repo = RunRepository(max_runs=settings.max_runs_kept)

    if executor is None:
        executor = ThreadPoolExecutor(max_workers=settings.worker_threads, thread_name_prefix="analysis")

    analysis_service = AnalysisService(
        query_client=query_client,
        target_builder=TargetBuilder(url_normalizer=url_norm),
        run_repo=run_repo,
        executor=executor,
    )
    analyzer = PersonaAnalyzer(query_client=query_client)

    app = Flask(__name__)
    app.register_blueprint(create_blueprint(analysis_service, run_repo, settings))
    app.register_blueprint(create_api_blueprint(analyzer, analysis_service, run_repo))

    app.config["HOST"] = settings.flask_host
    app.config["PORT"] = settings.flask_port
    app.config["DEBUG"] = settings.flask_debug

    return app
