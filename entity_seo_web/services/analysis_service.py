from __future__ import annotations

import logging
import uuid
from collections import deque
from concurrent.futures import Executor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Deque, Iterable, List, Optional

from entity_seo_web.domain.errors import ValidationError
from entity_seo_web.domain.models import (
    IDLE_PROGRESS,
    AnalysisForm,
    AnalysisRun,
    AnalysisSession,
    EntityTarget,
    PersonaResult,
    Progress,
)
from entity_seo_web.domain.personas import clean_persona_ids, persona_name
from entity_seo_web.repositories.run_repository import RunRepository
from entity_seo_web.services.prompt_builder import build_prompt, build_query_prompt
from entity_seo_web.services.query_client import PersonaQueryClient
from entity_seo_web.services.response_normalizer import normalize
from entity_seo_web.services.target_builder import TargetBuilder

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Progress], None]


@dataclass(frozen=True)
class WorkItem:
    target: EntityTarget
    persona_id: str


@dataclass
class PersonaAnalyzer:
    """Single-call pipeline behind /api/analyze: prompt -> model -> normalized result."""
    query_client: PersonaQueryClient

    def analyze(self, query: str, llm_name: str, analysis_type: Optional[str] = None) -> PersonaResult:
        prompt = build_query_prompt(query, llm_name, analysis_type)
        return normalize(self.query_client.query(prompt))


@dataclass
class AnalysisService:
    """
    Service layer: drives one multi-persona analysis run.
    Work items are consumed one at a time; a failing cell is recorded and the run moves on.
    """
    query_client: PersonaQueryClient
    target_builder: TargetBuilder = field(default_factory=TargetBuilder)
    run_repo: Optional[RunRepository] = None
    executor: Optional[Executor] = None

    def plan(self, form: AnalysisForm, persona_ids: Iterable[str]) -> tuple[List[EntityTarget], tuple[str, ...]]:
        personas = clean_persona_ids(persona_ids)
        if not personas:
            raise ValidationError("Please select at least one AI search engine.")

        targets = self.target_builder.derive(form)
        if not targets:
            raise ValidationError("Please fill in at least one field.")

        return targets, personas

    def prepare(self, form: AnalysisForm, persona_ids: Iterable[str]) -> AnalysisRun:
        """Validated, empty run with every target registered. Nothing is queried yet."""
        targets, personas = self.plan(form, persona_ids)

        run = AnalysisRun(
            run_id=f"{datetime.now():%Y%m%d_%H%M%S}_{uuid.uuid4().hex[:6]}",
            persona_ids=personas,
        )
        for t in targets:
            run.add_target(t)
        return run

    def execute(self, run: AnalysisRun, on_progress: Optional[ProgressCallback] = None) -> AnalysisRun:
        started = datetime.now()
        queue: Deque[WorkItem] = deque(
            WorkItem(t, pid) for t in run.work_targets() for pid in run.persona_ids
        )
        progress = Progress(completed=0, total=len(queue), message="Starting analysis...")
        _emit(on_progress, progress)

        logger.info("Run %s: %d targets x %d personas = %d calls",
                    run.run_id, len(run.targets), len(run.persona_ids), progress.total)

        while queue:
            item = queue.popleft()
            name = persona_name(item.persona_id)

            run.record(item.target.label, item.persona_id, self._analyze_cell(item, name))

            progress = progress.advanced(f"Analyzed {item.target.label} with {name}")
            logger.info("Run %s: %d/%d %s", run.run_id, progress.completed, progress.total, progress.message)
            _emit(on_progress, progress)

        finished = datetime.now()
        run.freeze(
            generated_at=finished.strftime("%Y-%m-%d %H:%M:%S"),
            duration_seconds=int((finished - started).total_seconds()),
        )
        return run

    def run_analysis(
        self,
        form: AnalysisForm,
        persona_ids: Iterable[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> AnalysisRun:
        return self.execute(self.prepare(form, persona_ids), on_progress)

    def _analyze_cell(self, item: WorkItem, name: str) -> PersonaResult:
        prompt = build_prompt(item.target, name)
        try:
            raw = self.query_client.query(prompt)
        except Exception as e:
            logger.warning("Query failed for %r with %s: %s", item.target.label, name, e)
            return PersonaResult.failure(str(e))
        return normalize(raw)

    def _new_session(self, form: AnalysisForm, persona_ids: Iterable[str]) -> AnalysisSession:
        run = self.prepare(form, persona_ids)
        session = AnalysisSession(
            form=form,
            persona_ids=run.persona_ids,
            run=run,
            progress=Progress(total=len(run.targets) * len(run.persona_ids), message="Waiting to start..."),
        )
        if self.run_repo is not None:
            self.run_repo.save(session)
        return session

    def _execute_session(self, session: AnalysisSession, on_progress: Optional[ProgressCallback] = None) -> None:
        def track(p: Progress) -> None:
            session.progress = p
            _emit(on_progress, p)

        try:
            self.execute(session.run, on_progress=track)
        finally:
            session.progress = IDLE_PROGRESS

    def start_session(
        self,
        form: AnalysisForm,
        persona_ids: Iterable[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> AnalysisSession:
        """Runs in the caller's thread. The session is visible in the repository while it runs."""
        session = self._new_session(form, persona_ids)
        self._execute_session(session, on_progress)
        return session

    def launch_session(self, form: AnalysisForm, persona_ids: Iterable[str]) -> AnalysisSession:
        """
        Validates and stores the session, then hands the run to the executor and returns at once.
        Callers follow it through RunRepository (status/progress).
        """
        if self.executor is None:
            raise RuntimeError("AnalysisService has no executor for background runs.")

        session = self._new_session(form, persona_ids)
        self.executor.submit(self._run_in_background, session)
        logger.info("Run %s queued", session.run.run_id)
        return session

    def _run_in_background(self, session: AnalysisSession) -> None:
        try:
            self._execute_session(session)
        except Exception as e:
            logger.exception("Run %s failed", session.run.run_id)
            session.error = str(e)


def _emit(callback: Optional[ProgressCallback], progress: Progress) -> None:
    if callback is not None:
        callback(progress)
