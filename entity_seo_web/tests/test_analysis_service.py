from __future__ import annotations

from typing import Callable, List, Union

import pytest

from entity_seo_web.domain.errors import UpstreamError, ValidationError
from entity_seo_web.domain.models import AnalysisForm, Leader, PersonaResult, Progress
from entity_seo_web.repositories.run_repository import RunRepository
from entity_seo_web.services.analysis_service import AnalysisService, PersonaAnalyzer
from entity_seo_web.services.query_client import PersonaQueryClient
from entity_seo_web.services.score_aggregator import ScoreAggregator


# -----------------------------
# Test doubles
# -----------------------------
Reply = Union[str, Exception]


class ScriptedQueryClient(PersonaQueryClient):
    """Returns (or raises) whatever `reply` gives for each prompt and remembers the prompts."""
    def __init__(self, reply: Union[Reply, Callable[[str], Reply]]):
        self._reply = reply
        self.prompts: List[str] = []

    def query(self, prompt: str) -> str:
        self.prompts.append(prompt)
        r = self._reply(prompt) if callable(self._reply) else self._reply
        if isinstance(r, Exception):
            raise r
        return r


def by_persona(**replies: Reply) -> Callable[[str], Reply]:
    names = {
        "claude": "Claude (Anthropic)",
        "chatgpt": "ChatGPT (OpenAI)",
        "perplexity": "Perplexity AI",
    }

    def reply(prompt: str) -> Reply:
        for pid, r in replies.items():
            if f'"{names[pid]}"' in prompt:
                return r
        raise AssertionError(f"unexpected prompt: {prompt[:80]}")

    return reply


# -----------------------------
# Helpers
# -----------------------------
def make_service(reply, run_repo=None) -> tuple[AnalysisService, ScriptedQueryClient]:
    client = ScriptedQueryClient(reply)
    return AnalysisService(query_client=client, run_repo=run_repo), client


# -----------------------------
# Tests
# -----------------------------
def test_single_company_single_persona():
    service, client = make_service('{"summary": "Acme makes anvils", "confidenceScore": 7}')
    ticks: List[Progress] = []

    run = service.run_analysis(AnalysisForm(company_name="Acme"), ["chatgpt"], on_progress=ticks.append)

    assert list(run.targets) == ["Company: Acme"]
    assert len(client.prompts) == 1
    assert ticks[-1] == Progress(completed=1, total=1, message="Analyzed Company: Acme with ChatGPT (OpenAI)")
    assert run.targets["Company: Acme"].results["chatgpt"].confidence_score == 7
    assert run.frozen


def test_two_personas_average_to_overall_score():
    service, _ = make_service(by_persona(
        claude='{"confidenceScore": 8}',
        chatgpt='{"confidenceScore": 4}',
    ))

    run = service.run_analysis(AnalysisForm(company_name="Acme"), ["claude", "chatgpt"])

    assert ScoreAggregator(run).overall_score() == 6.0


def test_failing_cell_is_isolated():
    service, client = make_service(by_persona(
        claude='{"summary": "fine", "confidenceScore": 9}',
        chatgpt=UpstreamError("API returned 529"),
    ))
    ticks: List[Progress] = []

    run = service.run_analysis(AnalysisForm(company_name="Acme"), ["claude", "chatgpt"], on_progress=ticks.append)

    cells = run.targets["Company: Acme"].results
    assert cells["chatgpt"] == PersonaResult.failure("API returned 529")
    assert cells["chatgpt"].error is True
    assert cells["chatgpt"].confidence_score == 0
    assert cells["chatgpt"].summary == "Error: API returned 529"
    assert cells["claude"].summary == "fine"
    assert cells["claude"].confidence_score == 9
    assert ticks[-1].completed == ticks[-1].total == 2
    assert len(client.prompts) == 2


def test_unexpected_client_exception_is_also_isolated():
    service, _ = make_service(RuntimeError("socket closed"))

    run = service.run_analysis(AnalysisForm(company_name="Acme"), ["claude"])

    assert run.targets["Company: Acme"].results["claude"].error is True


def test_empty_form_is_rejected_before_any_call():
    service, client = make_service('{"confidenceScore": 5}')

    with pytest.raises(ValidationError):
        service.run_analysis(AnalysisForm(), ["chatgpt"])
    assert client.prompts == []


def test_no_personas_is_rejected_before_any_call():
    service, client = make_service('{"confidenceScore": 5}')

    with pytest.raises(ValidationError):
        service.run_analysis(AnalysisForm(company_name="Acme"), [])
    with pytest.raises(ValidationError):
        service.run_analysis(AnalysisForm(company_name="Acme"), ["", "  "])
    assert client.prompts == []


def test_progress_is_monotonic_and_ends_at_total():
    service, _ = make_service('{"confidenceScore": 5}')
    form = AnalysisForm(company_name="Acme", website_url="acme.com", keywords=("anvils",))
    ticks: List[Progress] = []

    service.run_analysis(form, ["claude", "chatgpt", "perplexity"], on_progress=ticks.append)

    completed = [t.completed for t in ticks]
    assert completed == sorted(completed)
    assert completed[0] == 0
    assert all(t.total == 9 for t in ticks)
    assert ticks[-1].completed == 9


def test_work_items_are_target_major():
    service, client = make_service('{"confidenceScore": 5}')
    form = AnalysisForm(company_name="Acme", leaders=(Leader("Jane", "CEO"),))

    service.run_analysis(form, ["claude", "chatgpt"])

    order = [("What is Acme" in p, "Claude (Anthropic)" in p) for p in client.prompts]
    assert order == [(True, True), (True, False), (False, True), (False, False)]


def test_duplicate_persona_ids_are_collapsed():
    service, client = make_service('{"confidenceScore": 5}')

    run = service.run_analysis(AnalysisForm(company_name="Acme"), ["claude", "claude"])

    assert run.persona_ids == ("claude",)
    assert len(client.prompts) == 1


def test_finished_run_is_read_only():
    service, _ = make_service('{"confidenceScore": 5}')
    run = service.run_analysis(AnalysisForm(company_name="Acme"), ["claude"])

    with pytest.raises(RuntimeError):
        run.record("Company: Acme", "claude", PersonaResult(confidence_score=1))


def test_start_session_stores_run_and_resets_progress():
    repo = RunRepository()
    service, _ = make_service('{"confidenceScore": 5}', run_repo=repo)
    ticks: List[Progress] = []

    session = service.start_session(AnalysisForm(company_name="Acme"), ["claude"], on_progress=ticks.append)

    assert repo.get(session.run.run_id) is session
    assert session.progress == Progress()
    assert ticks[-1].completed == 1
    assert session.to_dict()["run"]["targets"]["Company: Acme"]["type"] == "company"


def test_persona_analyzer_pipeline():
    client = ScriptedQueryClient('```json\n{"summary": "ok", "confidenceScore": 3}\n```')

    result = PersonaAnalyzer(query_client=client).analyze("best anvils", "Perplexity AI", "backlinks")

    assert result.summary == "ok"
    assert '"Perplexity AI"' in client.prompts[0]
    assert '"backlinks"' in client.prompts[0]


def test_persona_analyzer_propagates_upstream_errors():
    analyzer = PersonaAnalyzer(query_client=ScriptedQueryClient(UpstreamError("down")))

    with pytest.raises(UpstreamError):
        analyzer.analyze("q", "X")


class RecordingExecutor:
    def __init__(self):
        self.submitted = []

    def submit(self, fn, *args):
        self.submitted.append((fn, args))

    def run_all(self):
        for fn, args in self.submitted:
            fn(*args)


def test_session_progress_is_readable_from_repository_mid_run():
    repo = RunRepository()
    seen: List[Progress] = []

    def reply(prompt: str) -> str:
        seen.append(repo.latest().progress)
        return '{"confidenceScore": 6}'

    service, _ = make_service(reply, run_repo=repo)
    session = service.start_session(AnalysisForm(company_name="Acme", keywords=("anvils",)), ["claude", "chatgpt"])

    assert [p.completed for p in seen] == [0, 1, 2, 3]
    assert all(p.total == 4 for p in seen)
    assert seen[1].message == "Analyzed Company: Acme with Claude (Anthropic)"
    assert session.status == "done"
    assert session.progress == Progress()


def test_launch_session_stores_pending_session_first():
    repo = RunRepository()
    executor = RecordingExecutor()
    client = ScriptedQueryClient('{"confidenceScore": 7}')
    service = AnalysisService(query_client=client, run_repo=repo, executor=executor)

    session = service.launch_session(AnalysisForm(company_name="Acme"), ["claude"])

    assert repo.get(session.run.run_id) is session
    assert session.status == "running"
    assert session.progress.total == 1
    assert session.to_dict()["run"] is None
    assert client.prompts == []

    executor.run_all()

    assert session.status == "done"
    assert ScoreAggregator(session.run).overall_score() == 7.0


def test_launch_session_validates_before_queueing():
    executor = RecordingExecutor()
    service = AnalysisService(query_client=ScriptedQueryClient("{}"), run_repo=RunRepository(), executor=executor)

    with pytest.raises(ValidationError):
        service.launch_session(AnalysisForm(), ["claude"])
    assert executor.submitted == []


def test_launch_session_requires_executor():
    service, _ = make_service("{}")
    with pytest.raises(RuntimeError):
        service.launch_session(AnalysisForm(company_name="Acme"), ["claude"])


def test_background_failure_marks_session_failed(monkeypatch):
    executor = RecordingExecutor()
    service = AnalysisService(query_client=ScriptedQueryClient("{}"), run_repo=RunRepository(), executor=executor)
    session = service.launch_session(AnalysisForm(company_name="Acme"), ["claude"])

    def broken(run, on_progress=None):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(service, "execute", broken)
    executor.run_all()

    assert session.status == "failed"
    assert session.error == "disk on fire"
    assert session.progress == Progress()


def test_leader_hint_survives_prepare():
    service, client = make_service('{"confidenceScore": 5}')
    service.run_analysis(AnalysisForm(leaders=(Leader(name="Jane Doe", role="CEO"),)), ["claude"])

    assert "sentimentScore" in client.prompts[0]


def test_form_from_dict_treats_string_keyword_as_one():
    form = AnalysisForm.from_dict({"keywords": "anvils", "leaders": "Jane", "competitors": {"name": "Rival"}})

    assert form.keywords == ("anvils",)
    assert form.leaders == ()
    assert form.competitors == ()

    service, _ = make_service('{"confidenceScore": 5}')
    run = service.run_analysis(form, ["claude"])
    assert list(run.targets) == ["Keyword: anvils"]
