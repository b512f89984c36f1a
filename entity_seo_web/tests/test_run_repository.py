from __future__ import annotations

import pytest

from entity_seo_web.domain.errors import RunNotFoundError
from entity_seo_web.domain.models import AnalysisForm, AnalysisRun, AnalysisSession
from entity_seo_web.repositories.run_repository import RunRepository


def make_session(run_id: str) -> AnalysisSession:
    run = AnalysisRun(run_id=run_id, persona_ids=("claude",))
    run.freeze()
    return AnalysisSession(form=AnalysisForm(company_name=run_id), persona_ids=("claude",), run=run)


def test_save_and_get_round_trip():
    repo = RunRepository()
    session = make_session("r1")

    assert repo.save(session) == "r1"
    assert repo.get("r1") is session
    assert repo.find("r1") is session


def test_get_unknown_raises_and_find_returns_none():
    repo = RunRepository()

    with pytest.raises(RunNotFoundError) as exc:
        repo.get("missing")
    assert exc.value.run_id == "missing"
    assert repo.find("missing") is None


def test_oldest_runs_are_evicted():
    repo = RunRepository(max_runs=2)
    for rid in ("r1", "r2", "r3"):
        repo.save(make_session(rid))

    assert repo.find("r2") is not None
    assert repo.find("r1") is None
    assert repo.latest().run.run_id == "r3"


def test_resaving_refreshes_position():
    repo = RunRepository(max_runs=2)
    s1 = make_session("r1")
    repo.save(s1)
    repo.save(make_session("r2"))
    repo.save(s1)
    repo.save(make_session("r3"))

    assert repo.find("r1") is s1
    assert repo.find("r2") is None


def test_latest_on_empty_repo_is_none():
    assert RunRepository().latest() is None


def test_session_without_run_is_rejected():
    repo = RunRepository()
    with pytest.raises(ValueError):
        repo.save(AnalysisSession(form=AnalysisForm(), persona_ids=("claude",)))
