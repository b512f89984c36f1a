from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from entity_seo_web.domain.errors import RunNotFoundError
from entity_seo_web.domain.models import AnalysisSession


@dataclass
class RunRepository:
    """
    Repository pattern: keeps finished sessions in process memory, keyed by run id,
    so export/report routes can find them. Oldest runs are evicted past max_runs.
    Nothing is written to disk.
    """
    max_runs: int = 20
    _sessions: "OrderedDict[str, AnalysisSession]" = field(default_factory=OrderedDict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def save(self, session: AnalysisSession) -> str:
        if session.run is None:
            raise ValueError("Cannot store a session without a run.")
        run_id = session.run.run_id
        with self._lock:
            self._sessions[run_id] = session
            self._sessions.move_to_end(run_id)
            while len(self._sessions) > max(1, self.max_runs):
                self._sessions.popitem(last=False)
        return run_id

    def find(self, run_id: str) -> Optional[AnalysisSession]:
        with self._lock:
            return self._sessions.get(run_id)

    def get(self, run_id: str) -> AnalysisSession:
        session = self.find(run_id)
        if session is None:
            raise RunNotFoundError(run_id)
        return session

    def latest(self) -> Optional[AnalysisSession]:
        with self._lock:
            if not self._sessions:
                return None
            return next(reversed(self._sessions.values()))
