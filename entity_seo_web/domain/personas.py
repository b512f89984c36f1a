from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class Persona:
    id: str
    name: str
    color: str


PERSONAS: List[Persona] = [
    Persona("claude", "Claude (Anthropic)", "#7c3aed"),
    Persona("chatgpt", "ChatGPT (OpenAI)", "#10a37f"),
    Persona("perplexity", "Perplexity AI", "#1fb8cd"),
    Persona("gemini", "Gemini (Google)", "#ea4335"),
    Persona("copilot", "Copilot (Microsoft)", "#f59e0b"),
]

DEFAULT_PERSONA_IDS = ("claude", "chatgpt", "perplexity")

_BY_ID = {p.id: p for p in PERSONAS}


def persona_name(persona_id: str) -> str:
    """Display name for a persona id; unknown ids are used verbatim."""
    p = _BY_ID.get(persona_id)
    return p.name if p else persona_id


def clean_persona_ids(raw: Iterable[str]) -> tuple[str, ...]:
    # Deduplicate preserving order
    seen: set[str] = set()
    out = []
    for pid in raw:
        pid = (pid or "").strip()
        if pid and pid not in seen:
            seen.add(pid)
            out.append(pid)
    return tuple(out)
