from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import FrozenSet
from urllib.parse import urlsplit, urlunsplit

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", flags=re.IGNORECASE)


class UrlNormalizer:
    """Strategy interface for website/competitor URLs typed into the form."""
    def normalize(self, s: str) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class GuessComUrlNormalizer(UrlNormalizer):
    """
    "acme" -> "https://acme.com", "Acme.io/about/" -> "https://acme.io/about".
    Hosts listed in no_guess_hosts (and anything with a dot or a port) never get ".com".
    """
    default_scheme: str = "https"
    guess_com_if_no_dot: bool = True
    no_guess_hosts: FrozenSet[str] = field(default_factory=frozenset)

    def normalize(self, s: str) -> str:
        s = re.sub(r"\s+", "", s or "")
        if not s:
            return ""

        if not _SCHEME_RE.match(s):
            s = f"{self.default_scheme}://{s}"

        parts = urlsplit(s)
        host = (parts.hostname or "").lower()
        try:
            port = parts.port
        except ValueError:
            return ""
        if not host:
            return ""

        no_guess = {h.lower() for h in self.no_guess_hosts}
        if self.guess_com_if_no_dot and "." not in host and port is None and host not in no_guess:
            host = host + ".com"

        netloc = host if port is None else f"{host}:{port}"
        path = parts.path.rstrip("/")
        return urlunsplit((parts.scheme.lower(), netloc, path, parts.query, ""))
