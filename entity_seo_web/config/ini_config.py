"""INI-backed settings for the checker."""

import os
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path

from entity_seo_web.domain.personas import DEFAULT_PERSONA_IDS, clean_persona_ids

INI_DEFAULT_NAME = "EntitySeoChecker.ini"
API_KEY_ENV = "ANTHROPIC_API_KEY"


@dataclass(frozen=True)
class AppSettings:
    # Model provider
    anthropic_api_key: str
    anthropic_model: str
    max_tokens: int
    timeout_seconds: float

    # Analysis
    default_personas: tuple[str, ...]
    max_runs_kept: int
    worker_threads: int

    default_scheme: str
    guess_com_if_no_dot: bool
    no_guess_hosts: frozenset[str]

    flask_host: str
    flask_port: int
    flask_debug: bool

    log_level: str


class IniConfig:
    """
    Reads EntitySeoChecker.ini into AppSettings.
    Only the composition root and __main__ talk to this class.
    """

    def __init__(self, ini_path: Path):
        self._ini_path = ini_path
        self._cfg = ConfigParser()
        if not self._cfg.read(str(ini_path), encoding="utf-8-sig"):
            raise FileNotFoundError(f"Settings file missing or unreadable: {ini_path}")

    @property
    def ini_path(self) -> Path:
        return self._ini_path

    @staticmethod
    def from_env_or_default() -> "IniConfig":
        ini_raw = (os.getenv("APP_INI") or "").strip()
        if ini_raw:
            return IniConfig(Path(ini_raw))
        return IniConfig(Path(__file__).resolve().parents[2] / INI_DEFAULT_NAME)

    def _get_str(self, section: str, key: str, default: str) -> str:
        return (self._cfg.get(section, key, fallback=default) or "").strip() or default

    def _get_list(self, section: str, key: str, default: str) -> list[str]:
        raw = self._cfg.get(section, key, fallback=default) or ""
        return [v.strip() for v in raw.split(",") if v.strip()]

    def load_settings(self) -> AppSettings:
        # The credential comes from the process environment; the INI value is a local-dev fallback.
        api_key = (os.getenv(API_KEY_ENV) or "").strip() or (
            self._cfg.get("anthropic", "api_key", fallback="") or ""
        ).strip()

        anthropic_model = self._get_str("anthropic", "model", "claude-sonnet-4-20250514")
        max_tokens = self._cfg.getint("anthropic", "max_tokens", fallback=1500)
        timeout_seconds = self._cfg.getfloat("anthropic", "timeout_seconds", fallback=120.0)

        default_personas = clean_persona_ids(
            self._get_list("analysis", "default_personas", ",".join(DEFAULT_PERSONA_IDS))
        )
        max_runs_kept = self._cfg.getint("analysis", "max_runs_kept", fallback=20)
        worker_threads = self._cfg.getint("analysis", "worker_threads", fallback=2)

        # URL normalization
        default_scheme = self._get_str("url_normalization", "default_scheme", "https")
        guess_com_if_no_dot = self._cfg.getboolean("url_normalization", "guess_com_if_no_dot", fallback=True)
        no_guess_hosts = frozenset(
            h.lower() for h in self._get_list("url_normalization", "no_guess_hosts", "localhost")
        )

        # Flask
        flask_host = self._get_str("flask", "host", "127.0.0.1")
        flask_port = self._cfg.getint("flask", "port", fallback=5000)
        flask_debug = self._cfg.getboolean("flask", "debug", fallback=False)

        log_level = self._get_str("logging", "level", "INFO").upper()

        # Validate
        if max_tokens <= 0:
            raise ValueError(f"anthropic.max_tokens must be positive, got {max_tokens}")
        if worker_threads <= 0:
            raise ValueError(f"analysis.worker_threads must be positive, got {worker_threads}")
        if not default_personas:
            default_personas = DEFAULT_PERSONA_IDS

        return AppSettings(
            anthropic_api_key=api_key,
            anthropic_model=anthropic_model,
            max_tokens=max_tokens,
            timeout_seconds=timeout_seconds,
            default_personas=default_personas,
            max_runs_kept=max_runs_kept,
            worker_threads=worker_threads,
            default_scheme=default_scheme,
            guess_com_if_no_dot=guess_com_if_no_dot,
            no_guess_hosts=no_guess_hosts,
            flask_host=flask_host,
            flask_port=flask_port,
            flask_debug=flask_debug,
            log_level=log_level,
        )
