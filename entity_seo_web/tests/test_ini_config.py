from __future__ import annotations

from pathlib import Path

import pytest

from entity_seo_web.config.ini_config import IniConfig

FULL_INI = """
[anthropic]
api_key = ini-key
model = claude-test
max_tokens = 900
timeout_seconds = 30

[analysis]
default_personas = chatgpt, gemini, chatgpt
max_runs_kept = 5
worker_threads = 4

[url_normalization]
default_scheme = http
guess_com_if_no_dot = false
no_guess_hosts = LocalHost, intranet

[flask]
host = 0.0.0.0
port = 8080
debug = true

[logging]
level = debug
"""


def write_ini(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "test.ini"
    p.write_text(text, encoding="utf-8")
    return p


def test_load_full_settings(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    s = IniConfig(write_ini(tmp_path, FULL_INI)).load_settings()

    assert s.anthropic_api_key == "ini-key"
    assert s.anthropic_model == "claude-test"
    assert s.max_tokens == 900
    assert s.timeout_seconds == 30.0
    assert s.default_personas == ("chatgpt", "gemini")
    assert s.max_runs_kept == 5
    assert s.worker_threads == 4
    assert s.default_scheme == "http"
    assert s.guess_com_if_no_dot is False
    assert s.no_guess_hosts == frozenset({"localhost", "intranet"})
    assert (s.flask_host, s.flask_port, s.flask_debug) == ("0.0.0.0", 8080, True)
    assert s.log_level == "DEBUG"


def test_env_api_key_wins_over_ini(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")

    s = IniConfig(write_ini(tmp_path, FULL_INI)).load_settings()

    assert s.anthropic_api_key == "env-key"


def test_defaults_for_empty_ini(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    s = IniConfig(write_ini(tmp_path, "; nothing here\n")).load_settings()

    assert s.anthropic_api_key == ""
    assert s.anthropic_model == "claude-sonnet-4-20250514"
    assert s.max_tokens == 1500
    assert s.worker_threads == 2
    assert s.default_personas == ("claude", "chatgpt", "perplexity")
    assert s.no_guess_hosts == frozenset({"localhost"})
    assert (s.flask_host, s.flask_port, s.flask_debug) == ("127.0.0.1", 5000, False)


def test_invalid_max_tokens(tmp_path: Path):
    with pytest.raises(ValueError):
        IniConfig(write_ini(tmp_path, "[anthropic]\nmax_tokens = 0\n")).load_settings()


def test_invalid_worker_threads(tmp_path: Path):
    with pytest.raises(ValueError):
        IniConfig(write_ini(tmp_path, "[analysis]\nworker_threads = 0\n")).load_settings()


def test_missing_ini_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        IniConfig(tmp_path / "nope.ini")


def test_app_ini_env_var(tmp_path: Path, monkeypatch):
    p = write_ini(tmp_path, FULL_INI)
    monkeypatch.setenv("APP_INI", str(p))

    assert IniConfig.from_env_or_default().ini_path == p


def test_repo_default_ini_is_loadable(monkeypatch):
    monkeypatch.delenv("APP_INI", raising=False)

    s = IniConfig.from_env_or_default().load_settings()

    assert s.max_tokens == 1500
