from pathlib import Path

from playword.core.config import AI_PATTERN, DEFAULT_RECORD_PATH, SessionConfig
from playword.core.executor import fill_variables


def test_from_env(monkeypatch):
    monkeypatch.setenv("PLAYWORD_HEADLESS", "true")
    monkeypatch.setenv("PLAYWORD_RECORD", "runs/login.json")
    monkeypatch.setenv("PLAYWORD_MODEL", "gpt-4o")
    monkeypatch.delenv("PLAYWORD_DEBUG", raising=False)

    config = SessionConfig.from_env(retry=False)
    assert config.headless is True
    assert config.debug is False
    assert config.model == "gpt-4o"
    assert config.retry is False
    assert config.record_path == Path("runs/login.json")


def test_record_flag_uses_default_path():
    assert SessionConfig(record=True).record_path == DEFAULT_RECORD_PATH
    assert SessionConfig().record_path is None


def test_ai_marker_is_case_insensitive():
    assert AI_PATTERN.sub("", "[AI] Click login").strip() == "Click login"
    assert AI_PATTERN.sub("", "[ai]Click login") == "Click login"
    assert AI_PATTERN.sub("", "Click [ai] login") == "Click [ai] login"


def test_fill_variables(monkeypatch):
    monkeypatch.setenv("USER_EMAIL", "ada@x.test")
    monkeypatch.delenv("MISSING_VAR", raising=False)
    assert fill_variables("{USER_EMAIL}") == "ada@x.test"
    assert fill_variables("{MISSING_VAR}") == "{MISSING_VAR}"


def test_screenshot_option_from_env(monkeypatch):
    monkeypatch.setenv("PLAYWORD_USE_SCREENSHOT", "1")
    assert SessionConfig.from_env().use_screenshot is True
    monkeypatch.delenv("PLAYWORD_USE_SCREENSHOT")
    assert SessionConfig.from_env().use_screenshot is False
