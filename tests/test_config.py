import pytest

from config import ChatbotConfig


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GOOGLE_API_KEY",
        "FAQ_CONFIDENCE_THRESHOLD",
        "HISTORY_MAX_TURNS",
        "HISTORY_VIEW_LIMIT",
        "GEMINI_TIMEOUT_SECONDS",
        "PORT",
    ):
        monkeypatch.delenv(name, raising=False)

    cfg = ChatbotConfig.from_env()

    assert cfg.generative_enabled is False
    assert cfg.confidence_threshold == 0.85
    assert cfg.history_view_limit == 10
    assert cfg.history_max_turns is None
    assert cfg.generation_timeout == 5.0
    assert cfg.port == 5000


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_API_KEY", " secret ")
    monkeypatch.setenv("FAQ_CONFIDENCE_THRESHOLD", "0.9")
    monkeypatch.setenv("HISTORY_MAX_TURNS", "50")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.0-flash")

    cfg = ChatbotConfig.from_env()

    assert cfg.google_api_key == "secret"
    assert cfg.generative_enabled is True
    assert cfg.confidence_threshold == 0.9
    assert cfg.history_max_turns == 50
    assert cfg.gemini_model == "gemini-2.0-flash"
