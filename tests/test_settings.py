from __future__ import annotations

import pytest

from digit_setup_assistant import RuntimeSettings, get_version


def test_runtime_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "DIGIT_ASSISTANT_CLASSIFIER",
        "DIGIT_ASSISTANT_MODEL",
        "DIGIT_ASSISTANT_TIMEOUT_SECONDS",
        "DIGIT_ASSISTANT_MAX_RETRIES",
        "DIGIT_ASSISTANT_DEFAULT_SESSION",
    ):
        monkeypatch.delenv(name, raising=False)
    settings = RuntimeSettings.from_env()
    assert settings == RuntimeSettings()
    assert settings.classifier_backend == "auto"
    assert settings.default_session_id == "default"


def test_runtime_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DIGIT_ASSISTANT_CLASSIFIER", " Keyword ")
    monkeypatch.setenv("DIGIT_ASSISTANT_MODEL", "gpt-4o")
    monkeypatch.setenv("DIGIT_ASSISTANT_TIMEOUT_SECONDS", "45")
    monkeypatch.setenv("DIGIT_ASSISTANT_MAX_RETRIES", "0")
    monkeypatch.setenv("DIGIT_ASSISTANT_DEFAULT_SESSION", "tenant-a")
    settings = RuntimeSettings.from_env()
    assert settings.classifier_backend == "keyword"
    assert settings.model_name == "gpt-4o"
    assert settings.request_timeout_seconds == 45
    assert settings.max_retries == 0
    assert settings.default_session_id == "tenant-a"


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("DIGIT_ASSISTANT_TIMEOUT_SECONDS", "abc", "must be an integer"),
        ("DIGIT_ASSISTANT_TIMEOUT_SECONDS", "0", "must be >= 1"),
        ("DIGIT_ASSISTANT_MAX_RETRIES", "11", "must be <= 10"),
        ("DIGIT_ASSISTANT_CLASSIFIER", "regex", "must be one of"),
        ("DIGIT_ASSISTANT_MODEL", "   ", "must be non-empty"),
        ("DIGIT_ASSISTANT_DEFAULT_SESSION", "", "must be non-empty"),
    ],
)
def test_runtime_settings_invalid_env_raises(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, message: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=message):
        RuntimeSettings.from_env()


def test_get_version_returns_string() -> None:
    assert isinstance(get_version(), str)
