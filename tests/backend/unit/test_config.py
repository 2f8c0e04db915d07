from rumbleroyale.backend.config import load_settings


def test_load_settings_reads_expected_env(monkeypatch) -> None:
    monkeypatch.setenv("RUMBLE_HOST", "0.0.0.0")
    monkeypatch.setenv("RUMBLE_PORT", "9000")
    monkeypatch.setenv("RUMBLE_COUNTDOWN_SECONDS", "30")
    monkeypatch.setenv("RUMBLE_COMMENCING_DELAY", "0.5")
    monkeypatch.setenv("RUMBLE_NARRATIVE_INTERVAL", "1.5")
    monkeypatch.setenv("RUMBLE_COOLDOWN_SECONDS", "3")
    monkeypatch.setenv("RUMBLE_NARRATIVE_TIMEOUT", "4")
    monkeypatch.setenv("RUMBLE_ADMIN_KEY", "secret")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("RUMBLE_OPENAI_MODEL", "gpt-test")
    monkeypatch.setenv("RUMBLE_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.host == "0.0.0.0"
    assert settings.port == 9000
    assert settings.countdown_seconds == 30
    assert settings.commencing_delay_seconds == 0.5
    assert settings.narrative_interval_seconds == 1.5
    assert settings.cooldown_seconds == 3.0
    assert settings.narrative_timeout_seconds == 4.0
    assert settings.admin_key == "secret"
    assert settings.openai_api_key == "sk-test"
    assert settings.openai_model == "gpt-test"
    assert settings.log_level == "DEBUG"


def test_load_settings_applies_defaults(monkeypatch) -> None:
    for name in (
        "RUMBLE_HOST",
        "RUMBLE_PORT",
        "RUMBLE_COUNTDOWN_SECONDS",
        "RUMBLE_COMMENCING_DELAY",
        "RUMBLE_NARRATIVE_INTERVAL",
        "RUMBLE_COOLDOWN_SECONDS",
        "RUMBLE_NARRATIVE_TIMEOUT",
        "RUMBLE_ADMIN_KEY",
        "OPENAI_API_KEY",
        "RUMBLE_OPENAI_MODEL",
        "RUMBLE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.host == "127.0.0.1"
    assert settings.port == 8000
    assert settings.countdown_seconds == 180
    assert settings.commencing_delay_seconds == 2.0
    assert settings.narrative_interval_seconds == 2.0
    assert settings.cooldown_seconds == 5.0
    assert settings.admin_key is None
    assert settings.openai_api_key is None
    assert settings.log_level == "INFO"


def test_empty_admin_key_means_no_key(monkeypatch) -> None:
    monkeypatch.setenv("RUMBLE_ADMIN_KEY", "")

    assert load_settings().admin_key is None
