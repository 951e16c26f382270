"""Tests for settings loading and the YAML overlay."""

from pathlib import Path

import pytest

from betstreak.config import Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ["PORT", "STAKE_API_TOKEN", "TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID"]:
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path: Path) -> None:
    settings = Settings(_env_file=None, data_dir=tmp_path)

    assert settings.port == 3000
    assert settings.state_path == tmp_path / "database.json"
    assert settings.stake.api_url == "https://stake.com/_api/graphql"
    assert settings.telegram_enabled is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("STAKE_API_TOKEN", "abc")
    monkeypatch.setenv("STAKE__TIMEOUT_SECONDS", "5")

    settings = Settings(_env_file=None, data_dir=tmp_path)

    assert settings.port == 8080
    assert settings.stake_api_token == "abc"
    assert settings.stake.timeout_seconds == 5.0


def test_yaml_overlay(tmp_path: Path) -> None:
    (tmp_path / "config.yaml").write_text(
        "scheduler:\n"
        "  check_interval_seconds: 15\n"
        "stake:\n"
        "  timeout_seconds: 10\n"
        "telegram:\n"
        "  send_bet_alerts: false\n"
    )
    settings = Settings(
        _env_file=None,
        data_dir=tmp_path,
        telegram_bot_token="token",
        telegram_chat_id="42",
    )

    settings.load_yaml_config()

    assert settings.scheduler.check_interval_seconds == 15
    assert settings.stake.timeout_seconds == 10
    assert settings.stake.api_url == "https://stake.com/_api/graphql"
    assert settings.telegram_enabled is False


def test_missing_yaml_keeps_defaults(tmp_path: Path) -> None:
    settings = Settings(_env_file=None, data_dir=tmp_path)

    settings.load_yaml_config()

    assert settings.scheduler.check_interval_seconds == 60


def test_telegram_enabled_needs_token_and_chat(tmp_path: Path) -> None:
    settings = Settings(
        _env_file=None,
        data_dir=tmp_path,
        telegram_bot_token="token",
        telegram_chat_id="42",
    )

    assert settings.telegram_enabled is True
