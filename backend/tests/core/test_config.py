"""Pruebas de la configuración por variables de entorno."""

import pytest

from callrelay.core.config import Settings


def test_defaults_match_original_service() -> None:
    settings = Settings(_env_file=None)

    assert settings.service_port == 3000
    assert settings.join_timeout_seconds == 20.0
    assert settings.shutdown_grace_seconds == 10.0
    assert not settings.has_credentials
    assert settings.webhook_url is None


def test_reads_provider_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENABLEX_APP_ID", "app-id")
    monkeypatch.setenv("ENABLEX_APP_KEY", "app-key")
    monkeypatch.setenv("VIDEO_ROOMID", "room-42")
    monkeypatch.setenv("SERVICE_PORT", "4443")
    monkeypatch.setenv("PUBLIC_WEBHOOK_HOST", "https://relay.example.com/")

    settings = Settings(_env_file=None)

    assert settings.has_credentials
    assert settings.video_room_id == "room-42"
    assert settings.service_port == 4443
    assert settings.webhook_url == "https://relay.example.com/event"
