"""Fixtures compartidas para las pruebas."""

import pytest
from httpx import ASGITransport, AsyncClient

from callrelay.calls.runtime import CallRuntime, build_runtime
from callrelay.core.config import Settings
from callrelay.core.lifecycle import ShutdownController
from callrelay.main import create_app
from callrelay.services.voice_api import VoiceApiError


class FakeVoiceApi:
    """API de voz en memoria que registra cada invocación."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.failures: dict[str, int] = {}

    async def accept_call(self, voice_id: str) -> dict[str, str]:
        return self._record("accept", voice_id)

    async def hangup_call(self, voice_id: str) -> dict[str, str]:
        return self._record("hangup", voice_id)

    async def join_room(self, voice_id: str, room_id: str) -> dict[str, str]:
        return self._record("join_room", voice_id, room_id)

    def named(self, action: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == action]

    def _record(self, action: str, *args: str) -> dict[str, str]:
        self.calls.append((action, *args))
        remaining = self.failures.get(action, 0)
        if remaining:
            self.failures[action] = remaining - 1
            raise VoiceApiError(f"{action} failed")
        return {"result": "ok"}


@pytest.fixture(name="settings")
def fixture_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        video_room_id="ROOM-1",
        join_timeout_seconds=0.05,
        action_retry_delay_seconds=0,
        stream_heartbeat_seconds=0.05,
        client_dir=str(tmp_path / "missing-client"),
    )


@pytest.fixture(name="fake_api")
def fixture_fake_api() -> FakeVoiceApi:
    return FakeVoiceApi()


@pytest.fixture(name="exit_codes")
def fixture_exit_codes() -> list[int]:
    return []


@pytest.fixture(name="shutdown")
def fixture_shutdown(exit_codes: list[int]) -> ShutdownController:
    controller = ShutdownController(grace_seconds=60, force_exit=exit_codes.append)
    yield controller
    controller.disarm_watchdog()


@pytest.fixture(name="runtime")
def fixture_runtime(
    settings: Settings, fake_api: FakeVoiceApi, shutdown: ShutdownController
) -> CallRuntime:
    return build_runtime(settings, api=fake_api, shutdown=shutdown)


@pytest.fixture(name="app")
def fixture_app(settings: Settings, fake_api: FakeVoiceApi, shutdown: ShutdownController):
    return create_app(settings, api=fake_api, shutdown=shutdown)


@pytest.fixture(name="async_client")
async def fixture_async_client(app) -> AsyncClient:
    """Retorna un cliente asíncrono contra la app principal utilizando ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
