"""Pruebas del cliente REST de la API de voz."""

import httpx
import pytest

from callrelay.services.voice_api import VoiceApiClient, VoiceApiError


def _client(handler) -> VoiceApiClient:
    return VoiceApiClient(
        base_url="https://voice.test/call/",
        app_id="app",
        app_key="secret",
        transport=httpx.MockTransport(handler),
    )


async def test_actions_use_expected_routes() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        assert request.headers["authorization"].startswith("Basic ")
        return httpx.Response(200, json={"result": 0})

    client = _client(handler)
    await client.accept_call("V1")
    await client.join_room("V1", "ROOM-1")
    await client.hangup_call("V1")
    await client.aclose()

    assert seen == [
        ("PUT", "/call/V1/accept"),
        ("PUT", "/call/V1/join/ROOM-1"),
        ("DELETE", "/call/V1"),
    ]


async def test_error_status_raises() -> None:
    client = _client(lambda request: httpx.Response(404, text="unknown call"))

    with pytest.raises(VoiceApiError, match="status=404"):
        await client.accept_call("V1")
    await client.aclose()


async def test_network_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client = _client(handler)
    with pytest.raises(VoiceApiError, match="Error de red"):
        await client.hangup_call("V1")
    await client.aclose()


async def test_empty_body_returns_empty_mapping() -> None:
    client = _client(lambda request: httpx.Response(204))
    assert await client.hangup_call("V1") == {}
    await client.aclose()
