"""Cliente REST para el control de llamadas del proveedor de voz."""

from __future__ import annotations

from typing import Any

import httpx

from callrelay.core.config import Settings
from callrelay.core.logging import get_logger

logger = get_logger(__name__)


class VoiceApiError(RuntimeError):
    """Errores al invocar la API de control de llamadas."""


class VoiceApiClient:
    """Envuelve las operaciones `accept`, `hangup` y `join` de la API de voz."""

    def __init__(
        self,
        *,
        base_url: str,
        app_id: str | None,
        app_key: str | None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        auth = httpx.BasicAuth(app_id, app_key) if app_id and app_key else None
        self._client = httpx.AsyncClient(
            auth=auth,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> VoiceApiClient:
        return cls(
            base_url=settings.voice_api_url,
            app_id=settings.enablex_app_id,
            app_key=settings.enablex_app_key,
            timeout=settings.voice_api_timeout_seconds,
        )

    async def accept_call(self, voice_id: str) -> dict[str, Any]:
        return await self._request("PUT", f"/{voice_id}/accept", action="accept")

    async def hangup_call(self, voice_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/{voice_id}", action="hangup")

    async def join_room(self, voice_id: str, room_id: str) -> dict[str, Any]:
        return await self._request("PUT", f"/{voice_id}/join/{room_id}", action="join_room")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, *, action: str) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, json={} if method == "PUT" else None)
        except httpx.RequestError as exc:
            msg = f"Error de red al ejecutar {action}: {exc}"
            raise VoiceApiError(msg) from exc

        if response.status_code >= 400:
            msg = (
                f"La API de voz respondió error en {action}"
                f" (status={response.status_code}, body={response.text!r})"
            )
            raise VoiceApiError(msg)

        logger.debug(
            "voice_api.response",
            extra={"action": action, "status_code": response.status_code},
        )
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {"result": data}
