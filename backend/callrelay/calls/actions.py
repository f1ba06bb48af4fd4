"""Ejecución en segundo plano de las acciones de control de llamada."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from callrelay.core.logging import get_logger
from callrelay.services.voice_api import VoiceApiError

logger = get_logger("callrelay.calls")


class CallControlApi(Protocol):
    async def accept_call(self, voice_id: str) -> Any: ...

    async def hangup_call(self, voice_id: str) -> Any: ...

    async def join_room(self, voice_id: str, room_id: str) -> Any: ...


class CallActions:
    """Dispara acciones remotas sin bloquear al manejador de eventos.

    Cada acción corre como una tarea de asyncio que el llamador puede esperar
    si lo necesita. Los fallos se registran; `accept` y `join_room` son
    idempotentes y se reintentan hasta `retries` veces adicionales.
    """

    def __init__(self, api: CallControlApi, *, retries: int = 2, retry_delay: float = 1.0) -> None:
        self.api = api
        self.retries = retries
        self.retry_delay = retry_delay
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def accept_call(self, voice_id: str | None) -> asyncio.Task | None:
        if voice_id is None:
            return self._skip("accept")
        return self._spawn("accept", lambda: self.api.accept_call(voice_id), voice_id, retry=True)

    def hangup_call(self, voice_id: str | None) -> asyncio.Task | None:
        if voice_id is None:
            return self._skip("hangup")
        return self._spawn("hangup", lambda: self.api.hangup_call(voice_id), voice_id, retry=False)

    def join_room(self, voice_id: str | None, room_id: str | None) -> asyncio.Task | None:
        if voice_id is None or room_id is None:
            return self._skip("join_room", room_id=room_id)
        return self._spawn(
            "join_room", lambda: self.api.join_room(voice_id, room_id), voice_id, retry=True
        )

    async def wait_idle(self) -> None:
        """Espera a que terminen todas las acciones en curso."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._pending):
            task.cancel()
        await asyncio.gather(*list(self._pending), return_exceptions=True)
        self._pending.clear()
        close = getattr(self.api, "aclose", None)
        if close is not None:
            await close()

    def _skip(self, action: str, **extra: Any) -> None:
        logger.warning("voice.action_skipped", extra={"action": action, "reason": "missing_id", **extra})
        return None

    def _spawn(
        self,
        action: str,
        call: Callable[[], Awaitable[Any]],
        voice_id: str,
        *,
        retry: bool,
    ) -> asyncio.Task:
        attempts = 1 + (self.retries if retry else 0)
        task = asyncio.get_running_loop().create_task(self._run(action, call, voice_id, attempts))
        self._pending.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        # Los VoiceApiError ya quedaron registrados en `_run`.
        if exc is not None and not isinstance(exc, VoiceApiError):
            logger.error("voice.action_crashed", exc_info=exc)

    async def _run(
        self,
        action: str,
        call: Callable[[], Awaitable[Any]],
        voice_id: str,
        attempts: int,
    ) -> Any:
        for attempt in range(1, attempts + 1):
            try:
                result = await call()
            except VoiceApiError as exc:
                logger.error(
                    "voice.action_failed",
                    extra={
                        "action": action,
                        "voice_id": voice_id,
                        "attempt": attempt,
                        "max_attempts": attempts,
                        "error": str(exc),
                    },
                )
                if attempt == attempts:
                    raise
                await asyncio.sleep(self.retry_delay)
            else:
                logger.info(
                    "voice.action_completed",
                    extra={"action": action, "voice_id": voice_id, "attempt": attempt},
                )
                return result
        return None
