"""Supervisor del tiempo máximo de una llamada dentro de la sala de video."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from callrelay.core.logging import get_logger

logger = get_logger("callrelay.calls")


class TimeoutSupervisor:
    """Programa una única acción diferida y cancelable.

    Volver a armar el supervisor reemplaza el plazo anterior, de modo que nunca
    hay más de una acción pendiente.
    """

    def __init__(self) -> None:
        self._task: asyncio.Task | None = None
        self.fired = 0

    @property
    def armed(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self, delay: float, callback: Callable[[], None]) -> None:
        if self.armed:
            logger.info("call.timeout_rearmed", extra={"delay_seconds": delay})
        self.cancel(log=False)
        self._task = asyncio.get_running_loop().create_task(self._wait(delay, callback))
        logger.info("call.timeout_armed", extra={"delay_seconds": delay})

    def cancel(self, *, log: bool = True) -> bool:
        task = self._task
        if task is None or task.done():
            return False
        task.cancel()
        self._task = None
        if log:
            logger.info("call.timeout_cancelled")
        return True

    async def _wait(self, delay: float, callback: Callable[[], None]) -> None:
        await asyncio.sleep(delay)
        self._task = None
        self.fired += 1
        logger.info("call.timeout_fired", extra={"delay_seconds": delay})
        callback()
