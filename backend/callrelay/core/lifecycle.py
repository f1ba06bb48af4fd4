"""Ciclo de vida del proceso: escucha, cierre ordenado y salida forzada."""

from __future__ import annotations

import errno
import os
import socket
import threading
from collections.abc import Callable

from callrelay.core.logging import get_logger

logger = get_logger("callrelay.lifecycle")


class ListenerError(RuntimeError):
    """No fue posible abrir el puerto de escucha."""


def bind_listener(host: str, port: int) -> socket.socket:
    """Abre el socket del servidor y traduce los errores de bind más comunes."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        if exc.errno == errno.EACCES:
            raise ListenerError(f"Port {port} requires elevated privileges") from exc
        if exc.errno == errno.EADDRINUSE:
            raise ListenerError(f"Port {port} is already in use") from exc
        raise
    sock.set_inheritable(True)
    return sock


class ShutdownController:
    """Coordina el cierre del servidor.

    `request()` notifica a los callbacks registrados (normalmente el servidor
    uvicorn) y arma un watchdog que termina el proceso con código 1 si el
    cierre ordenado no concluye dentro de `grace_seconds`.
    """

    def __init__(
        self,
        grace_seconds: float = 10.0,
        *,
        force_exit: Callable[[int], None] = os._exit,
    ) -> None:
        self.grace_seconds = grace_seconds
        self._force_exit = force_exit
        self._callbacks: list[Callable[[], None]] = []
        self._watchdog: threading.Timer | None = None
        self.reason: str | None = None

    @property
    def requested(self) -> bool:
        return self.reason is not None

    def on_shutdown(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    def request(self, reason: str) -> None:
        if self.requested:
            return
        self.reason = reason
        logger.info("lifecycle.shutdown_requested", extra={"reason": reason})
        self.arm_watchdog()
        for callback in self._callbacks:
            callback()

    def arm_watchdog(self) -> None:
        if self._watchdog is not None:
            return
        self._watchdog = threading.Timer(self.grace_seconds, self._expire)
        self._watchdog.daemon = True
        self._watchdog.start()

    def disarm_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    def _expire(self) -> None:
        logger.error(
            "lifecycle.forced_exit", extra={"grace_seconds": self.grace_seconds, "reason": self.reason}
        )
        self._force_exit(1)
