"""Arranque del servidor: `python -m callrelay`."""

from __future__ import annotations

import signal
import sys
from types import FrameType

import uvicorn

from callrelay.core.config import Settings, settings as default_settings
from callrelay.core.lifecycle import ListenerError, ShutdownController, bind_listener
from callrelay.core.logging import get_logger
from callrelay.main import create_app, setup_logging

logger = get_logger("callrelay.lifecycle")


class RelayServer(uvicorn.Server):
    """Servidor uvicorn que delega el cierre en el `ShutdownController`."""

    def __init__(self, config: uvicorn.Config, shutdown: ShutdownController) -> None:
        super().__init__(config)
        self.shutdown = shutdown
        shutdown.on_shutdown(self._stop)

    def _stop(self) -> None:
        self.should_exit = True

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        if sig == signal.SIGINT:
            logger.info("Caught interrupt signal")
        # uvicorn fuerza la salida si `should_exit` ya estaba activo con SIGINT.
        super().handle_exit(sig, frame)
        self.shutdown.request(f"signal:{signal.Signals(sig).name}")


def build_config(app, settings: Settings) -> uvicorn.Config:
    options: dict = {}
    if settings.listen_ssl:
        options["ssl_keyfile"] = settings.certificate_ssl_key
        options["ssl_certfile"] = settings.certificate_ssl_cert
        if settings.certificate_ssl_cacerts:
            options["ssl_ca_certs"] = settings.certificate_ssl_cacerts
    return uvicorn.Config(
        app,
        host=settings.service_host,
        port=settings.service_port,
        log_config=None,
        access_log=False,
        **options,
    )


def main(settings: Settings | None = None) -> int:
    settings = settings or default_settings
    setup_logging(settings)

    if not settings.has_credentials:
        logger.error("Please set env variables - ENABLEX_APP_ID, ENABLEX_APP_KEY")
        return 1
    if settings.listen_ssl and not (settings.certificate_ssl_key and settings.certificate_ssl_cert):
        logger.error("LISTEN_SSL requires CERTIFICATE_SSL_KEY and CERTIFICATE_SSL_CERT")
        return 1
    if not settings.video_room_id:
        logger.warning("VIDEO_ROOMID is not set; calls cannot join a video room")

    try:
        sock = bind_listener(settings.service_host, settings.service_port)
    except ListenerError as exc:
        logger.error(str(exc), extra={"port": settings.service_port})
        return 1

    shutdown = ShutdownController(settings.shutdown_grace_seconds)
    app = create_app(settings, shutdown=shutdown)
    server = RelayServer(build_config(app, settings), shutdown)
    logger.info("Listening on Port %s", settings.service_port)
    try:
        server.run(sockets=[sock])
    finally:
        shutdown.disarm_watchdog()
        sock.close()
    logger.info("Shutting down the server", extra={"reason": shutdown.reason})
    return 0


if __name__ == "__main__":
    sys.exit(main())
