"""Punto de entrada principal para la aplicación FastAPI."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from starlette.staticfiles import StaticFiles

from callrelay.api.routes.health import router as health_router
from callrelay.calls.actions import CallControlApi
from callrelay.calls.runtime import build_runtime
from callrelay.channels.voice.router import router as voice_router
from callrelay.core.config import Settings, settings as default_settings
from callrelay.core.lifecycle import ShutdownController
from callrelay.core.logging import configure_logging, get_logger, resolve_log_level
from callrelay.core.middleware import RequestLoggingMiddleware


def setup_logging(settings: Settings) -> None:
    default_log_level = logging.DEBUG if settings.environment != "production" else logging.INFO
    log_level = resolve_log_level(settings.log_level, default=default_log_level)
    per_logger_files = None
    if settings.log_file_path:
        log_dir = Path(settings.log_file_path).parent
        per_logger_files = {
            "callrelay.request": str(log_dir / "request.log"),
            "callrelay.calls": str(log_dir / "calls.log"),
        }
    configure_logging(
        level=log_level,
        log_file=settings.log_file_path,
        per_logger_files=per_logger_files,
    )


def create_app(
    settings: Settings | None = None,
    *,
    api: CallControlApi | None = None,
    shutdown: ShutdownController | None = None,
) -> FastAPI:
    """Crea y configura la instancia de FastAPI con su runtime de llamada."""
    settings = settings or default_settings
    runtime = build_runtime(settings, api=api, shutdown=shutdown)
    log = get_logger("callrelay")

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if settings.webhook_url:
            log.info(
                "To call webhook while inbound calls, Update this URL in portal: %s",
                settings.webhook_url,
            )
        yield
        await runtime.aclose()
        log.info("lifecycle.runtime_closed")

    app = FastAPI(title="Call Relay", version="0.1.0", lifespan=lifespan)
    app.state.runtime = runtime

    app.add_middleware(
        RequestLoggingMiddleware, skip_prefixes=settings.request_log_skip_prefixes
    )

    app.include_router(health_router)
    app.include_router(voice_router)

    # El cliente web se monta al final para no ocultar las rutas de la API.
    client_dir = Path(settings.client_dir)
    if client_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(client_dir), html=True), name="client")
        log.info("client.static_mounted", extra={"path": str(client_dir)})
    else:
        log.warning("client.static_missing", extra={"expected_path": str(client_dir)})

    return app
