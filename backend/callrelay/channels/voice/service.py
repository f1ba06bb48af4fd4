"""Servicios para el canal de voz."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from pydantic import ValidationError

from callrelay.calls.handler import Decision
from callrelay.calls.runtime import CallRuntime
from callrelay.core.logging import get_logger, log_event
from callrelay.stream.broadcaster import StatusBroadcaster, SubscriptionClosed

from .schemas import NotificationEvent

logger = get_logger("callrelay.channels.voice")

HEARTBEAT = ": keep-alive\n\n"


def receive_notification(runtime: CallRuntime, payload: Any) -> Decision | None:
    """Valida una notificación decodificada y la despacha al manejador.

    Cualquier payload que no sea un objeto se ignora sin error.
    """
    if not isinstance(payload, dict):
        log_event(
            logger,
            "voice.notification_ignored",
            reason="not_a_mapping",
            payload_type=type(payload).__name__,
        )
        return None

    try:
        event = NotificationEvent.model_validate(payload)
    except ValidationError as exc:  # pragma: no cover - el esquema acepta cualquier objeto
        logger.warning("voice.notification_invalid", extra={"error": str(exc)})
        return None

    if event.is_empty:
        log_event(logger, "voice.notification_ignored", reason="no_state_or_playstate")
        return None

    log_event(
        logger,
        "voice.notification_received",
        state=event.state,
        play_state=event.play_state,
        voice_id=event.voice_id,
    )
    return runtime.handler.handle(event)


async def stream_status(
    broadcaster: StatusBroadcaster, *, heartbeat: float | None = None
) -> AsyncIterator[str]:
    """Genera unidades SSE para un suscriptor hasta que se cierre.

    La suscripción se crea al iniciar el generador, así el `finally` siempre
    la libera aunque el cliente se desconecte.
    """
    subscription = broadcaster.subscribe()
    try:
        while True:
            try:
                message = await subscription.get(timeout=heartbeat)
            except SubscriptionClosed:
                return
            if message is None:
                yield HEARTBEAT
                continue
            yield message.to_sse()
    finally:
        subscription.unsubscribe()
