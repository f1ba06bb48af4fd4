"""Endpoints del webhook de voz y del stream de estado."""

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from callrelay.calls.runtime import CallRuntime

from . import service
from .deps import get_runtime

router = APIRouter(tags=["voice"])

_STREAM_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


async def _read_payload(request: Request) -> Any:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/x-www-form-urlencoded"):
        form = await request.form()
        return dict(form)
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload"
        ) from exc


@router.post("/event", summary="Webhook de eventos de llamada")
async def voice_event(
    request: Request,
    runtime: CallRuntime = Depends(get_runtime),
) -> dict[str, str]:
    """Recibe notificaciones del proveedor ya decodificadas (JSON o formulario)."""
    payload = await _read_payload(request)
    service.receive_notification(runtime, payload)
    return {"status": "received"}


@router.get("/event-stream", summary="Stream en vivo de mensajes de estado")
async def event_stream(runtime: CallRuntime = Depends(get_runtime)) -> StreamingResponse:
    """Mantiene abierta una conexión SSE con los mensajes de la llamada."""
    return StreamingResponse(
        service.stream_status(
            runtime.broadcaster, heartbeat=runtime.settings.stream_heartbeat_seconds
        ),
        media_type="text/event-stream",
        headers=_STREAM_HEADERS,
    )
