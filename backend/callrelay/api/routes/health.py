"""Endpoint de salud mínimo para validaciones rápidas."""
from fastapi import APIRouter, Depends

from callrelay.calls.runtime import CallRuntime
from callrelay.channels.voice.deps import get_runtime

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Estado del servicio")
def healthcheck(runtime: CallRuntime = Depends(get_runtime)) -> dict[str, str | int | bool]:
    """Indica que la API está viva junto con la etapa de la llamada."""
    return {
        "status": "ok",
        "call_phase": runtime.tracker.record.phase.value,
        "call_active": runtime.tracker.is_active,
        "subscribers": runtime.broadcaster.subscriber_count,
    }
