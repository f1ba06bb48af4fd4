"""Dependencias relacionadas a voz."""
from fastapi import Request

from callrelay.calls.runtime import CallRuntime


def get_runtime(request: Request) -> CallRuntime:
    """Obtiene el runtime de la llamada registrado en `app.state`."""
    return request.app.state.runtime
