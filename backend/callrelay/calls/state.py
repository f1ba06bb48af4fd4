"""Registro de la única llamada que administra el proceso."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from callrelay.core.logging import get_logger

logger = get_logger("callrelay.calls")


class CallPhase(str, Enum):
    """Etapas del ciclo de vida de la llamada."""

    IDLE = "idle"
    RINGING = "ringing"
    CONNECTED = "connected"
    JOINED = "joined"
    TIMEOUT = "timeout"
    DISCONNECTED = "disconnected"


@dataclass(slots=True)
class CallRecord:
    """Identidad y etapa actual de la llamada."""

    voice_id: str | None = None
    destination: str | None = None
    phase: CallPhase = CallPhase.IDLE

    @property
    def label(self) -> str:
        """Prefijo usado en los mensajes de estado."""
        return f"[{self.voice_id or 'unknown'}]"


class CallTracker:
    """Contenedor con API mínima de mutación para el `CallRecord` activo.

    Sólo existe una llamada viva a la vez: un nuevo `incomingcall` reemplaza
    la identidad anterior aunque la llamada previa no haya terminado.
    """

    def __init__(self) -> None:
        self._record = CallRecord()

    @property
    def record(self) -> CallRecord:
        return self._record

    @property
    def is_active(self) -> bool:
        return self._record.phase in (CallPhase.RINGING, CallPhase.CONNECTED, CallPhase.JOINED)

    def bind(self, voice_id: str | None, destination: str | None) -> CallRecord:
        """Inicia un nuevo registro para la llamada entrante."""
        previous = self._record
        if previous.voice_id and previous.phase not in (CallPhase.DISCONNECTED, CallPhase.TIMEOUT):
            logger.warning(
                "call.record_overwritten",
                extra={"previous_voice_id": previous.voice_id, "voice_id": voice_id},
            )
        self._record = CallRecord(
            voice_id=voice_id, destination=destination, phase=CallPhase.RINGING
        )
        return self._record

    def advance(self, phase: CallPhase) -> None:
        if phase is self._record.phase:
            return
        logger.debug(
            "call.phase_changed",
            extra={
                "voice_id": self._record.voice_id,
                "from_phase": self._record.phase.value,
                "to_phase": phase.value,
            },
        )
        self._record.phase = phase
