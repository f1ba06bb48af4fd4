"""Máquina de estados de la llamada entrante.

`decide` es puro: a partir del registro actual y una notificación calcula la
siguiente etapa, los mensajes para los navegadores y las acciones remotas.
`CallEventHandler` aplica esa decisión sobre el tracker, el broadcaster, las
acciones y el supervisor de timeout.

Las ramas de `state` y `playstate` se evalúan de forma independiente, por lo
que una misma notificación puede disparar ambas. La unión a la sala de video
depende de `playfinished` y nunca de `connected`: la llamada debe terminar de
reproducir el anuncio antes de entrar a la sala.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from callrelay.calls.actions import CallActions
from callrelay.calls.state import CallPhase, CallRecord, CallTracker
from callrelay.calls.timeout import TimeoutSupervisor
from callrelay.channels.voice.schemas import NotificationEvent
from callrelay.core.logging import get_logger
from callrelay.stream.broadcaster import StatusBroadcaster

logger = get_logger("callrelay.calls")

STATE_INCOMING = "incomingcall"
STATE_DISCONNECTED = "disconnected"
STATE_CONNECTED = "connected"
STATE_JOINED = "joined"
PLAYSTATE_FINISHED = "playfinished"


class Action(str, Enum):
    ACCEPT = "accept"
    JOIN_ROOM = "join_room"


class TimerCommand(str, Enum):
    ARM = "arm"
    CANCEL = "cancel"


@dataclass(slots=True)
class Decision:
    """Efectos a aplicar para una notificación."""

    bind: tuple[str | None, str | None] | None = None
    phase: CallPhase | None = None
    messages: list[str] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    timer: TimerCommand | None = None

    @property
    def is_noop(self) -> bool:
        return not (self.bind or self.phase or self.messages or self.actions or self.timer)


def decide(record: CallRecord, event: NotificationEvent) -> Decision:
    decision = Decision()
    label = record.label

    if event.state == STATE_INCOMING:
        decision.bind = (event.voice_id, event.to)
        decision.phase = CallPhase.RINGING
        label = CallRecord(voice_id=event.voice_id).label
        decision.messages.append(f"{label} Received an inbound Call")
        decision.actions.append(Action.ACCEPT)
        # El plazo de una llamada reemplazada no debe colgar a la nueva.
        decision.timer = TimerCommand.CANCEL
    elif event.state == STATE_DISCONNECTED:
        decision.phase = CallPhase.DISCONNECTED
        decision.messages.append(f"{label} Call is disconnected")
        decision.timer = TimerCommand.CANCEL
    elif event.state == STATE_CONNECTED:
        decision.phase = CallPhase.CONNECTED
        decision.messages.append(f"{label} Call is connected")
    elif event.state == STATE_JOINED:
        decision.phase = CallPhase.JOINED
        decision.messages.append(f"{label} Call joined Video Room")
        decision.timer = TimerCommand.ARM

    if event.play_state == PLAYSTATE_FINISHED:
        decision.messages.append(f"{label} Received playfinished event")
        decision.actions.append(Action.JOIN_ROOM)

    return decision


class CallEventHandler:
    """Procesa notificaciones de forma síncrona y en orden de llegada."""

    def __init__(
        self,
        *,
        tracker: CallTracker,
        broadcaster: StatusBroadcaster,
        actions: CallActions,
        supervisor: TimeoutSupervisor,
        room_id: str | None,
        join_timeout: float = 20.0,
        on_timeout: Callable[[str], None] | None = None,
    ) -> None:
        self.tracker = tracker
        self.broadcaster = broadcaster
        self.actions = actions
        self.supervisor = supervisor
        self.room_id = room_id
        self.join_timeout = join_timeout
        self.on_timeout = on_timeout

    def handle(self, event: NotificationEvent) -> Decision:
        decision = decide(self.tracker.record, event)
        if decision.is_noop:
            logger.debug(
                "voice.notification_noop",
                extra={"state": event.state, "play_state": event.play_state},
            )
            return decision

        if decision.bind is not None:
            self.tracker.bind(*decision.bind)
        if decision.phase is not None:
            self.tracker.advance(decision.phase)

        for text in decision.messages:
            logger.info(text, extra={"voice_id": self.tracker.record.voice_id})
            self.broadcaster.publish(text)

        record = self.tracker.record
        for action in decision.actions:
            if action is Action.ACCEPT:
                self.actions.accept_call(record.voice_id)
            elif action is Action.JOIN_ROOM:
                self.actions.join_room(record.voice_id, self.room_id)

        if decision.timer is TimerCommand.ARM:
            self.supervisor.arm(self.join_timeout, self._expire)
        elif decision.timer is TimerCommand.CANCEL:
            self.supervisor.cancel()

        return decision

    def _expire(self) -> None:
        record = self.tracker.record
        text = f"{record.label} Call timed out, disconnecting"
        logger.info(text, extra={"voice_id": record.voice_id})
        self.tracker.advance(CallPhase.TIMEOUT)
        self.broadcaster.publish(text)
        self.actions.hangup_call(record.voice_id)
        if self.on_timeout is not None:
            self.on_timeout("call_timeout")
