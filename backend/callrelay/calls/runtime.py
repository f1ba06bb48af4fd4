"""Ensambla los componentes que administran la llamada activa."""

from __future__ import annotations

from dataclasses import dataclass

from callrelay.calls.actions import CallActions, CallControlApi
from callrelay.calls.handler import CallEventHandler
from callrelay.calls.state import CallTracker
from callrelay.calls.timeout import TimeoutSupervisor
from callrelay.core.config import Settings
from callrelay.core.lifecycle import ShutdownController
from callrelay.services.voice_api import VoiceApiClient
from callrelay.stream.broadcaster import StatusBroadcaster


@dataclass(slots=True)
class CallRuntime:
    """Estado compartido por el webhook, el stream en vivo y el cierre."""

    settings: Settings
    tracker: CallTracker
    broadcaster: StatusBroadcaster
    actions: CallActions
    supervisor: TimeoutSupervisor
    handler: CallEventHandler
    shutdown: ShutdownController

    async def aclose(self) -> None:
        self.supervisor.cancel()
        self.broadcaster.close()
        await self.actions.wait_idle()
        await self.actions.aclose()


def build_runtime(
    settings: Settings,
    *,
    api: CallControlApi | None = None,
    shutdown: ShutdownController | None = None,
) -> CallRuntime:
    tracker = CallTracker()
    broadcaster = StatusBroadcaster(
        queue_size=settings.stream_queue_size, backlog=settings.stream_backlog
    )
    actions = CallActions(
        api if api is not None else VoiceApiClient.from_settings(settings),
        retries=settings.action_retries,
        retry_delay=settings.action_retry_delay_seconds,
    )
    supervisor = TimeoutSupervisor()
    shutdown = shutdown or ShutdownController(settings.shutdown_grace_seconds)
    handler = CallEventHandler(
        tracker=tracker,
        broadcaster=broadcaster,
        actions=actions,
        supervisor=supervisor,
        room_id=settings.video_room_id,
        join_timeout=settings.join_timeout_seconds,
        on_timeout=shutdown.request,
    )
    return CallRuntime(
        settings=settings,
        tracker=tracker,
        broadcaster=broadcaster,
        actions=actions,
        supervisor=supervisor,
        handler=handler,
        shutdown=shutdown,
    )
