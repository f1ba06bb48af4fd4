"""Distribución en vivo de mensajes de estado hacia navegadores suscritos."""

from __future__ import annotations

import asyncio
import itertools
from collections import deque
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime, timezone

from callrelay.core.logging import get_logger

logger = get_logger("callrelay.stream")

_CLOSED = object()


class SubscriptionClosed(Exception):
    """La suscripción fue cerrada por el broadcaster."""


@dataclass(slots=True, frozen=True)
class StatusMessage:
    """Línea de estado inmutable; el orden lo define `sequence`."""

    sequence: int
    text: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_id(self) -> str:
        return f"{int(self.created_at.timestamp() * 1000)}-{self.sequence}"

    def to_sse(self) -> str:
        """Unidad de entrega: línea `id`, una línea `data` por línea de texto y una línea vacía."""
        data = "".join(f"data: {line}\n" for line in self.text.splitlines() or [""])
        return f"id: {self.event_id}\n{data}\n"


class Subscription:
    """Canal de un suscriptor; se consume con `async for`."""

    def __init__(self, broadcaster: StatusBroadcaster, maxsize: int) -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[StatusMessage | object] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def offer(self, message: StatusMessage) -> bool:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Un centinela en una cola llena no cabe; se vacía antes.
        while self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def get(self, timeout: float | None = None) -> StatusMessage | None:
        """Espera el siguiente mensaje; `None` si vence `timeout`.

        Lanza `SubscriptionClosed` cuando la suscripción fue cerrada.
        """
        try:
            item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        if item is _CLOSED:
            raise SubscriptionClosed
        return item  # type: ignore[return-value]

    def __aiter__(self) -> AsyncIterator[StatusMessage]:
        return self

    async def __anext__(self) -> StatusMessage:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    def unsubscribe(self) -> None:
        self._broadcaster.unsubscribe(self)


class StatusBroadcaster:
    """Publica cada mensaje a todos los suscriptores abiertos (fan-out).

    Los mensajes publicados antes de que alguien se conecte se conservan en un
    backlog acotado y se repiten a cada suscriptor nuevo, en orden.
    """

    def __init__(self, *, queue_size: int = 100, backlog: int = 50) -> None:
        self._queue_size = queue_size
        self._backlog: deque[StatusMessage] = deque(maxlen=backlog or None)
        self._keep_backlog = backlog > 0
        self._subscribers: list[Subscription] = []
        self._sequence = itertools.count(1)
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def backlog(self) -> list[StatusMessage]:
        return list(self._backlog)

    def publish(self, text: str) -> StatusMessage:
        message = StatusMessage(sequence=next(self._sequence), text=text)
        if self._keep_backlog:
            self._backlog.append(message)

        dropped = [sub for sub in self._subscribers if not sub.offer(message)]
        for sub in dropped:
            logger.warning(
                "stream.subscriber_dropped",
                extra={"reason": "queue_full", "sequence": message.sequence},
            )
            self.unsubscribe(sub)
            sub.close()

        logger.debug(
            "stream.published",
            extra={"sequence": message.sequence, "subscribers": len(self._subscribers)},
        )
        return message

    def subscribe(self) -> Subscription:
        subscription = Subscription(self, maxsize=max(self._queue_size, len(self._backlog)))
        if self._closed:
            # Tras el cierre no se registran suscriptores; el stream termina de inmediato.
            subscription.close()
            return subscription
        for message in self._backlog:
            subscription.offer(message)
        self._subscribers.append(subscription)
        logger.info("stream.subscribed", extra={"subscribers": len(self._subscribers)})
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        try:
            self._subscribers.remove(subscription)
        except ValueError:
            return
        logger.info("stream.unsubscribed", extra={"subscribers": len(self._subscribers)})

    def close(self) -> None:
        """Cierra todas las suscripciones; los streams abiertos terminan."""
        self._closed = True
        for subscription in list(self._subscribers):
            subscription.close()
        self._subscribers.clear()
