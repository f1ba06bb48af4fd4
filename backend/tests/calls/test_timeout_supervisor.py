"""Pruebas del supervisor de timeout."""

import asyncio

from callrelay.calls.timeout import TimeoutSupervisor


async def test_fires_once_after_delay() -> None:
    supervisor = TimeoutSupervisor()
    fired: list[str] = []

    supervisor.arm(0.01, lambda: fired.append("x"))
    assert supervisor.armed
    await asyncio.sleep(0.05)

    assert fired == ["x"]
    assert supervisor.fired == 1
    assert not supervisor.armed


async def test_cancel_prevents_callback() -> None:
    supervisor = TimeoutSupervisor()
    fired: list[str] = []

    supervisor.arm(0.02, lambda: fired.append("x"))
    assert supervisor.cancel() is True
    await asyncio.sleep(0.05)

    assert fired == []
    assert supervisor.cancel() is False


async def test_rearming_replaces_previous_deadline() -> None:
    supervisor = TimeoutSupervisor()
    fired: list[str] = []

    supervisor.arm(0.02, lambda: fired.append("first"))
    supervisor.arm(0.02, lambda: fired.append("second"))
    await asyncio.sleep(0.08)

    assert fired == ["second"]
    assert supervisor.fired == 1
