"""Pruebas del cierre ordenado y del bind del servidor."""

import errno
import socket
import time

import pytest

from callrelay.core import lifecycle
from callrelay.core.lifecycle import ListenerError, ShutdownController, bind_listener


def test_request_runs_callbacks_once(exit_codes: list[int]) -> None:
    controller = ShutdownController(grace_seconds=60, force_exit=exit_codes.append)
    calls: list[str] = []
    controller.on_shutdown(lambda: calls.append("stop"))

    controller.request("call_timeout")
    controller.request("signal:SIGINT")
    controller.disarm_watchdog()

    assert calls == ["stop"]
    assert controller.reason == "call_timeout"
    assert exit_codes == []


def test_watchdog_forces_exit_after_grace(exit_codes: list[int]) -> None:
    controller = ShutdownController(grace_seconds=0.01, force_exit=exit_codes.append)

    controller.request("call_timeout")
    time.sleep(0.2)

    assert exit_codes == [1]


class _FailingSocket:
    def __init__(self, code: int) -> None:
        self.code = code
        self.closed = False

    def setsockopt(self, *args) -> None:
        pass

    def bind(self, address) -> None:
        raise OSError(self.code, "bind failed")

    def close(self) -> None:
        self.closed = True


@pytest.mark.parametrize(
    ("code", "message"),
    [
        (errno.EACCES, "Port 80 requires elevated privileges"),
        (errno.EADDRINUSE, "Port 80 is already in use"),
    ],
)
def test_bind_errors_are_diagnosed(monkeypatch: pytest.MonkeyPatch, code: int, message: str) -> None:
    fake = _FailingSocket(code)
    monkeypatch.setattr(lifecycle.socket, "socket", lambda *args: fake)

    with pytest.raises(ListenerError, match=message):
        bind_listener("0.0.0.0", 80)
    assert fake.closed


def test_unexpected_bind_errors_propagate(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(lifecycle.socket, "socket", lambda *args: _FailingSocket(errno.EINVAL))

    with pytest.raises(OSError):
        bind_listener("0.0.0.0", 80)


def test_bind_listener_returns_bound_socket() -> None:
    sock = bind_listener("127.0.0.1", 0)
    try:
        assert sock.getsockname()[1] > 0
        assert sock.type == socket.SOCK_STREAM
    finally:
        sock.close()
