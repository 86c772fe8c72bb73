from __future__ import annotations

from types import SimpleNamespace

import pytest


class FakeSignal:
    def __init__(self) -> None:
        self.callbacks: list = []

    def connect(self, callback) -> None:  # noqa: ANN001
        self.callbacks.append(callback)

    def emit(self, *args) -> None:  # noqa: ANN002
        for callback in list(self.callbacks):
            callback(*args)


class FakeTimer:
    instances: list["FakeTimer"] = []

    def __init__(self, _parent=None) -> None:  # noqa: ANN001
        self.timeout = FakeSignal()
        self.interval = 0
        self.single_shot = False
        self.active = False
        self.starts = 0
        FakeTimer.instances.append(self)

    def setSingleShot(self, value: bool) -> None:  # noqa: N802
        self.single_shot = value

    def setInterval(self, value: int) -> None:  # noqa: N802
        self.interval = value

    def start(self) -> None:
        self.active = True
        self.starts += 1

    def stop(self) -> None:
        self.active = False

    def isActive(self) -> bool:  # noqa: N802
        return self.active

    def fire(self) -> None:
        if self.single_shot:
            self.active = False
        self.timeout.emit()


class FakeThread:
    """Hilo sin bucle de eventos: `quit` lo da por terminado y emite `finished`."""

    def __init__(self) -> None:
        self.started = FakeSignal()
        self.finished = FakeSignal()
        self.started_flag = False
        self.quit_called = False
        self.finished_flag = False

    def start(self) -> None:
        self.started_flag = True

    def quit(self, *_args) -> None:  # noqa: ANN002
        self.quit_called = True
        if self.started_flag and not self.finished_flag:
            self.finished_flag = True
            self.finished.emit()

    def wait(self) -> bool:
        return True


@pytest.fixture
def qt_fakes() -> SimpleNamespace:
    FakeTimer.instances.clear()
    return SimpleNamespace(Signal=FakeSignal, Timer=FakeTimer, Thread=FakeThread)
