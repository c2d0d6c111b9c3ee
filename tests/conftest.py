import pytest

from taskdesk.collectors import TickSourceError
from taskdesk.models import Process, TickReading


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeTickSource:
    """Tick source whose readings the test sets directly."""

    ticks_per_second = 100

    def __init__(self):
        self.readings = {}
        self.hidden = {}     # visible to read() only
        self.fail = False
        self.calls = 0
        self.reads = []

    def set(self, pid, user, system=0):
        self.readings[pid] = TickReading(user, system)

    def drop(self, pid):
        self.readings.pop(pid, None)

    def snapshot(self):
        self.calls += 1
        if self.fail:
            raise TickSourceError("proc table unreadable")
        return dict(self.readings)

    def hide(self, pid, user, system=0):
        self.hidden[pid] = TickReading(user, system)

    def read(self, pid):
        self.reads.append(pid)
        return self.readings.get(pid) or self.hidden.get(pid)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ticks():
    return FakeTickSource()


@pytest.fixture
def make_proc():
    def _make(pid, name="worker", ruid=1000, username="paul"):
        return Process(name=name, pid=pid, ruid=ruid, username=username)
    return _make
