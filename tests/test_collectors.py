import os
from collections import namedtuple

import psutil
import pytest

from taskdesk import collectors
from taskdesk.collectors import (
    PsutilTickSource, TickSourceError, build_process_map, get_process, process_names,
)
from taskdesk.models import Process, TickReading, UserFilter

CpuTimes = namedtuple("CpuTimes", "user system")
Uids = namedtuple("Uids", "real effective saved")


class FakeProc:
    def __init__(self, **info):
        self.info = info


def test_snapshot_converts_seconds_to_ticks(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "process_iter", lambda attrs: iter([
        FakeProc(pid=1, cpu_times=CpuTimes(1.5, 0.23)),
        FakeProc(pid=2, cpu_times=None),          # access denied
    ]))
    source = PsutilTickSource(ticks_per_second=100)
    assert source.snapshot() == {1: TickReading(150, 23)}


def test_snapshot_failure_raises_tick_source_error(monkeypatch):
    def broken(attrs):
        yield FakeProc(pid=1, cpu_times=CpuTimes(1.0, 0.0))
        raise OSError("/proc vanished")

    monkeypatch.setattr(collectors.psutil, "process_iter", broken)
    with pytest.raises(TickSourceError):
        PsutilTickSource(ticks_per_second=100).snapshot()


def test_read_missing_pid_returns_none(monkeypatch):
    def gone(pid):
        raise psutil.NoSuchProcess(pid)

    monkeypatch.setattr(collectors.psutil, "Process", gone)
    assert PsutilTickSource(ticks_per_second=100).read(424242) is None


def test_read_own_process():
    reading = PsutilTickSource().read(os.getpid())
    assert reading is not None
    assert reading.user_ticks >= 0
    assert reading.system_ticks >= 0


def test_ticks_per_second_defaults_to_os(monkeypatch):
    monkeypatch.setattr(collectors, "clock_ticks_per_second", lambda: 250)
    assert PsutilTickSource().ticks_per_second == 250


def test_clock_ticks_fallback(monkeypatch):
    def unsupported(name):
        raise ValueError(name)

    monkeypatch.setattr(collectors.os, "sysconf", unsupported)
    assert collectors.clock_ticks_per_second() == collectors.DEFAULT_TICKS_PER_SECOND


def _fake_table(monkeypatch):
    monkeypatch.setattr(collectors, "current_uid", lambda: 1000)
    monkeypatch.setattr(collectors.psutil, "process_iter", lambda attrs: iter([
        FakeProc(pid=1, name="systemd", uids=Uids(0, 0, 0), username="root"),
        FakeProc(pid=200, name="bash", uids=Uids(1000, 1000, 1000), username="paul"),
        FakeProc(pid=300, name="", uids=Uids(1001, 1001, 1001), username=None),
    ]))


def test_process_names_current_user_only(monkeypatch):
    _fake_table(monkeypatch)
    procs = process_names(UserFilter.CURRENT)
    assert procs == [Process("bash", 200, 1000, "paul")]


def test_process_names_all_users_with_fallbacks(monkeypatch):
    _fake_table(monkeypatch)
    procs = process_names(UserFilter.ALL)
    assert [p.pid for p in procs] == [1, 200, 300]
    assert procs[2].name == "-"
    assert procs[2].username == collectors.UNKNOWN_USER
    assert all(p.cpu_percent == 0.0 for p in procs)


def test_process_names_live_table():
    procs = process_names(UserFilter.ALL)
    pids = [p.pid for p in procs]
    assert os.getpid() in pids
    assert len(pids) == len(set(pids))


def test_get_process_self():
    proc = get_process(os.getpid())
    assert proc is not None
    assert proc.pid == os.getpid()
    assert proc.name


def test_get_process_missing(monkeypatch):
    def gone(pid):
        raise psutil.NoSuchProcess(pid)

    monkeypatch.setattr(collectors.psutil, "Process", gone)
    assert get_process(424242) is None


def test_build_process_map():
    procs = [Process("a", 1, 0, "root"), Process("b", 2, 0, "root")]
    assert build_process_map(procs) == {1: procs[0], 2: procs[1]}


def test_current_user_filter_without_uids(monkeypatch):
    seen_attrs = []

    def table(attrs):
        seen_attrs.extend(attrs)
        return iter([
            FakeProc(pid=4, name="System", username="NT AUTHORITY\\SYSTEM"),
            FakeProc(pid=812, name="explorer.exe", username="DESKTOP\\paul"),
        ])

    monkeypatch.setattr(collectors.psutil, "POSIX", False)
    monkeypatch.setattr(collectors, "current_uid", lambda: None)
    monkeypatch.setattr(collectors, "current_username", lambda: "DESKTOP\\paul")
    monkeypatch.setattr(collectors.psutil, "process_iter", table)

    procs = process_names(UserFilter.CURRENT)
    assert "uids" not in seen_attrs
    assert [(p.pid, p.ruid) for p in procs] == [(812, -1)]


def test_current_uid_missing_getuid(monkeypatch):
    monkeypatch.delattr(collectors.os, "getuid")
    assert collectors.current_uid() is None
