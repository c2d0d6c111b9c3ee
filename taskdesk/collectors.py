from __future__ import annotations
import logging
import os
import psutil
from typing import Dict, Iterable, List, Optional

from .models import Process, TickReading, UserFilter

log = logging.getLogger(__name__)

DEFAULT_TICKS_PER_SECOND = 100
UNKNOWN_USER = "unknown"


class TickSourceError(RuntimeError):
    """The process table could not be read at all."""


def clock_ticks_per_second() -> int:
    try:
        return int(os.sysconf("SC_CLK_TCK"))
    except (AttributeError, ValueError, OSError):
        return DEFAULT_TICKS_PER_SECOND


def current_uid() -> Optional[int]:
    """Real uid of this process; None where the OS has no uids (Windows)."""
    if not hasattr(os, "getuid"):
        return None
    return os.getuid()


def current_username() -> str:
    try:
        return psutil.Process().username()
    except (psutil.Error, KeyError):
        return UNKNOWN_USER


# ──────────────────────────────────────────────
# Tick source – cumulative user/system ticks per PID
# ──────────────────────────────────────────────
class PsutilTickSource:
    """
    psutil reports cpu_times() in seconds; they are converted back to
    clock ticks here so every reading carries the same unit as
    ``ticks_per_second``.
    """

    def __init__(self, ticks_per_second: Optional[int] = None):
        self.ticks_per_second = ticks_per_second or clock_ticks_per_second()

    def _to_ticks(self, times) -> TickReading:
        tps = self.ticks_per_second
        return TickReading(
            user_ticks=int(round(times.user * tps)),
            system_ticks=int(round(times.system * tps)),
        )

    def snapshot(self) -> Dict[int, TickReading]:
        readings: Dict[int, TickReading] = {}
        try:
            for p in psutil.process_iter(["pid", "cpu_times"]):
                times = p.info.get("cpu_times")
                if times is None:       # access denied
                    continue
                readings[int(p.info["pid"])] = self._to_ticks(times)
        except (psutil.Error, OSError) as e:
            raise TickSourceError(f"process enumeration failed: {e}") from e
        return readings

    def read(self, pid: int) -> Optional[TickReading]:
        """Single-PID lookup; None when the process is gone or hidden."""
        try:
            return self._to_ticks(psutil.Process(pid).cpu_times())
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return None


# ──────────────────────────────────────────────
# Process enumeration
# ──────────────────────────────────────────────
def _to_process(info: dict) -> Process:
    uids = info.get("uids")
    return Process(
        name=info.get("name") or "-",
        pid=int(info["pid"]),
        ruid=int(uids.real) if uids is not None else -1,
        username=info.get("username") or UNKNOWN_USER,
    )


def _process_attrs() -> List[str]:
    attrs = ["pid", "name", "username"]
    if psutil.POSIX:
        attrs.append("uids")
    return attrs


def process_names(user_filter: UserFilter = UserFilter.CURRENT) -> List[Process]:
    """
    Live processes with ``cpu_percent`` left at 0.0 for the tracker.
    Without uids (Windows) the current-user filter matches on username.
    """
    me = current_uid()
    my_name = current_username() if me is None else None
    rows: List[Process] = []
    for p in psutil.process_iter(_process_attrs()):
        try:
            proc = _to_process(p.info)
        except (KeyError, TypeError, ValueError):
            log.debug("skipping unreadable process entry %r", p)
            continue
        if user_filter is UserFilter.CURRENT:
            mine = proc.ruid == me if me is not None else proc.username == my_name
            if not mine:
                continue
        rows.append(proc)
    return rows


def get_process(pid: int) -> Optional[Process]:
    try:
        p = psutil.Process(pid)
        with p.oneshot():
            info = p.as_dict(_process_attrs())
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return None
    return _to_process(info)


def build_process_map(processes: Iterable[Process]) -> Dict[int, Process]:
    return {p.pid: p for p in processes}
