from __future__ import annotations
import logging
import psutil
from typing import Callable, Dict, List
from PySide6 import QtCore

from .collectors import build_process_map, process_names
from .cpu_tracker import CpuTracker
from .models import Process, UserFilter

log = logging.getLogger(__name__)


def sort_by_cpu(procs: List[Process]) -> List[Process]:
    procs.sort(key=lambda p: (-p.cpu_percent, p.pid))
    return procs


class ProcessSampler(QtCore.QObject):
    """
    Refresh driver. ``tick`` is cheap to call often: the tracker's
    throttle decides when a real refresh happens.
    Runs on the GUI thread; the tracker is not shared with any pool.
    """

    procs_ready = QtCore.Signal(list)   # List[Process], highest CPU first
    failed = QtCore.Signal(str)

    def __init__(self, tracker: CpuTracker, tick_source,
                 user_filter: UserFilter = UserFilter.CURRENT,
                 enumerate_processes: Callable[[UserFilter], List[Process]] = process_names):
        super().__init__()
        self.tracker = tracker
        self.tick_source = tick_source
        self.user_filter = user_filter
        self._enumerate = enumerate_processes
        self._force = False
        self._last: Dict[int, Process] = {}

    def set_user_filter(self, user_filter: UserFilter):
        self.user_filter = user_filter
        self._force = True

    @QtCore.Slot()
    def tick(self):
        if not (self._force or self.tracker.needs_update()):
            return
        self._force = False

        try:
            procs = self._enumerate(self.user_filter)
        except (psutil.Error, OSError) as e:
            log.error("process enumeration failed: %s", e)
            self.failed.emit(str(e))
            return

        # fresh records start at 0.0; hold last-known values for PIDs the
        # tracker skips this round (tick source down, PID missing)
        for p in procs:
            held = self._last.get(p.pid)
            if held is not None:
                p.cpu_percent = held.cpu_percent

        self.tracker.update(procs, self.tick_source)
        self._last = build_process_map(procs)
        self.procs_ready.emit(sort_by_cpu(procs))
