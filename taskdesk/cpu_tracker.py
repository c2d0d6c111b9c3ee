from __future__ import annotations
import logging
import time
from collections import deque
from typing import Callable, Deque, Dict, Iterable, Optional, Set, Tuple

from .collectors import TickSourceError, clock_ticks_per_second
from .models import Process, Sample

log = logging.getLogger(__name__)

HISTORY_SIZE = 5
UPDATE_INTERVAL_S = 1.0
MAX_MISSED_CYCLES = 2


class CpuTracker:
    """
    Smoothed per-process CPU % from cumulative tick counters.

    Every PID keeps a short FIFO of samples; the percentage is the busy
    ticks gained between the oldest and newest sample divided by the wall
    time between them. One full core equals 100%, so busy multi-threaded
    processes can exceed 100.

    Not thread-safe: call ``needs_update``/``update`` from one thread.
    """

    def __init__(self, history_size: int = HISTORY_SIZE,
                 update_interval: float = UPDATE_INTERVAL_S,
                 ticks_per_second: Optional[int] = None,
                 clock: Callable[[], float] = time.monotonic):
        if history_size < 2:
            raise ValueError("history_size must be at least 2")
        self.history_size = history_size
        self.update_interval = update_interval
        self.ticks_per_second = ticks_per_second or clock_ticks_per_second()
        self._clock = clock

        self._history: Dict[int, Deque[Sample]] = {}
        self._missed: Dict[int, int] = {}
        self.last_update: Optional[float] = None

    # ── throttle ──────────────────────────────
    def needs_update(self) -> bool:
        if self.last_update is None:
            return True
        return self._clock() - self.last_update >= self.update_interval

    # ── ingest ────────────────────────────────
    def update(self, processes: Iterable[Process], tick_source) -> None:
        now = self._clock()
        procs = list(processes)

        try:
            readings = tick_source.snapshot()
        except TickSourceError as e:
            log.warning("CPU update skipped, tick source unavailable: %s", e)
            self.last_update = now
            return

        computed: Dict[int, float] = {}
        for proc in procs:
            pid = proc.pid
            if pid in computed:         # duplicate entry for the same PID
                proc.cpu_percent = computed[pid]
                continue
            reading = readings.get(pid)
            if reading is None:         # not in the batch: ask once for this PID
                reading = tick_source.read(pid)
            if reading is None:
                continue
            sample = Sample(reading.user_ticks, reading.system_ticks, now)
            computed[pid] = proc.cpu_percent = self._ingest(pid, sample)

        self._collect_garbage({p.pid for p in procs})
        self.last_update = now

    def _ingest(self, pid: int, sample: Sample) -> float:
        history = self._history.get(pid)
        if history is None:
            history = self._history[pid] = deque(maxlen=self.history_size)
        elif history and _regressed(history[-1], sample):
            log.debug("pid %d ticks went backwards, restarting history", pid)
            history.clear()

        history.append(sample)
        if len(history) < 2:
            return 0.0
        return self._window_percent(history[0], history[-1])

    def _window_percent(self, oldest: Sample, newest: Sample) -> float:
        elapsed = newest.timestamp - oldest.timestamp
        if elapsed <= 0:
            return 0.0
        busy_delta = newest.busy_ticks - oldest.busy_ticks
        return 100.0 * busy_delta / (self.ticks_per_second * elapsed)

    def _collect_garbage(self, seen: Set[int]) -> None:
        for pid in list(self._history):
            if pid in seen:
                self._missed.pop(pid, None)
                continue
            missed = self._missed.get(pid, 0) + 1
            if missed >= MAX_MISSED_CYCLES:
                del self._history[pid]
                self._missed.pop(pid, None)
            else:
                self._missed[pid] = missed

    # ── inspection ────────────────────────────
    def samples(self, pid: int) -> Tuple[Sample, ...]:
        return tuple(self._history.get(pid, ()))

    def tracked_pids(self) -> Set[int]:
        return set(self._history)


def _regressed(previous: Sample, current: Sample) -> bool:
    return (current.user_ticks < previous.user_ticks
            or current.system_ticks < previous.system_ticks)
