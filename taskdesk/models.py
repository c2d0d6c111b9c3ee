from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


@dataclass(eq=False)
class Process:
    name: str
    pid: int
    ruid: int
    username: str
    cpu_percent: float = 0.0   # written by CpuTracker only

    def cpu_percent_str(self) -> str:
        return f"{self.cpu_percent:.1f}%"

    def _key(self):
        return (self.name, self.pid, self.ruid, self.username)

    def __eq__(self, other):
        if not isinstance(other, Process):
            return NotImplemented
        return self._key() == other._key() and self.cpu_percent == other.cpu_percent

    def __hash__(self):
        return hash(self._key())


@dataclass(frozen=True)
class TickReading:
    user_ticks: int
    system_ticks: int

    @property
    def busy_ticks(self) -> int:
        return self.user_ticks + self.system_ticks


@dataclass(frozen=True)
class Sample:
    user_ticks: int
    system_ticks: int
    timestamp: float    # seconds, tracker clock

    @property
    def busy_ticks(self) -> int:
        return self.user_ticks + self.system_ticks


class UserFilter(str, Enum):
    CURRENT = "current"
    ALL = "all"
