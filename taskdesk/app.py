from __future__ import annotations
from PySide6 import QtCore, QtWidgets
import logging
import sys

from .config import AppConfig, load_config
from .collectors import PsutilTickSource
from .cpu_tracker import CpuTracker
from .sampler import ProcessSampler
from .ui.main_window import MainWindow

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        format=LOG_FORMAT)


class Controller(QtCore.QObject):
    """
    Owns the tracker and drives it from a GUI-thread timer.
    The timer fires every ``poll_interval_ms``; the tracker throttle
    turns that into one real refresh per ``cpu_update_interval_s``.
    """
    def __init__(self, cfg: AppConfig, win: MainWindow):
        super().__init__()
        self.cfg = cfg
        self.win = win

        self.tick_source = PsutilTickSource(cfg.ticks_per_second or None)
        self.tracker = CpuTracker(
            history_size=cfg.cpu_history_size,
            update_interval=cfg.cpu_update_interval_s,
            ticks_per_second=self.tick_source.ticks_per_second,
        )
        self.sampler = ProcessSampler(self.tracker, self.tick_source, cfg.user_filter_enum())
        self.sampler.procs_ready.connect(win.update_processes)
        self.sampler.failed.connect(win.show_error)
        win.topbar.filter_changed.connect(self.sampler.set_user_filter)

        self.timer = QtCore.QTimer(self)
        self.timer.setInterval(cfg.poll_interval_ms)
        self.timer.timeout.connect(self.sampler.tick)
        self.timer.start()

        log.info("polling every %d ms, CPU refresh every %.1fs over %d samples at %d ticks/s",
                 cfg.poll_interval_ms, cfg.cpu_update_interval_s,
                 cfg.cpu_history_size, self.tick_source.ticks_per_second)

    def sample_count(self, pid: int) -> int:
        return len(self.tracker.samples(pid))


def main():
    cfg = load_config()
    configure_logging(cfg.log_level)

    app = QtWidgets.QApplication(sys.argv)
    win = MainWindow(cfg.user_filter_enum())
    controller = Controller(cfg, win)
    win.set_sample_counter(controller.sample_count)
    win.show()

    sys.exit(app.exec())
