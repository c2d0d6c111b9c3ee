"""
taskdesk – main window: live process table sorted by CPU
"""
from __future__ import annotations

import time
from typing import Callable, Dict, List, Optional

from PySide6 import QtCore, QtWidgets
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QBrush, QColor, QPainter

from ..collectors import build_process_map, get_process
from ..models import Process, UserFilter
from .widgets import PALETTE, LiveDot, NumericSortItem, cpu_color, get_process_icon

COLUMNS = ["PID", "UID", "User", "CPU %", "Name"]
COL_PID, COL_UID, COL_USER, COL_CPU, COL_NAME = range(len(COLUMNS))


def _set_cell(table: QtWidgets.QTableWidget, row: int, col: int, text: str):
    item = QtWidgets.QTableWidgetItem(text)
    item.setFlags(item.flags() & ~Qt.ItemIsEditable)
    table.setItem(row, col, item)


def _set_num_cell(table: QtWidgets.QTableWidget, row: int, col: int,
                  text: str, value: float) -> QtWidgets.QTableWidgetItem:
    item = NumericSortItem(text, value)
    item.setFlags(item.flags() & ~Qt.ItemIsEditable)
    table.setItem(row, col, item)
    return item


# ──────────────────────────────────────────────
# TopBar
# ──────────────────────────────────────────────
class TopBar(QtWidgets.QWidget):
    filter_changed = QtCore.Signal(object)   # UserFilter

    def __init__(self, user_filter: UserFilter, parent=None):
        super().__init__(parent)
        self.setFixedHeight(52)

        lay = QtWidgets.QHBoxLayout(self)
        lay.setContentsMargins(24, 0, 24, 0)
        lay.setSpacing(12)

        logo = QtWidgets.QLabel()
        logo.setText(
            f'<span style="font-family:Consolas,monospace;font-size:20px;'
            f'font-weight:800;color:{PALETTE["accent_cyan"]};letter-spacing:4px;">'
            f'TASK</span>'
            f'<span style="font-family:Consolas,monospace;font-size:20px;'
            f'font-weight:300;color:{PALETTE["text_muted"]};letter-spacing:4px;">'
            f'DESK</span>'
        )
        lay.addWidget(logo)
        lay.addStretch(1)

        self.filter_box = QtWidgets.QComboBox()
        self.filter_box.addItem("My processes", UserFilter.CURRENT.value)
        self.filter_box.addItem("All users", UserFilter.ALL.value)
        self.filter_box.setCurrentIndex(self.filter_box.findData(user_filter.value))
        self.filter_box.currentIndexChanged.connect(
            lambda i: self.filter_changed.emit(UserFilter(self.filter_box.itemData(i)))
        )
        lay.addWidget(self.filter_box)

        self.live_dot = LiveDot(color=PALETTE["green"])
        lay.addWidget(self.live_dot)

        self._clock = QtWidgets.QLabel("")
        self._clock.setStyleSheet(
            f"font-family: 'Consolas', monospace; font-size: 13px; color: {PALETTE['text_muted']};"
        )
        lay.addWidget(self._clock)

        self._clock_timer = QTimer(self)
        self._clock_timer.setInterval(1000)
        self._clock_timer.timeout.connect(self._update_clock)
        self._clock_timer.start()
        self._update_clock()

    def _update_clock(self):
        self._clock.setText(time.strftime("%H:%M:%S"))

    def paintEvent(self, _event):
        p = QPainter(self)
        p.setPen(Qt.NoPen)
        p.setBrush(QBrush(QColor(PALETTE["bg_card"])))
        p.drawRect(self.rect())
        p.setPen(QColor(PALETTE["accent_cyan"]))
        p.drawLine(0, self.height() - 1, self.width(), self.height() - 1)
        p.end()
        super().paintEvent(_event)


# ──────────────────────────────────────────────
# ProcessDetailDialog
# ──────────────────────────────────────────────
class ProcessDetailDialog(QtWidgets.QDialog):
    def __init__(self, proc: Process, cpu_text: str, sample_count: int, parent=None):
        super().__init__(parent)
        self.setWindowTitle(f"Process {proc.pid}")
        self.setMinimumWidth(320)

        form = QtWidgets.QFormLayout(self)
        form.addRow("PID:", QtWidgets.QLabel(str(proc.pid)))
        form.addRow("Name:", QtWidgets.QLabel(proc.name))
        form.addRow("UID:", QtWidgets.QLabel(str(proc.ruid)))
        form.addRow("Username:", QtWidgets.QLabel(proc.username))
        form.addRow("CPU Usage:", QtWidgets.QLabel(cpu_text))
        form.addRow("Samples:", QtWidgets.QLabel(str(sample_count)))

        buttons = QtWidgets.QDialogButtonBox(QtWidgets.QDialogButtonBox.Close)
        buttons.rejected.connect(self.reject)
        form.addRow(buttons)


# ──────────────────────────────────────────────
# MainWindow
# ──────────────────────────────────────────────
class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, user_filter: UserFilter = UserFilter.CURRENT,
                 sample_count: Optional[Callable[[int], int]] = None):
        super().__init__()
        self.setWindowTitle("TaskDesk")
        self.resize(900, 640)

        self._sample_count = sample_count or (lambda _pid: 0)
        self._by_pid: Dict[int, Process] = {}

        root = QtWidgets.QWidget()
        self.setCentralWidget(root)
        vroot = QtWidgets.QVBoxLayout(root)
        vroot.setContentsMargins(0, 0, 0, 0)
        vroot.setSpacing(0)

        self.topbar = TopBar(user_filter)
        vroot.addWidget(self.topbar)

        self.tbl_procs = self._make_table()
        self.tbl_procs.cellDoubleClicked.connect(self._show_detail)
        vroot.addWidget(self.tbl_procs, 1)

        self.status = QtWidgets.QLabel("Waiting for first sample …")
        self.status.setContentsMargins(20, 6, 20, 6)
        vroot.addWidget(self.status)

        self._apply_global_style()

    def _make_table(self) -> QtWidgets.QTableWidget:
        t = QtWidgets.QTableWidget(0, len(COLUMNS))
        t.setHorizontalHeaderLabels(COLUMNS)
        t.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        t.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        t.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        t.setAlternatingRowColors(True)
        t.setShowGrid(False)
        t.verticalHeader().setVisible(False)
        t.horizontalHeader().setSectionResizeMode(QtWidgets.QHeaderView.ResizeToContents)
        t.horizontalHeader().setStretchLastSection(True)
        t.setSortingEnabled(True)
        t.sortByColumn(COL_CPU, Qt.DescendingOrder)
        return t

    def _apply_global_style(self):
        self.setStyleSheet(f"""
            QMainWindow, QWidget {{ background: {PALETTE['bg_deep']}; color: {PALETTE['text_primary']}; }}
            QTableWidget {{
                background: {PALETTE['bg_card']};
                alternate-background-color: {PALETTE['bg_deep']};
                border: none;
                font-family: 'Consolas', monospace; font-size: 12px;
            }}
            QHeaderView::section {{
                background: {PALETTE['bg_card']}; color: {PALETTE['accent_cyan']};
                border: none; border-bottom: 1px solid {PALETTE['border']};
                padding: 6px; font-weight: 600;
            }}
            QLabel {{ font-family: 'Consolas', monospace; font-size: 11px; color: {PALETTE['text_muted']}; }}
        """)

    # ═══════════════════════════════════════════
    # Data update hooks
    # ═══════════════════════════════════════════
    @QtCore.Slot(list)
    def update_processes(self, procs: List[Process]):
        self._by_pid = build_process_map(procs)
        t = self.tbl_procs

        t.setSortingEnabled(False)
        t.setRowCount(len(procs))
        for r, p in enumerate(procs):
            _set_num_cell(t, r, COL_PID, str(p.pid), p.pid)
            _set_num_cell(t, r, COL_UID, str(p.ruid), p.ruid)
            _set_cell(t, r, COL_USER, p.username)
            cpu = _set_num_cell(t, r, COL_CPU, p.cpu_percent_str(), p.cpu_percent)
            cpu.setForeground(QColor(cpu_color(p.cpu_percent)))
            _set_cell(t, r, COL_NAME, f"{get_process_icon(p.name)}  {p.name}")
        t.setSortingEnabled(True)

        total = sum(p.cpu_percent for p in procs)
        self.status.setText(f"{len(procs)} processes · {total:.1f}% CPU")
        self.topbar.live_dot.set_color(PALETTE["green"])

    def set_sample_counter(self, sample_count: Callable[[int], int]):
        self._sample_count = sample_count

    @QtCore.Slot(str)
    def show_error(self, message: str):
        self.status.setText(f"Refresh failed: {message}")
        self.topbar.live_dot.set_color(PALETTE["red"])

    def _show_detail(self, row: int, _col: int):
        item = self.tbl_procs.item(row, COL_PID)
        if item is None:
            return
        pid = int(item.data(Qt.UserRole))
        proc = self._by_pid.get(pid)
        if proc is None:
            return
        identity = get_process(pid) or proc   # fresh identity if still alive
        ProcessDetailDialog(identity, proc.cpu_percent_str(), self._sample_count(pid), self).exec()
