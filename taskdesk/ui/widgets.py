"""
taskdesk – themed widget primitives
"""
from __future__ import annotations

import math
import time as _time
from typing import Dict

from PySide6 import QtCore, QtWidgets
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QBrush, QColor, QPainter

# ──────────────────────────────────────────────
# Palette
# ──────────────────────────────────────────────
PALETTE = {
    "bg_deep":      "#0a0c10",
    "bg_card":      "#111418",
    "border":       "#1e2530",
    "text_primary": "#e2e6ec",
    "text_muted":   "#6b7280",
    "accent_cyan":  "#22d3ee",
    "green":        "#22c55e",
    "orange":       "#f97316",
    "red":          "#ef4444",
}

CPU_HOT_PCT = 85.0
CPU_WARM_PCT = 60.0

# comm name → emoji
PROCESS_ICONS: Dict[str, str] = {
    "firefox":       "🦊",
    "chrome":        "🌐",
    "chromium":      "🌐",
    "code":          "💻",
    "python":        "🐍",
    "python3":       "🐍",
    "node":          "📦",
    "bash":          "⬛",
    "zsh":           "⬛",
    "fish":          "⬛",
    "sshd":          "🔐",
    "systemd":       "⚙️",
    "Xorg":          "🖥️",
    "gnome-shell":   "🖥️",
    "pipewire":      "🎵",
    "pulseaudio":    "🎵",
    "postgres":      "🗄️",
    "mysqld":        "🗄️",
}


def get_process_icon(name: str) -> str:
    return PROCESS_ICONS.get(name, PROCESS_ICONS.get(name.lower(), "·"))


def cpu_color(pct: float) -> str:
    if pct > CPU_HOT_PCT:
        return PALETTE["red"]
    if pct > CPU_WARM_PCT:
        return PALETTE["orange"]
    return PALETTE["text_primary"]


# ──────────────────────────────────────────────
# LiveDot – breathing "refreshing" indicator
# ──────────────────────────────────────────────
class LiveDot(QtWidgets.QWidget):
    def __init__(self, color: str = PALETTE["green"], radius: int = 5, parent=None):
        super().__init__(parent)
        self._color = QColor(color)
        self._radius = radius
        self._phase = 0.0
        self._t0 = _time.monotonic()
        self.setFixedSize(radius * 4, radius * 4)

        self._timer = QTimer(self)
        self._timer.setInterval(80)
        self._timer.timeout.connect(self._advance)
        self._timer.start()

    def set_color(self, color: str):
        self._color = QColor(color)
        self.update()

    def _advance(self):
        t = _time.monotonic() - self._t0
        self._phase = (math.sin(t * 2.5) + 1.0) * 0.5
        self.update()

    def paintEvent(self, _event):
        p = QPainter(self)
        p.setRenderHint(QPainter.Antialiasing)
        c = QtCore.QPointF(self.width() / 2, self.height() / 2)

        halo = QColor(self._color)
        halo.setAlpha(int(70 * (1.0 - self._phase)))
        r_halo = self._radius * (1.0 + 0.9 * self._phase)
        p.setPen(Qt.NoPen)
        p.setBrush(QBrush(halo))
        p.drawEllipse(c, r_halo, r_halo)

        p.setBrush(QBrush(self._color))
        p.drawEllipse(c, self._radius, self._radius)
        p.end()


# ──────────────────────────────────────────────
# NumericSortItem – sorts PID / UID / CPU columns by value
# ──────────────────────────────────────────────
class NumericSortItem(QtWidgets.QTableWidgetItem):
    def __init__(self, text: str, value: float):
        super().__init__(text)
        self.setData(Qt.UserRole, value)

    def __lt__(self, other: QtWidgets.QTableWidgetItem) -> bool:
        mine, theirs = self.data(Qt.UserRole), other.data(Qt.UserRole)
        if mine is None or theirs is None:
            return self.text() < other.text()
        return mine < theirs
