# voiceguard/ui.py

from __future__ import annotations

from typing import Sequence

from PyQt6.QtCore import Qt, QPointF, pyqtSignal
from PyQt6.QtGui import QColor, QPainter, QPen
from PyQt6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QPushButton,
    QLabel,
)


class LoudnessChart(QWidget):
    """Line chart of the recent loudness samples."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumHeight(100)
        self.max_level = 20.0
        self._history: list[float] = []

        self.line_color = QColor(0, 191, 255)
        self.bg_color = QColor(26, 26, 26)

    def set_history(self, history: Sequence[float]):
        self._history = list(history)
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), self.bg_color)

        if len(self._history) < 2:
            return

        width = self.width()
        height = self.height() - 4
        scale = max(self.max_level, max(self._history))
        step = width / (len(self._history) - 1)

        points = [
            QPointF(i * step, 2 + height * (1.0 - value / scale))
            for i, value in enumerate(self._history)
        ]
        painter.setPen(QPen(self.line_color, 2))
        painter.drawPolyline(points)


class VoiceGuardWindow(QMainWindow):
    """
    Main VoiceGuard window.

    Layout:
    - Status line (current notification)
    - Countdown while enrolling
    - Scan / Start / Stop buttons (shown per mode)
    - Authorization banner
    - Loudness chart
    """

    enroll_requested = pyqtSignal()
    monitor_requested = pyqtSignal()
    stop_requested = pyqtSignal()

    GREEN = "#00C853"
    RED = "#FF0033"

    def __init__(self):
        super().__init__()
        self.setWindowTitle("VoiceGuard")
        self.resize(480, 360)

        central = QWidget(self)
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)

        title = QLabel("AI Voice Authentication")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet("font-size: 18pt; font-weight: bold;")
        layout.addWidget(title)

        self.status_label = QLabel("Status: Waiting for action...")
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.status_label.setWordWrap(True)
        layout.addWidget(self.status_label)

        self.countdown_label = QLabel("")
        self.countdown_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.countdown_label.setStyleSheet("font-size: 14pt;")
        layout.addWidget(self.countdown_label)

        buttons = QHBoxLayout()
        self.scan_button = QPushButton("Scan Speaker Voice")
        self.start_button = QPushButton("Start Voice Control Mode")
        self.stop_button = QPushButton("Stop Voice Control")
        for button in (self.scan_button, self.start_button, self.stop_button):
            buttons.addWidget(button)
        layout.addLayout(buttons)

        self.scan_button.clicked.connect(self.enroll_requested.emit)
        self.start_button.clicked.connect(self.monitor_requested.emit)
        self.stop_button.clicked.connect(self.stop_requested.emit)

        self.authorization_label = QLabel("")
        self.authorization_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.authorization_label.setStyleSheet("font-size: 16pt; font-weight: bold;")
        layout.addWidget(self.authorization_label)

        self.loudness_chart = LoudnessChart()
        layout.addWidget(self.loudness_chart, 1)

        self.set_mode("idle", 0.0)

    # ---------- slots driven by the controller ----------

    def set_notification(self, text: str):
        self.status_label.setText(f"Status: {text}")

    def set_mode(self, mode: str, seconds_remaining: float):
        self.scan_button.setVisible(mode in ("idle", "awaiting_confirmation"))
        self.start_button.setVisible(mode == "awaiting_confirmation")
        self.stop_button.setVisible(mode == "monitoring")

        if mode == "enrolling":
            self.countdown_label.setText(f"Recording... {seconds_remaining:.0f} seconds left")
        else:
            self.countdown_label.setText("")

    def set_authorization(self, state: str):
        if state == "authorized":
            self.authorization_label.setText("✅ Speaker Allowed")
            self.authorization_label.setStyleSheet(
                f"font-size: 16pt; font-weight: bold; color: {self.GREEN};"
            )
        elif state == "unauthorized":
            self.authorization_label.setText("❌ Unauthorized Speaker Detected!")
            self.authorization_label.setStyleSheet(
                f"font-size: 16pt; font-weight: bold; color: {self.RED};"
            )
        else:
            self.authorization_label.setText("")

    def set_loudness(self, history: Sequence[float]):
        self.loudness_chart.set_history(history)
