"""
Custom GUI widgets for FaceControl.
"""

from typing import Optional

from PyQt6.QtWidgets import QWidget
from PyQt6.QtCore import Qt, QPointF
from PyQt6.QtGui import QPainter, QPen, QColor

from facecontrol.vision.landmarks import LandmarkFrame, LEFT_EYE, RIGHT_EYE, NOSE_TIP


class LandmarkPreviewWidget(QWidget):
    """
    Mirrored preview of the tracked landmarks.

    Draws the nose tip with a crosshair and the eye lid/corner points.
    Cosmetic only. Points are hidden when the mesh overlay is off.
    """

    def __init__(self, width: int = 320, height: int = 240, parent=None):
        """
        Initialize preview widget.

        Args:
            width: Preview width
            height: Preview height
            parent: Parent widget
        """
        super().__init__(parent)
        self.setFixedSize(width, height)
        self.setStyleSheet("background-color: black;")

        self._frame: Optional[LandmarkFrame] = None
        self._show_mesh = True

    def update_frame(self, frame: Optional[LandmarkFrame]):
        """Show a new landmark frame (None clears the preview)."""
        self._frame = frame
        self.update()

    def set_show_mesh(self, show: bool):
        self._show_mesh = show
        self.update()

    def _to_widget(self, point) -> QPointF:
        # Mirror horizontally to match what the user sees of themselves
        return QPointF((1.0 - float(point[0])) * self.width(), float(point[1]) * self.height())

    def paintEvent(self, event):
        """Paint the landmark overlay."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(0, 0, 0))

        if self._frame is None or not self._frame.has_face:
            painter.setPen(QColor(128, 128, 128))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No face")
            return

        if not self._show_mesh:
            return

        # Nose (main tracking point)
        nose = self._to_widget(self._frame.point(NOSE_TIP))
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor(16, 185, 129, 230))
        painter.drawEllipse(nose, 8, 8)

        painter.setPen(QPen(QColor(16, 185, 129, 150), 2))
        painter.drawLine(QPointF(nose.x() - 16, nose.y()), QPointF(nose.x() + 16, nose.y()))
        painter.drawLine(QPointF(nose.x(), nose.y() - 16), QPointF(nose.x(), nose.y() + 16))

        # Eyes
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor(139, 92, 246, 200))
        for indices in (LEFT_EYE, RIGHT_EYE):
            for index in indices.values():
                painter.drawEllipse(self._to_widget(self._frame.point(index)), 3, 3)
