"""
Status window with worker thread architecture.

Minimal status feedback for validating tracking and gestures: face and
gesture state, cursor position, click counter, calibration countdown,
plus the runtime controls (sensitivity, smoothness, mesh overlay).

Threading model:
- Main thread: UI event loop (PyQt6)
- Worker thread: reads landmark frames and owns every controller call
  while running; UI actions are queued and applied between frames
- Communication: Qt signals/slots
"""

import queue
from dataclasses import dataclass
from typing import Callable, Optional

from PyQt6.QtWidgets import (
    QApplication,
    QCheckBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)
from PyQt6.QtCore import QThread, Qt, pyqtSignal
from PyQt6.QtGui import QKeySequence, QShortcut

from facecontrol.core.config import AppConfig
from facecontrol.core.controller import Controller
from facecontrol.core.state import TrackingState
from facecontrol.gui.widgets import LandmarkPreviewWidget
from facecontrol.os_control.dispatch import MouseSink
from facecontrol.vision.landmark_source import LandmarkSource, LandmarkSourceError
from facecontrol.utils.timing import FrameRateLimiter
from facecontrol.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class StatusSnapshot:
    """Controller status captured on the worker thread after a frame."""

    face_status: str
    gesture_label: str
    cursor_pos: Optional[tuple[int, int]]
    click_count: int
    countdown: Optional[int]
    calibrated: bool
    dragging: bool
    fps: float


class ProcessingWorker(QThread):
    """
    Worker thread feeding landmark frames to the controller.

    NEVER updates UI directly from this thread.
    """

    frame_processed = pyqtSignal(object, object)  # (LandmarkFrame, StatusSnapshot)
    message = pyqtSignal(str)
    error_occurred = pyqtSignal(str)
    source_exhausted = pyqtSignal()

    def __init__(self, controller: Controller, source: LandmarkSource, target_fps: float, parent=None):
        """
        Initialize worker.

        Args:
            controller: Controller instance
            source: Landmark source to read from
            target_fps: Pacing for sources that do not block
            parent: Parent QObject
        """
        super().__init__(parent)
        self._controller = controller
        self._source = source
        self._limiter = FrameRateLimiter(target_fps)
        self._commands: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self._running = False

    def submit(self, command: Callable[[], None]):
        """Queue a controller action to run between frames."""
        self._commands.put(command)

    def _drain_commands(self):
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return
            command()

    def run(self):
        """Worker thread main loop."""
        logger.info("Processing worker started")
        self._running = True

        try:
            self._source.open()

            while self._running:
                self._drain_commands()

                frame = self._source.read_frame()
                if frame is None:
                    self.source_exhausted.emit()
                    break

                self._controller.on_landmark_frame(frame)
                self.frame_processed.emit(frame, self._snapshot())
                self._limiter.wait()

            # Commands queued while the last frame was read still apply
            self._drain_commands()

        except LandmarkSourceError as e:
            logger.error(f"Landmark source error: {e}")
            self.error_occurred.emit(str(e))

        finally:
            self._source.close()

        logger.info("Processing worker stopped")

    def _snapshot(self) -> StatusSnapshot:
        c = self._controller
        return StatusSnapshot(
            face_status=c.face_status,
            gesture_label=c.gesture_label,
            cursor_pos=c.cursor_position,
            click_count=c.click_count,
            countdown=c.countdown_remaining(),
            calibrated=c.is_calibrated,
            dragging=c.is_dragging,
            fps=c.fps,
        )

    def stop(self):
        """Stop the worker thread."""
        self._running = False


class MainWindow(QMainWindow):
    """Main status window."""

    def __init__(self, config: AppConfig, source: LandmarkSource, sink: MouseSink):
        """
        Initialize main window.

        Args:
            config: Application configuration
            source: Landmark source
            sink: Mouse-control sink
        """
        super().__init__()

        self._config = config
        self._source = source

        screen = QApplication.primaryScreen()
        if screen is not None:
            geometry = screen.geometry()
            screen_width, screen_height = geometry.width(), geometry.height()
        else:
            screen_width, screen_height = config.screen.width, config.screen.height
            logger.warning("No screen reported, using fallback geometry")

        logger.info(f"Screen size: {screen_width}x{screen_height}")

        self._controller = Controller(config, screen_width, screen_height, sink)
        self._worker: Optional[ProcessingWorker] = None

        self._init_ui()

        # Ctrl+Q stops tracking
        self._stop_shortcut = QShortcut(QKeySequence("Ctrl+Q"), self)
        self._stop_shortcut.activated.connect(self._on_stop_clicked)

    def _init_ui(self):
        """Initialize UI components."""
        ui = self._config.ui
        self.setWindowTitle(ui.window_title)
        self.resize(ui.window_width, ui.window_height)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout(central_widget)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)

        self._preview = LandmarkPreviewWidget(ui.preview_width, ui.preview_height)
        self._preview.set_show_mesh(ui.show_mesh)
        layout.addWidget(self._preview, alignment=Qt.AlignmentFlag.AlignHCenter)

        self._face_label = QLabel("Face: Stopped")
        self._gesture_label = QLabel("Gesture: -")
        self._cursor_label = QLabel("Cursor: Idle")
        self._clicks_label = QLabel("Clicks: 0")
        self._fps_label = QLabel("FPS: 0.0")
        self._fps_label.setStyleSheet("color: #999; font-size: 9pt;")
        self._feedback_label = QLabel("")
        self._feedback_label.setStyleSheet("font-weight: bold;")

        for label in (
            self._face_label,
            self._gesture_label,
            self._cursor_label,
            self._clicks_label,
            self._fps_label,
            self._feedback_label,
        ):
            layout.addWidget(label)

        buttons = QHBoxLayout()
        self._start_btn = QPushButton("Start")
        self._start_btn.clicked.connect(self._on_start_clicked)
        self._stop_btn = QPushButton("Stop")
        self._stop_btn.clicked.connect(self._on_stop_clicked)
        self._calibrate_btn = QPushButton("Calibrate")
        self._calibrate_btn.clicked.connect(self._on_calibrate_clicked)
        for button in (self._start_btn, self._stop_btn, self._calibrate_btn):
            buttons.addWidget(button)
        layout.addLayout(buttons)

        # Sensitivity 0.1-5.0 in steps of 0.1
        self._sensitivity_label = QLabel()
        self._sensitivity_slider = QSlider(Qt.Orientation.Horizontal)
        self._sensitivity_slider.setRange(1, 50)
        self._sensitivity_slider.setValue(round(self._config.mapping.sensitivity * 10))
        self._sensitivity_slider.valueChanged.connect(self._on_sensitivity_changed)
        layout.addWidget(self._sensitivity_label)
        layout.addWidget(self._sensitivity_slider)

        # Smoothness 0.0-1.0 in steps of 0.1
        self._smoothness_label = QLabel()
        self._smoothness_slider = QSlider(Qt.Orientation.Horizontal)
        self._smoothness_slider.setRange(0, 10)
        self._smoothness_slider.setValue(5)
        self._smoothness_slider.valueChanged.connect(self._on_smoothness_changed)
        layout.addWidget(self._smoothness_label)
        layout.addWidget(self._smoothness_slider)

        self._mesh_checkbox = QCheckBox("Show landmarks")
        self._mesh_checkbox.setChecked(ui.show_mesh)
        self._mesh_checkbox.toggled.connect(self._on_mesh_toggled)
        layout.addWidget(self._mesh_checkbox)

        layout.addStretch()

        self._sensitivity_label.setText(f"Sensitivity: {self._config.mapping.sensitivity:.1f}")
        # The slider only takes over base_smooth_factor once it is moved
        self._smoothness_label.setText(
            f"Responsiveness: default (factor {self._config.smoothing.base_smooth_factor:.3f})"
        )
        self._update_button_states()

    def _run(self, command: Callable[[], None]):
        """Run a controller action on the thread that owns it."""
        if self._worker is not None and self._worker.isRunning():
            self._worker.submit(command)
        else:
            command()

    def _on_start_clicked(self):
        if not self._controller.start():
            QMessageBox.warning(self, "Cannot Start", "Tracking could not be started.")
            return

        self._worker = ProcessingWorker(
            self._controller, self._source, self._config.camera.target_fps
        )
        self._worker.frame_processed.connect(self._on_frame_processed)
        self._worker.message.connect(self._feedback_label.setText)
        self._worker.error_occurred.connect(self._on_worker_error)
        self._worker.source_exhausted.connect(self._on_source_exhausted)
        self._worker.start()

        self._feedback_label.setText("Started - look ahead and press Calibrate")
        self._update_button_states()
        logger.info("Worker thread started")

    def _on_stop_clicked(self):
        self._stop_worker()
        self._controller.stop()
        self._face_label.setText("Face: Stopped")
        self._cursor_label.setText("Cursor: Idle")
        self._preview.update_frame(None)
        self._update_button_states()

    def _stop_worker(self):
        if self._worker is not None:
            self._worker.stop()
            self._worker.wait()
            self._worker = None

    def _on_calibrate_clicked(self):
        worker = self._worker

        def calibrate():
            if not self._controller.calibrate() and worker is not None:
                worker.message.emit("Calibration needs a visible face")

        self._run(calibrate)

    def _on_sensitivity_changed(self, value: int):
        sensitivity = value / 10.0
        self._sensitivity_label.setText(f"Sensitivity: {sensitivity:.1f}")
        self._run(lambda: self._controller.update_sensitivity(sensitivity))

    def _on_smoothness_changed(self, value: int):
        slider = value / 10.0
        self._smoothness_label.setText(f"Responsiveness: {slider:.1f}")
        self._run(lambda: self._controller.update_smoothness(slider))

    def _on_mesh_toggled(self, checked: bool):
        self._run(lambda: self._controller.set_show_mesh(checked))
        self._preview.set_show_mesh(checked)

    def _on_frame_processed(self, frame, status: StatusSnapshot):
        """Update status display from the worker's snapshot."""
        self._preview.update_frame(frame)
        self._face_label.setText(f"Face: {status.face_status}")
        self._gesture_label.setText(f"Gesture: {status.gesture_label or '-'}")
        self._clicks_label.setText(f"Clicks: {status.click_count}")
        self._fps_label.setText(f"FPS: {status.fps:.1f}")

        if status.countdown is not None:
            self._feedback_label.setText(f"Calibrating... {status.countdown}")
        elif status.dragging:
            self._feedback_label.setText("Dragging...")
        elif status.calibrated and self._feedback_label.text().startswith("Calibrating"):
            self._feedback_label.setText("Calibrated!")

        if status.cursor_pos is not None:
            self._cursor_label.setText(f"Cursor: {status.cursor_pos[0]}, {status.cursor_pos[1]}")
        elif not status.calibrated:
            self._cursor_label.setText("Cursor: Not calibrated")

        self._calibrate_btn.setText("Re-calibrate" if status.calibrated else "Calibrate")

    def _on_worker_error(self, message: str):
        self._stop_worker()
        self._controller.fail("LandmarkSourceError", message)
        self._controller.clear_error()
        self._update_button_states()
        QMessageBox.critical(self, "Landmark Source Error", message)

    def _on_source_exhausted(self):
        self._feedback_label.setText("Landmark stream ended")
        self._on_stop_clicked()

    def _update_button_states(self):
        tracking = self._controller.state == TrackingState.TRACKING
        self._start_btn.setEnabled(not tracking)
        self._stop_btn.setEnabled(tracking)
        self._calibrate_btn.setEnabled(tracking)

    def closeEvent(self, event):
        """Stop tracking before the window closes."""
        self._on_stop_clicked()
        super().closeEvent(event)
