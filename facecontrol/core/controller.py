"""
Central controller orchestrating the landmark-to-cursor pipeline.

Owns one PipelineContext per tracking session and drives it one frame
at a time:
landmarks -> cursor mapping -> smoothing -> output dispatch
landmarks -> gesture detection -> click / drag commands
"""

import time
from typing import List, Optional
from dataclasses import dataclass, field

from facecontrol.core.config import (
    AppConfig,
    smoothness_to_base_factor,
    validate_sensitivity,
)
from facecontrol.core.state import ErrorInfo, StateMachine, TrackingState
from facecontrol.vision.calibrator import CalibrationState, Calibrator
from facecontrol.vision.filters import round_half_up
from facecontrol.vision.gestures import GestureDetector, GestureEvent
from facecontrol.vision.landmarks import LandmarkFrame, nose_point
from facecontrol.vision.mapping import CursorMapper
from facecontrol.vision.smoothing import CursorSmoother
from facecontrol.os_control.dispatch import MouseSink, NullMouseSink, OutputDispatcher
from facecontrol.utils.timing import FPSCounter
from facecontrol.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FrameResult:
    """Result of processing a single landmark frame."""

    face_detected: bool
    cursor_pos: Optional[tuple[int, int]] = None
    events: List[GestureEvent] = field(default_factory=list)
    gesture_label: str = ""
    dispatched: bool = False  # A move command reached the sink
    calibrated: bool = False  # Calibration completed on this frame
    fps: float = 0.0


class PipelineContext:
    """
    All mutable filter, gesture and calibration state of one session.

    A new context is built for every session so nothing leaks from a
    previous one.
    """

    def __init__(self, config: AppConfig, screen_width: int, screen_height: int):
        self.mapper = CursorMapper(config.mapping, config.camera, screen_width, screen_height)
        self.smoother = CursorSmoother(config.smoothing)
        self.gestures = GestureDetector(config.gestures)
        self.calibrator = Calibrator(config.calibration)
        self.cursor_pos: Optional[tuple[int, int]] = None
        self.gesture_label = ""


class Controller:
    """
    Frame-driven pipeline controller.

    Single-threaded: every call runs to completion, so calibrate(),
    stop() and reset() invoked between frames are seen atomically by
    the next frame. The mouse sink is injected.
    """

    def __init__(
        self,
        config: AppConfig,
        screen_width: Optional[int] = None,
        screen_height: Optional[int] = None,
        sink: Optional[MouseSink] = None,
    ):
        """
        Initialize controller.

        Args:
            config: Application configuration
            screen_width: Screen width in pixels (defaults to config.screen)
            screen_height: Screen height in pixels (defaults to config.screen)
            sink: Mouse-control sink (defaults to a disconnected sink)
        """
        self._config = config
        self._screen_width = screen_width or config.screen.width
        self._screen_height = screen_height or config.screen.height

        self._state_machine = StateMachine(initial_state=TrackingState.IDLE)
        self._dispatcher = OutputDispatcher(sink or NullMouseSink(), config.dispatch)
        self._context = self._new_context()
        self._fps_counter = FPSCounter()
        self._face_status = "Stopped"

        logger.info(f"Controller initialized for {self._screen_width}x{self._screen_height}")

    def _new_context(self) -> PipelineContext:
        return PipelineContext(self._config, self._screen_width, self._screen_height)

    def start(self) -> bool:
        """
        Start a tracking session with fresh state.

        Returns:
            True if tracking (or already tracking)
        """
        current = self._state_machine.current_state
        if current == TrackingState.TRACKING:
            return True

        if not self._state_machine.transition_to(TrackingState.TRACKING):
            logger.warning(f"Cannot start tracking from state {current.name}")
            return False

        self._context = self._new_context()
        self._dispatcher.reset()
        self._fps_counter.reset()
        self._face_status = "Waiting"
        logger.info("Tracking started")
        return True

    def stop(self) -> bool:
        """
        Stop tracking and discard all session state.

        A held drag is released first so the button is not left down.

        Returns:
            True if a session was stopped
        """
        if self._state_machine.current_state != TrackingState.TRACKING:
            return False

        self._clear_session()
        self._state_machine.transition_to(TrackingState.IDLE)
        self._face_status = "Stopped"
        logger.info("Tracking stopped")
        return True

    def reset(self):
        """Discard all filter, gesture and calibration state; keep running."""
        self._clear_session()
        logger.info("Pipeline state reset")

    def _clear_session(self):
        release = self._context.gestures.release_drag(time.monotonic())
        if release is not None:
            self._dispatcher.send_event(release)

        self._context = self._new_context()
        self._dispatcher.reset()
        self._fps_counter.reset()

    def calibrate(self, now: Optional[float] = None) -> bool:
        """
        Begin the calibration countdown.

        Args:
            now: Current time (defaults to time.monotonic())

        Returns:
            True if the countdown started, False if not tracking or no
            face has been seen yet
        """
        if self._state_machine.current_state != TrackingState.TRACKING:
            logger.warning("Calibration requires an active tracking session")
            return False

        return self._context.calibrator.start(time.monotonic() if now is None else now)

    def on_landmark_frame(self, frame: Optional[LandmarkFrame]) -> FrameResult:
        """Process a frame from the landmark source using the current time."""
        return self.process(frame, time.monotonic())

    def process(self, frame: Optional[LandmarkFrame], now: float) -> FrameResult:
        """
        Run one full pipeline pass.

        Args:
            frame: Landmarks for this detection cycle (None or faceless
                when no face was found)
            now: Frame time (seconds, monotonic)

        Returns:
            FrameResult with cursor position and fired gesture events
        """
        if self._state_machine.current_state != TrackingState.TRACKING:
            return FrameResult(face_detected=False)

        result = FrameResult(face_detected=False, fps=self._fps_counter.tick(now))
        ctx = self._context

        nose = nose_point(frame)
        if nose is None:
            # Filters are left untouched so detection can resume smoothly
            self._face_status = "No face"
            result.cursor_pos = ctx.cursor_pos
            return result

        result.face_detected = True
        self._face_status = "Detected"

        ctx.calibrator.observe(nose)
        if ctx.calibrator.update(now):
            self._apply_calibration(now)
            result.calibrated = True

        calibrated = ctx.calibrator.is_calibrated
        gestures = ctx.gestures.update(frame, now, drag_enabled=calibrated)
        ctx.gesture_label = gestures.label
        result.gesture_label = gestures.label
        result.events = gestures.events

        if calibrated:
            target = ctx.mapper.map(nose, ctx.calibrator.reference)
            smoothed = ctx.smoother.smooth(target.x, target.y, now)
            ctx.cursor_pos = (smoothed.x, smoothed.y)
            result.dispatched = self._dispatcher.submit_move(smoothed.x, smoothed.y, now)

        for event in gestures.events:
            self._dispatcher.send_event(event)

        result.cursor_pos = ctx.cursor_pos
        return result

    def _apply_calibration(self, now: float):
        """Reseed the pipeline at screen center after a new reference."""
        ctx = self._context
        center_x, center_y = ctx.mapper.center
        ctx.smoother.reset_to(center_x, center_y, now)

        center = (round_half_up(center_x), round_half_up(center_y))
        self._dispatcher.send_move(center[0], center[1], now)
        self._dispatcher.reset(position=center, now=now)
        ctx.cursor_pos = center

    def update_sensitivity(self, sensitivity: float):
        """Update cursor sensitivity (0.1-5.0)."""
        validate_sensitivity(sensitivity)
        self._config.mapping.sensitivity = sensitivity
        logger.debug(f"Sensitivity updated: {sensitivity:.2f}")

    def update_smoothness(self, slider: float):
        """Update base smoothing factor from the 0-1 smoothness slider."""
        self._config.smoothing.base_smooth_factor = smoothness_to_base_factor(slider)
        logger.debug(
            f"Smoothness updated: slider={slider:.2f}, "
            f"base_factor={self._config.smoothing.base_smooth_factor:.4f}"
        )

    def set_show_mesh(self, show: bool):
        """Toggle landmark overlay (display only)."""
        self._config.ui.show_mesh = show

    def set_sink(self, sink: MouseSink):
        """Replace the mouse sink (e.g. after reconnecting)."""
        self._dispatcher.set_sink(sink)

    def fail(self, error_type: str, message: str, recoverable: bool = True):
        """Stop the session and enter ERROR."""
        self.stop()
        logger.error(f"{error_type}: {message}")
        self._state_machine.set_error(
            ErrorInfo(error_type=error_type, message=message, recoverable=recoverable)
        )

    def clear_error(self) -> bool:
        """Leave ERROR and return to IDLE."""
        return self._state_machine.transition_to(TrackingState.IDLE)

    def countdown_remaining(self, now: Optional[float] = None) -> Optional[int]:
        """Calibration countdown number, or None when not counting down."""
        return self._context.calibrator.countdown_remaining(
            time.monotonic() if now is None else now
        )

    # Properties
    @property
    def state(self) -> TrackingState:
        """Get current session state."""
        return self._state_machine.current_state

    @property
    def error(self) -> Optional[ErrorInfo]:
        """Get error information if in ERROR state."""
        return self._state_machine.error

    @property
    def calibration_state(self) -> CalibrationState:
        return self._context.calibrator.state

    @property
    def is_calibrated(self) -> bool:
        return self._context.calibrator.is_calibrated

    @property
    def cursor_position(self) -> Optional[tuple[int, int]]:
        """Latest smoothed cursor position."""
        return self._context.cursor_pos

    @property
    def gesture_label(self) -> str:
        return self._context.gesture_label

    @property
    def face_status(self) -> str:
        return self._face_status

    @property
    def click_count(self) -> int:
        return self._context.gestures.click_count

    @property
    def is_dragging(self) -> bool:
        return self._context.gestures.is_dragging

    @property
    def show_mesh(self) -> bool:
        return self._config.ui.show_mesh

    @property
    def fps(self) -> float:
        """Get current frame rate."""
        return self._fps_counter.fps

    @property
    def dispatch_statistics(self) -> dict:
        return self._dispatcher.statistics

    @property
    def screen_size(self) -> tuple[int, int]:
        return (self._screen_width, self._screen_height)
