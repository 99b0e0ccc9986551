"""
Calibration of the neutral head position.

The user looks straight ahead through a short countdown; the nose
position at the end becomes the reference all cursor offsets are
measured from.
"""

import math
from typing import Optional
from enum import Enum, auto

from facecontrol.core.config import CalibrationConfig
from facecontrol.vision.landmarks import Point
from facecontrol.utils.logger import get_logger

logger = get_logger(__name__)


class CalibrationState(Enum):
    """Calibration procedure states."""

    UNCALIBRATED = auto()
    COUNTDOWN = auto()  # Counting down 3, 2, 1
    CALIBRATED = auto()


class Calibrator:
    """
    Calibration state machine.

    Process:
    1. start() - requires at least one observed nose position
    2. Countdown, advanced by update() from the frame loop
    3. Capture the most recent nose position as the reference

    Re-calibrating repeats the flow. The previous reference stays in
    effect until the new countdown finishes.
    """

    def __init__(self, config: CalibrationConfig):
        """
        Initialize calibrator.

        Args:
            config: Calibration configuration
        """
        self._config = config
        self._state = CalibrationState.UNCALIBRATED
        self._reference: Optional[Point] = None
        self._latest_nose: Optional[Point] = None
        self._countdown_start: Optional[float] = None

        logger.info(
            f"Calibrator initialized: {config.countdown_steps} x {config.step_seconds:.1f}s countdown"
        )

    def observe(self, nose: Point):
        """Record the most recent nose position."""
        self._latest_nose = nose

    def start(self, now: float) -> bool:
        """
        Begin the countdown.

        Args:
            now: Current time (seconds)

        Returns:
            True if started, False if no landmark has been seen yet
        """
        if self._latest_nose is None:
            logger.warning("Calibration rejected: no face landmarks available")
            return False

        self._state = CalibrationState.COUNTDOWN
        self._countdown_start = now
        logger.info("Calibration countdown started")
        return True

    def update(self, now: float) -> bool:
        """
        Advance the countdown.

        Args:
            now: Current time (seconds)

        Returns:
            True if calibration completed on this call
        """
        if self._state != CalibrationState.COUNTDOWN:
            return False

        elapsed = now - self._countdown_start
        if elapsed < self._config.countdown_steps * self._config.step_seconds:
            return False

        self._reference = self._latest_nose
        self._state = CalibrationState.CALIBRATED
        self._countdown_start = None

        logger.info(
            f"Calibrated: reference nose=({self._reference[0]:.4f}, {self._reference[1]:.4f})"
        )
        return True

    def countdown_remaining(self, now: float) -> Optional[int]:
        """Countdown number to display (3, 2, 1), or None when not counting."""
        if self._state != CalibrationState.COUNTDOWN:
            return None

        step = self._config.step_seconds
        elapsed_steps = math.floor((now - self._countdown_start) / step) if step > 0 else 0
        return max(1, self._config.countdown_steps - elapsed_steps)

    def reset(self):
        """Forget the reference and any countdown in progress."""
        self._state = CalibrationState.UNCALIBRATED
        self._reference = None
        self._latest_nose = None
        self._countdown_start = None

    @property
    def state(self) -> CalibrationState:
        """Get current state."""
        return self._state

    @property
    def reference(self) -> Optional[Point]:
        """Calibrated neutral nose position."""
        return self._reference

    @property
    def is_calibrated(self) -> bool:
        """True once a reference exists (also during re-calibration)."""
        return self._reference is not None
