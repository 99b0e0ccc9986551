"""
Tracking session lifecycle.

Calibration has its own state machine (vision.calibrator); this one
only tracks whether frames are being processed at all.
"""

from enum import Enum, auto
from typing import Optional, Set
from dataclasses import dataclass


class TrackingState(Enum):
    """
    Session states.

    State transitions:
        IDLE -> TRACKING -> IDLE
        Any -> ERROR -> IDLE
    """

    IDLE = auto()  # Frames are ignored
    TRACKING = auto()  # Frames drive mapping, smoothing and gestures
    ERROR = auto()  # Requires user intervention


_VALID_TRANSITIONS: dict[TrackingState, Set[TrackingState]] = {
    TrackingState.IDLE: {TrackingState.TRACKING, TrackingState.ERROR},
    TrackingState.TRACKING: {TrackingState.IDLE, TrackingState.ERROR},
    TrackingState.ERROR: {TrackingState.IDLE},
}


def is_valid_transition(from_state: TrackingState, to_state: TrackingState) -> bool:
    """Check if a transition is allowed (same state is a no-op)."""
    if from_state == to_state:
        return True
    return to_state in _VALID_TRANSITIONS.get(from_state, set())


@dataclass
class ErrorInfo:
    """Information about an error that stopped the session."""

    error_type: str
    message: str
    recoverable: bool = True


class StateMachine:
    """Validated lifecycle transitions with the last error attached."""

    def __init__(self, initial_state: TrackingState = TrackingState.IDLE):
        self._current_state = initial_state
        self._error: Optional[ErrorInfo] = None

    @property
    def current_state(self) -> TrackingState:
        """Get current state."""
        return self._current_state

    @property
    def error(self) -> Optional[ErrorInfo]:
        """Get error information if in ERROR state."""
        return self._error

    def transition_to(self, new_state: TrackingState) -> bool:
        """
        Transition to a new state.

        Returns:
            True if transition succeeded, False if invalid
        """
        if not is_valid_transition(self._current_state, new_state):
            return False

        if self._current_state == TrackingState.ERROR and new_state != TrackingState.ERROR:
            self._error = None

        self._current_state = new_state
        return True

    def set_error(self, error_info: ErrorInfo) -> bool:
        """Enter ERROR with the given details."""
        self._error = error_info
        return self.transition_to(TrackingState.ERROR)

    def reset(self):
        """Return to IDLE, clearing any error."""
        self._current_state = TrackingState.IDLE
        self._error = None
