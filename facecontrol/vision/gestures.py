"""
Facial gesture detection.

Wink (one eye closed) triggers clicks; an open mouth holds the left
button for dragging. Both detectors are edge-triggered state machines
so a sustained gesture fires once.
"""

import numpy as np
from typing import List, Optional
from dataclasses import dataclass, field
from enum import Enum

from facecontrol.core.config import GestureConfig
from facecontrol.vision.filters import round_half_up
from facecontrol.vision.landmarks import EyePoints, LandmarkFrame
from facecontrol.utils.logger import get_logger

logger = get_logger(__name__)


class GestureKind(Enum):
    """Commands produced by gestures."""

    LEFT_CLICK = "left_click"
    RIGHT_CLICK = "right_click"
    DRAG_START = "drag_start"  # mouse down
    DRAG_END = "drag_end"  # mouse up


@dataclass
class GestureEvent:
    """A gesture that fired on a given frame."""

    kind: GestureKind
    timestamp: float


@dataclass
class EyeState:
    """Per-frame eye classification."""

    left_ear: float
    right_ear: float
    left_closed: bool
    right_closed: bool
    left_open: bool
    right_open: bool
    both_wide_open: bool  # Computed for display only, not bound to an action


@dataclass
class GestureResult:
    """Everything the gesture layer derived from one frame."""

    eyes: EyeState
    mouth_openness: float
    events: List[GestureEvent] = field(default_factory=list)
    label: str = ""


def eye_aspect_ratio(eye: EyePoints, epsilon: float = 0.001) -> float:
    """
    Eye aspect ratio: lid opening over eye width.

    Low values indicate a closed eye.
    """
    vertical = float(np.linalg.norm(eye.top - eye.bottom))
    horizontal = float(np.linalg.norm(eye.inner - eye.outer))
    return vertical / (horizontal + epsilon)


def mouth_openness(frame: LandmarkFrame, scale: float = 150.0, epsilon: float = 0.001) -> float:
    """
    Scale-invariant mouth opening.

    Inner lip gap divided by mouth width, scaled so a relaxed closed
    mouth reads roughly 15-30 and a wide open mouth 60+.
    """
    upper, lower = frame.lips
    left, right = frame.mouth_corners
    height = abs(float(lower[1]) - float(upper[1]))
    width = abs(float(right[0]) - float(left[0]))
    return height / (width + epsilon) * scale


class WinkDetector:
    """
    Wink-to-click state machine.

    An eye counts as closed below the closed threshold and open above
    the open threshold; between the two it is neither, which keeps a
    half-closed eye from toggling. A wink fires when one eye closes
    while the other is open and the winking eye was open on the
    previous frame, subject to a per-side cooldown.
    """

    def __init__(self, config: GestureConfig):
        self._config = config
        self._left_was_open = True
        self._right_was_open = True
        self._last_left_click: Optional[float] = None
        self._last_right_click: Optional[float] = None

    def classify(self, left_ear: float, right_ear: float) -> EyeState:
        """Classify both eyes from their aspect ratios."""
        cfg = self._config
        return EyeState(
            left_ear=left_ear,
            right_ear=right_ear,
            left_closed=left_ear < cfg.ear_closed_threshold,
            right_closed=right_ear < cfg.ear_closed_threshold,
            left_open=left_ear > cfg.ear_open_threshold,
            right_open=right_ear > cfg.ear_open_threshold,
            both_wide_open=(
                left_ear > cfg.ear_wide_open_threshold
                and right_ear > cfg.ear_wide_open_threshold
            ),
        )

    def update_ratios(self, left_ear: float, right_ear: float, now: float) -> tuple[EyeState, List[GestureEvent]]:
        """
        Advance the state machine with this frame's aspect ratios.

        Args:
            left_ear: Left eye aspect ratio
            right_ear: Right eye aspect ratio
            now: Frame time (seconds)

        Returns:
            (eye state, fired click events)
        """
        eyes = self.classify(left_ear, right_ear)
        events: List[GestureEvent] = []

        if eyes.left_closed and eyes.right_open and self._left_was_open:
            if self._cooled_down(self._last_left_click, now):
                self._last_left_click = now
                events.append(GestureEvent(GestureKind.LEFT_CLICK, now))
                logger.debug(f"Left wink (EAR {left_ear:.3f})")

        if eyes.right_closed and eyes.left_open and self._right_was_open:
            if self._cooled_down(self._last_right_click, now):
                self._last_right_click = now
                events.append(GestureEvent(GestureKind.RIGHT_CLICK, now))
                logger.debug(f"Right wink (EAR {right_ear:.3f})")

        self._left_was_open = eyes.left_open
        self._right_was_open = eyes.right_open

        return eyes, events

    def update(self, frame: LandmarkFrame, now: float) -> tuple[EyeState, List[GestureEvent]]:
        """Advance the state machine from a landmark frame."""
        eps = self._config.ratio_epsilon
        return self.update_ratios(
            eye_aspect_ratio(frame.eye("left"), eps),
            eye_aspect_ratio(frame.eye("right"), eps),
            now,
        )

    def _cooled_down(self, last_click: Optional[float], now: float) -> bool:
        return last_click is None or now - last_click > self._config.wink_cooldown

    def reset(self):
        """Forget latched eye state and cooldowns."""
        self._left_was_open = True
        self._right_was_open = True
        self._last_left_click = None
        self._last_right_click = None


class DragDetector:
    """
    Mouth-open drag state machine.

    Idle -> Dragging on the rising edge of openness above the threshold
    (mouse down); Dragging -> Idle on the falling edge (mouse up).
    """

    def __init__(self, config: GestureConfig):
        self._config = config
        self._dragging = False

    def update(self, openness: float, now: float) -> Optional[GestureEvent]:
        """
        Advance with this frame's mouth openness.

        Returns:
            DRAG_START or DRAG_END on a transition, otherwise None
        """
        is_open = openness > self._config.mouth_open_threshold

        if is_open and not self._dragging:
            self._dragging = True
            logger.debug(f"Mouth open ({openness:.0f}) -> drag start")
            return GestureEvent(GestureKind.DRAG_START, now)

        if not is_open and self._dragging:
            self._dragging = False
            logger.debug("Mouth closed -> drag end")
            return GestureEvent(GestureKind.DRAG_END, now)

        return None

    def release(self, now: float) -> Optional[GestureEvent]:
        """End an active drag without a frame (e.g. on stop)."""
        if not self._dragging:
            return None
        self._dragging = False
        return GestureEvent(GestureKind.DRAG_END, now)

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    def reset(self):
        self._dragging = False


class GestureDetector:
    """
    Combined gesture layer for one tracking session.

    Owns the wink and drag state machines plus the click counter shown
    in the status display.
    """

    def __init__(self, config: GestureConfig):
        """
        Initialize gesture detector.

        Args:
            config: Gesture thresholds and cooldowns
        """
        self._config = config
        self._winks = WinkDetector(config)
        self._drag = DragDetector(config)
        self._click_count = 0

        logger.info(
            f"GestureDetector initialized: "
            f"EAR closed<{config.ear_closed_threshold}, open>{config.ear_open_threshold}, "
            f"mouth>{config.mouth_open_threshold}"
        )

    def update(self, frame: LandmarkFrame, now: float, drag_enabled: bool = True) -> GestureResult:
        """
        Detect gestures in one frame.

        Args:
            frame: Landmark frame with a detected face
            now: Frame time (seconds)
            drag_enabled: Whether the drag state machine runs this frame

        Returns:
            GestureResult with fired events and a status label
        """
        eyes, events = self._winks.update(frame, now)
        self._click_count += len(events)

        openness = mouth_openness(
            frame, self._config.mouth_open_scale, self._config.ratio_epsilon
        )

        if drag_enabled:
            drag_event = self._drag.update(openness, now)
            if drag_event is not None:
                events.append(drag_event)
                if drag_event.kind == GestureKind.DRAG_END:
                    self._click_count += 1

        return GestureResult(
            eyes=eyes,
            mouth_openness=openness,
            events=events,
            label=self._label(eyes, openness),
        )

    def _label(self, eyes: EyeState, openness: float) -> str:
        if openness > self._config.mouth_open_threshold:
            return f"OPEN ({round_half_up(openness)})"
        if eyes.left_closed and not eyes.right_closed:
            return "Left wink"
        if eyes.right_closed and not eyes.left_closed:
            return "Right wink"
        return f"Ready ({round_half_up(openness)})"

    def release_drag(self, now: float) -> Optional[GestureEvent]:
        """Release a held drag; does not count as a completed drag."""
        return self._drag.release(now)

    @property
    def is_dragging(self) -> bool:
        return self._drag.is_dragging

    @property
    def click_count(self) -> int:
        return self._click_count

    def reset(self):
        """Reset all gesture state and the click counter."""
        self._winks.reset()
        self._drag.reset()
        self._click_count = 0
