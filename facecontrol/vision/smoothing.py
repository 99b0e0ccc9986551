"""
Cursor smoothing and jitter control.

Turns noisy per-frame screen targets into a stable, velocity-aware
cursor trajectory through four ordered layers per axis:

1. Median buffer - removes impulsive outliers
2. Scalar Kalman filter - statistically weighted running estimate
3. Velocity-adaptive exponential smoothing - smooth at rest,
   responsive during fast deliberate motion
4. Quadratic Bezier easing - curved approach instead of linear snapping
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional

from facecontrol.core.config import SmoothingConfig
from facecontrol.vision import filters
from facecontrol.vision.filters import KalmanState
from facecontrol.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SmoothedCursor:
    """Final cursor position in screen coordinates."""

    x: int  # Screen x coordinate (pixels)
    y: int  # Screen y coordinate (pixels)
    velocity: float  # Smoothed speed (pixels/second)


@dataclass
class AxisState:
    """Filter state for one screen axis."""

    buffer: Deque[float] = field(default_factory=deque)
    kalman: KalmanState = field(default_factory=KalmanState)
    velocity: float = 0.0
    last_target: Optional[float] = None
    smooth: Optional[float] = None
    output: Optional[float] = None


class CursorSmoother:
    """
    Four-layer smoothing pipeline.

    X and Y share structure and parameters but evolve independently;
    they only meet in the velocity magnitude that drives the adaptive
    factor.
    """

    def __init__(self, config: SmoothingConfig):
        """
        Initialize smoother.

        Args:
            config: Smoothing configuration (read on every frame, so
                runtime changes apply immediately)
        """
        self._config = config
        self._x = self._new_axis()
        self._y = self._new_axis()
        self._last_target_time: Optional[float] = None

        logger.info(
            f"CursorSmoother initialized: "
            f"buffer={config.buffer_size}, "
            f"base_factor={config.base_smooth_factor:.3f}, "
            f"output_lerp={config.output_lerp:.2f}"
        )

    def _new_axis(self, center: Optional[float] = None) -> AxisState:
        """Build fresh axis state, optionally seeded at a center value."""
        cfg = self._config
        if center is None:
            kalman = KalmanState(
                error_estimate=cfg.kalman_error_estimate,
                error_measure=cfg.kalman_error_measure,
                q=cfg.kalman_process_noise,
            )
        else:
            kalman = KalmanState(
                estimate=center,
                error_estimate=cfg.kalman_error_estimate,
                error_measure=cfg.reseed_error_measure,
                q=cfg.reseed_process_noise,
            )

        return AxisState(
            buffer=filters.new_buffer(cfg.buffer_size),
            kalman=kalman,
            last_target=center,
            smooth=center,
            output=center,
        )

    def smooth(self, raw_x: float, raw_y: float, now: float) -> SmoothedCursor:
        """
        Run one frame through the pipeline.

        Args:
            raw_x: Raw screen x target for this frame
            raw_y: Raw screen y target for this frame
            now: Frame time (seconds, monotonic)

        Returns:
            Smoothed cursor position, rounded to pixels
        """
        cfg = self._config

        # Layers 1 and 2: median, then Kalman
        kalman_x = self._filter_target(self._x, raw_x)
        kalman_y = self._filter_target(self._y, raw_y)

        # Layer 3a: velocity from consecutive Kalman estimates
        if self._x.last_target is not None and self._last_target_time is not None:
            dt = now - self._last_target_time
            if dt > 0:
                self._x.velocity = filters.lerp(
                    self._x.velocity, (kalman_x - self._x.last_target) / dt, cfg.velocity_blend
                )
                self._y.velocity = filters.lerp(
                    self._y.velocity, (kalman_y - self._y.last_target) / dt, cfg.velocity_blend
                )
        self._x.last_target = kalman_x
        self._y.last_target = kalman_y
        self._last_target_time = now

        # Layer 3b: adaptive exponential smoothing
        factor = filters.adaptive_factor(
            self._x.velocity,
            self._y.velocity,
            cfg.base_smooth_factor,
            cfg.velocity_influence,
            cfg.min_smooth_factor,
            cfg.max_smooth_factor,
        )
        self._ease(self._x, kalman_x, factor)
        self._ease(self._y, kalman_y, factor)

        return SmoothedCursor(
            x=filters.round_half_up(self._x.output),
            y=filters.round_half_up(self._y.output),
            velocity=self.velocity,
        )

    def _filter_target(self, axis: AxisState, raw: float) -> float:
        """Median then Kalman for one axis."""
        filters.push(axis.buffer, raw)
        return filters.kalman_step(filters.median(axis.buffer), axis.kalman)

    def _ease(self, axis: AxisState, target: float, factor: float):
        """Exponential smoothing followed by one Bezier step."""
        if axis.smooth is None or axis.output is None:
            axis.smooth = target
            axis.output = target
        else:
            axis.smooth += (target - axis.smooth) * factor

        # Layer 4: control point bows toward the direction of motion
        control = (axis.output + axis.smooth) / 2 + axis.velocity * self._config.bezier_factor
        axis.output = filters.bezier(axis.output, control, axis.smooth, self._config.output_lerp)

    def reset_to(self, center_x: float, center_y: float, now: float):
        """
        Reseed every stage at a neutral point (used after calibration).

        Buffers are emptied, velocity is zeroed and Kalman, smooth and
        output positions all start at the given center.
        """
        self._x = self._new_axis(center_x)
        self._y = self._new_axis(center_y)
        self._last_target_time = now
        logger.debug(f"Smoother reset to ({center_x:.1f}, {center_y:.1f})")

    def clear(self):
        """Return every stage to its uninitialized state."""
        self._x = self._new_axis()
        self._y = self._new_axis()
        self._last_target_time = None
        logger.debug("Smoother cleared")

    @property
    def velocity(self) -> float:
        """Magnitude of the smoothed velocity (pixels/second)."""
        return float((self._x.velocity ** 2 + self._y.velocity ** 2) ** 0.5)

    @property
    def current_position(self) -> Optional[tuple[int, int]]:
        """Get current output position."""
        if self._x.output is None or self._y.output is None:
            return None
        return (filters.round_half_up(self._x.output), filters.round_half_up(self._y.output))

    @property
    def x_state(self) -> AxisState:
        """Filter state of the horizontal axis."""
        return self._x

    @property
    def y_state(self) -> AxisState:
        """Filter state of the vertical axis."""
        return self._y
