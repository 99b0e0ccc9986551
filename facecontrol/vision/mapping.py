"""
Head offset to screen target mapping.

Converts the nose offset from the calibration reference into a raw
screen-space target for the smoothing pipeline.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from facecontrol.core.config import CameraConfig, MappingConfig
from facecontrol.vision.landmarks import Point
from facecontrol.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CursorTarget:
    """Raw cursor target with intermediate mapping terms."""

    x: float  # Clamped screen x (pixels)
    y: float  # Clamped screen y (pixels)
    move_x: float  # Horizontal move before aspect compensation
    move_y: float
    final_move_x: float  # Horizontal move after aspect compensation
    final_move_y: float
    aspect_compensation: float


def apply_dead_zone(dx: float, dy: float, radius: float) -> Tuple[float, float]:
    """
    Soft dead zone around the origin.

    Offsets inside the radius collapse to zero; offsets outside are
    shrunk by the radius so the output is continuous at the boundary.
    """
    distance = math.hypot(dx, dy)
    if distance == 0 or distance < radius:
        return (0.0, 0.0)

    scale = max(0.0, distance - radius) / distance
    return (dx * scale, dy * scale)


class CursorMapper:
    """
    Map head movement to screen coordinates.

    Both axes scale by the smaller screen dimension so head motion feels
    uniform; the horizontal axis is then corrected for the difference
    between camera and screen aspect ratios.
    """

    def __init__(
        self,
        config: MappingConfig,
        camera: CameraConfig,
        screen_width: int,
        screen_height: int,
    ):
        """
        Initialize mapper.

        Args:
            config: Mapping configuration (sensitivity, dead zone)
            camera: Camera geometry the landmarks were computed on
            screen_width: Screen width in pixels
            screen_height: Screen height in pixels
        """
        self._config = config
        self._camera = camera
        self._screen_width = screen_width
        self._screen_height = screen_height

        logger.info(
            f"CursorMapper initialized: screen={screen_width}x{screen_height}, "
            f"camera={camera.frame_width}x{camera.frame_height}, "
            f"aspect_compensation={self.aspect_compensation:.3f}"
        )

    @property
    def aspect_compensation(self) -> float:
        """Screen aspect divided by camera aspect."""
        screen_aspect = self._screen_width / self._screen_height
        return screen_aspect / self._camera.aspect

    @property
    def center(self) -> Tuple[float, float]:
        """Screen center in pixels."""
        return (self._screen_width / 2, self._screen_height / 2)

    def map(self, nose: Point, reference: Point) -> CursorTarget:
        """
        Compute the raw screen target for a nose position.

        Args:
            nose: Current nose tip (normalized 0-1)
            reference: Calibrated neutral nose position (normalized 0-1)

        Returns:
            CursorTarget clamped to the screen
        """
        dx, dy = apply_dead_zone(
            nose[0] - reference[0],
            nose[1] - reference[1],
            self._config.dead_zone_radius,
        )

        base_scale = min(self._screen_width, self._screen_height)
        multiplier = self._config.sensitivity * self._config.sensitivity_gain

        # X inverted: the camera view is mirrored
        move_x = -dx * base_scale * multiplier
        move_y = dy * base_scale * multiplier

        aspect = self.aspect_compensation
        final_move_x = move_x * aspect
        final_move_y = move_y

        center_x, center_y = self.center
        x = min(max(center_x + final_move_x, 0), self._screen_width - 1)
        y = min(max(center_y + final_move_y, 0), self._screen_height - 1)

        return CursorTarget(
            x=x,
            y=y,
            move_x=move_x,
            move_y=move_y,
            final_move_x=final_move_x,
            final_move_y=final_move_y,
            aspect_compensation=aspect,
        )

    def update_screen_size(self, width: int, height: int):
        """
        Update screen dimensions.

        Args:
            width: New screen width
            height: New screen height
        """
        self._screen_width = width
        self._screen_height = height
        logger.info(f"Screen size updated: {width}x{height}")

    @property
    def screen_size(self) -> Tuple[int, int]:
        """Get screen dimensions."""
        return (self._screen_width, self._screen_height)
