"""
Facial landmark frames produced by the external landmark source.

Indices follow the MediaPipe Face Mesh topology.
See: https://github.com/google/mediapipe/blob/master/mediapipe/modules/face_geometry/data/canonical_face_model_uv_visualization.png
"""

import numpy as np
from typing import Optional, Tuple
from dataclasses import dataclass, field

# Nose tip (main tracking point)
NOSE_TIP = 4

# Eye lid and corner landmarks (user's left eye appears on the right
# side of a mirrored preview)
LEFT_EYE = {"top": 159, "bottom": 145, "inner": 133, "outer": 33}
RIGHT_EYE = {"top": 386, "bottom": 374, "inner": 362, "outer": 263}

# Inner lip and mouth corners
UPPER_INNER_LIP = 13
LOWER_INNER_LIP = 14
MOUTH_LEFT = 61
MOUTH_RIGHT = 291

REQUIRED_INDICES = (
    NOSE_TIP,
    *LEFT_EYE.values(),
    *RIGHT_EYE.values(),
    UPPER_INNER_LIP,
    LOWER_INNER_LIP,
    MOUTH_LEFT,
    MOUTH_RIGHT,
)

# Face Mesh with refined iris landmarks
NUM_LANDMARKS = 478

Point = Tuple[float, float]


@dataclass(frozen=True, eq=False)
class EyePoints:
    """Lid and corner points of one eye (normalized 0-1)."""

    top: np.ndarray  # Shape: (2,)
    bottom: np.ndarray
    inner: np.ndarray
    outer: np.ndarray


@dataclass(frozen=True, eq=False)
class LandmarkFrame:
    """
    One detection cycle of normalized 2D face landmarks.

    The points array is copied and made read-only so a frame cannot
    change after the source hands it over.
    """

    points: np.ndarray  # Shape: (N, 2), normalized 0-1
    timestamp: float = 0.0
    _has_face: bool = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        points = np.array(self.points, dtype=np.float64)
        if points.size == 0:
            points = points.reshape(0, 2)
        if points.ndim != 2 or points.shape[1] != 2:
            raise ValueError(f"Landmarks must have shape (N, 2), got {points.shape}")
        points.setflags(write=False)
        object.__setattr__(self, "points", points)

        has_face = len(points) > max(REQUIRED_INDICES) and bool(
            np.all(np.isfinite(points[list(REQUIRED_INDICES)]))
        )
        object.__setattr__(self, "_has_face", has_face)

    @classmethod
    def empty(cls, timestamp: float = 0.0) -> "LandmarkFrame":
        """Frame for a detection cycle that found no face."""
        return cls(points=np.empty((0, 2)), timestamp=timestamp)

    @property
    def has_face(self) -> bool:
        """True if every landmark the pipeline reads is present."""
        return self._has_face

    def point(self, index: int) -> np.ndarray:
        """Get a single landmark."""
        return self.points[index]

    @property
    def nose(self) -> np.ndarray:
        """Nose tip position."""
        return self.points[NOSE_TIP]

    def eye(self, side: str) -> EyePoints:
        """
        Get lid and corner points for one eye.

        Args:
            side: "left" or "right" (from the user's perspective)
        """
        if side == "left":
            indices = LEFT_EYE
        elif side == "right":
            indices = RIGHT_EYE
        else:
            raise ValueError(f"Unknown eye side: {side}")

        return EyePoints(**{name: self.points[i] for name, i in indices.items()})

    @property
    def lips(self) -> Tuple[np.ndarray, np.ndarray]:
        """Upper and lower inner lip points."""
        return self.points[UPPER_INNER_LIP], self.points[LOWER_INNER_LIP]

    @property
    def mouth_corners(self) -> Tuple[np.ndarray, np.ndarray]:
        """Left and right mouth corners."""
        return self.points[MOUTH_LEFT], self.points[MOUTH_RIGHT]


def nose_point(frame: Optional[LandmarkFrame]) -> Optional[Point]:
    """Nose tip as a plain tuple, or None without a face."""
    if frame is None or not frame.has_face:
        return None
    nose = frame.nose
    return (float(nose[0]), float(nose[1]))
