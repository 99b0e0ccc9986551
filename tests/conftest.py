"""
Shared fixtures: synthetic landmark frames and a recording mouse sink.
"""

import numpy as np
import pytest

from facecontrol.core.config import AppConfig
from facecontrol.vision.landmarks import (
    LandmarkFrame,
    LEFT_EYE,
    RIGHT_EYE,
    LOWER_INNER_LIP,
    MOUTH_LEFT,
    MOUTH_RIGHT,
    NOSE_TIP,
    NUM_LANDMARKS,
    UPPER_INNER_LIP,
)

EYE_WIDTH = 0.05
MOUTH_WIDTH = 0.1
OPEN_EAR = 0.3
CLOSED_EAR = 0.05


def _place_eye(points, indices, outer_x, y, ear):
    """Lay out one eye so its aspect ratio is close to `ear`."""
    inner_x = outer_x + EYE_WIDTH
    mid_x = outer_x + EYE_WIDTH / 2
    half_gap = ear * EYE_WIDTH / 2
    points[indices["outer"]] = (outer_x, y)
    points[indices["inner"]] = (inner_x, y)
    points[indices["top"]] = (mid_x, y - half_gap)
    points[indices["bottom"]] = (mid_x, y + half_gap)


def make_frame(
    nose=(0.5, 0.5),
    left_ear=OPEN_EAR,
    right_ear=OPEN_EAR,
    mouth=5.0,
    timestamp=0.0,
) -> LandmarkFrame:
    """
    Build a face frame with chosen nose position, eye ratios and mouth
    openness.
    """
    points = np.full((NUM_LANDMARKS, 2), 0.5)
    points[NOSE_TIP] = nose

    _place_eye(points, LEFT_EYE, 0.55, 0.4, left_ear)
    _place_eye(points, RIGHT_EYE, 0.40, 0.4, right_ear)

    gap = mouth * (MOUTH_WIDTH + 0.001) / 150.0
    points[MOUTH_LEFT] = (0.45, 0.7)
    points[MOUTH_RIGHT] = (0.45 + MOUTH_WIDTH, 0.7)
    points[UPPER_INNER_LIP] = (0.5, 0.7)
    points[LOWER_INNER_LIP] = (0.5, 0.7 + gap)

    return LandmarkFrame(points=points, timestamp=timestamp)


class RecordingSink:
    """Mouse sink that records every command."""

    def __init__(self, available: bool = True):
        self.is_available = available
        self.calls = []

    def move_to(self, x, y):
        self.calls.append(("move_to", x, y))

    def click(self, button):
        self.calls.append(("click", button))

    def mouse_down(self):
        self.calls.append(("mouse_down",))

    def mouse_up(self):
        self.calls.append(("mouse_up",))

    @property
    def moves(self):
        return [c[1:] for c in self.calls if c[0] == "move_to"]

    def commands(self, name):
        return [c for c in self.calls if c[0] == name]


class FailingSink(RecordingSink):
    """Sink that raises on every command, as a dropped connection would."""

    def move_to(self, x, y):
        raise ConnectionError("sink disconnected")

    def click(self, button):
        raise ConnectionError("sink disconnected")

    def mouse_down(self):
        raise ConnectionError("sink disconnected")

    def mouse_up(self):
        raise ConnectionError("sink disconnected")


@pytest.fixture
def config(tmp_path):
    """Default configuration with storage in a temp directory."""
    cfg = AppConfig()
    cfg.storage.data_dir = tmp_path
    return cfg


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def failing_sink():
    return FailingSink()


@pytest.fixture
def frame_factory():
    """make_frame(nose, left_ear, right_ear, mouth, timestamp)."""
    return make_frame
