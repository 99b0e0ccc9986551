"""
Tests for landmark frames and the replay source.
"""

import numpy as np
import pytest

from facecontrol.core.config import CameraConfig
from facecontrol.vision.landmark_source import LandmarkReplay, LandmarkSourceError
from facecontrol.vision.landmarks import NOSE_TIP, NUM_LANDMARKS, LandmarkFrame, nose_point


@pytest.fixture
def recording(tmp_path, frame_factory):
    """Three-frame session; the middle frame has no face."""
    frames = np.stack([
        frame_factory(nose=(0.5, 0.5)).points,
        np.full((NUM_LANDMARKS, 2), np.nan),
        frame_factory(nose=(0.45, 0.55)).points,
    ])
    path = tmp_path / "session.npy"
    np.save(path, frames)
    return path


class TestLandmarkFrame:
    """Tests for LandmarkFrame."""

    def test_has_face(self, frame_factory):
        frame = frame_factory(nose=(0.42, 0.61))

        assert frame.has_face
        assert nose_point(frame) == pytest.approx((0.42, 0.61))

    def test_immutable(self, frame_factory):
        frame = frame_factory()

        with pytest.raises(ValueError):
            frame.points[NOSE_TIP] = (0.1, 0.1)

    def test_copies_input(self):
        points = np.full((NUM_LANDMARKS, 2), 0.5)
        frame = LandmarkFrame(points=points)

        points[NOSE_TIP] = (0.0, 0.0)

        assert nose_point(frame) == (0.5, 0.5)

    def test_empty(self):
        frame = LandmarkFrame.empty(timestamp=1.5)

        assert not frame.has_face
        assert frame.timestamp == 1.5
        assert nose_point(frame) is None

    def test_missing_required_landmark(self, frame_factory):
        points = np.array(frame_factory().points)
        points[NOSE_TIP] = np.nan

        assert not LandmarkFrame(points=points).has_face

    def test_too_few_landmarks(self):
        assert not LandmarkFrame(points=np.zeros((68, 2))).has_face

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            LandmarkFrame(points=np.zeros((10, 3)))

    def test_unknown_eye(self, frame_factory):
        with pytest.raises(ValueError):
            frame_factory().eye("middle")

    def test_equality_is_identity(self, frame_factory):
        first = frame_factory()
        second = frame_factory()

        assert first == first
        assert first != second
        assert first.eye("left") != second.eye("left")

    def test_none_frame(self):
        assert nose_point(None) is None


class TestLandmarkReplay:
    """Tests for the recorded-session source."""

    def test_reads_in_order(self, recording):
        with LandmarkReplay(recording, CameraConfig()) as source:
            assert source.frame_count == 3

            first = source.read_frame()
            second = source.read_frame()
            third = source.read_frame()

        assert first.has_face
        assert not second.has_face
        assert nose_point(third) == pytest.approx((0.45, 0.55))

    def test_timestamps_follow_target_fps(self, recording):
        with LandmarkReplay(recording, CameraConfig(target_fps=20)) as source:
            stamps = [source.read_frame().timestamp for _ in range(3)]

        assert stamps == pytest.approx([0.0, 0.05, 0.1])

    def test_exhausted(self, recording):
        with LandmarkReplay(recording, CameraConfig()) as source:
            for _ in range(3):
                source.read_frame()
            assert source.read_frame() is None

    def test_loop(self, recording):
        with LandmarkReplay(recording, CameraConfig(), loop=True) as source:
            frames = [source.read_frame() for _ in range(4)]

        assert all(frame is not None for frame in frames)
        assert nose_point(frames[3]) == pytest.approx((0.5, 0.5))

    def test_read_when_closed(self, recording):
        source = LandmarkReplay(recording, CameraConfig())

        assert not source.is_open
        assert source.read_frame() is None

    def test_close_twice(self, recording):
        source = LandmarkReplay(recording, CameraConfig())
        source.open()

        source.close()
        source.close()

        assert not source.is_open
        assert source.frame_count == 0

    def test_missing_file(self, tmp_path):
        source = LandmarkReplay(tmp_path / "missing.npy", CameraConfig())

        with pytest.raises(LandmarkSourceError):
            source.open()

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "flat.npy"
        np.save(path, np.zeros((5, 3)))

        with pytest.raises(LandmarkSourceError):
            LandmarkReplay(path, CameraConfig()).open()

    def test_empty_recording(self, tmp_path):
        path = tmp_path / "empty.npy"
        np.save(path, np.zeros((0, NUM_LANDMARKS, 2)))

        with pytest.raises(LandmarkSourceError):
            LandmarkReplay(path, CameraConfig()).open()
