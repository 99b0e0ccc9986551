"""
Tests for the frame-driven controller.
"""

import pytest

from facecontrol.core.controller import Controller
from facecontrol.core.state import TrackingState
from facecontrol.vision.calibrator import CalibrationState
from facecontrol.vision.gestures import GestureKind
from facecontrol.vision.landmarks import LandmarkFrame

from conftest import CLOSED_EAR, RecordingSink

FRAME = 1 / 30


def calibrate(controller, frame_factory, nose=(0.5, 0.5)) -> float:
    """Run a full calibration at `nose`; returns the completion time."""
    controller.process(frame_factory(nose=nose), 0.0)
    assert controller.calibrate(now=0.0)
    result = controller.process(frame_factory(nose=nose), 3.0)
    assert result.calibrated
    return 3.0


def filter_snapshot(smoother):
    """Every piece of per-axis filter state, as plain values."""
    axes = []
    for axis in (smoother.x_state, smoother.y_state):
        axes.append((
            list(axis.buffer),
            axis.kalman.estimate,
            axis.kalman.error_estimate,
            axis.velocity,
            axis.last_target,
            axis.smooth,
            axis.output,
        ))
    return axes, smoother._last_target_time


@pytest.fixture
def controller(config, sink):
    return Controller(config, 1920, 1080, sink)


class TestLifecycle:
    """Tests for start, stop, reset and error handling."""

    def test_initial_state(self, controller):
        assert controller.state == TrackingState.IDLE
        assert controller.face_status == "Stopped"
        assert controller.cursor_position is None
        assert controller.screen_size == (1920, 1080)

    def test_frames_ignored_when_idle(self, controller, sink, frame_factory):
        result = controller.process(frame_factory(left_ear=CLOSED_EAR), 0.0)

        assert result.face_detected is False
        assert sink.calls == []

    def test_start(self, controller):
        assert controller.start()
        assert controller.state == TrackingState.TRACKING
        assert controller.face_status == "Waiting"
        # Starting twice is harmless
        assert controller.start()

    def test_stop_releases_drag(self, controller, sink, frame_factory):
        """Stopping mid-drag sends mouse up and clears all session state."""
        controller.start()
        t = calibrate(controller, frame_factory)
        controller.process(frame_factory(mouth=40.0), t + FRAME)
        assert controller.is_dragging
        assert len(sink.commands("mouse_down")) == 1

        assert controller.stop()

        assert len(sink.commands("mouse_up")) == 1
        assert controller.state == TrackingState.IDLE
        assert controller.face_status == "Stopped"
        assert not controller.is_dragging
        assert controller.cursor_position is None
        assert controller.click_count == 0

    def test_stop_when_idle(self, controller):
        assert controller.stop() is False

    def test_restart_is_fresh(self, controller, frame_factory):
        controller.start()
        calibrate(controller, frame_factory)
        controller.stop()

        controller.start()

        assert controller.calibration_state == CalibrationState.UNCALIBRATED
        assert not controller.is_calibrated
        assert controller.cursor_position is None
        assert controller.fps == 0.0

    def test_reset_keeps_tracking(self, controller, frame_factory):
        controller.start()
        calibrate(controller, frame_factory)

        controller.reset()

        assert controller.state == TrackingState.TRACKING
        assert not controller.is_calibrated

    def test_fail_and_recover(self, controller, frame_factory):
        controller.start()

        controller.fail("LandmarkSourceError", "stream lost")

        assert controller.state == TrackingState.ERROR
        assert controller.error.message == "stream lost"
        assert controller.start() is False

        assert controller.clear_error()
        assert controller.error is None
        assert controller.start()


class TestFrameProcessing:
    """Tests for the per-frame pipeline."""

    def test_no_face(self, controller, sink, frame_factory):
        """Faceless frames leave every filter as it was; tracking resumes without a jump."""
        controller.start()
        t = calibrate(controller, frame_factory)
        face = frame_factory(nose=(0.45, 0.5))
        for i in range(1, 300):
            controller.process(face, t + i * FRAME)
        t += 300 * FRAME

        smoother = controller._context.smoother
        before = filter_snapshot(smoother)
        position = controller.cursor_position
        calls = len(sink.calls)

        result = controller.process(None, t)
        assert result.face_detected is False
        assert result.cursor_pos == position
        assert controller.face_status == "No face"

        result = controller.process(LandmarkFrame.empty(), t + 0.5)
        assert result.face_detected is False
        assert len(sink.calls) == calls
        assert filter_snapshot(smoother) == before

        result = controller.process(face, t + 1.0)
        assert result.face_detected
        assert abs(result.cursor_pos[0] - position[0]) <= 1
        assert abs(result.cursor_pos[1] - position[1]) <= 1

    def test_uncalibrated_frames_do_not_move(self, controller, sink, frame_factory):
        controller.start()

        for i in range(10):
            result = controller.process(frame_factory(nose=(0.3, 0.7)), i * FRAME)
            assert result.face_detected
            assert result.cursor_pos is None

        assert sink.moves == []
        assert controller.face_status == "Detected"

    def test_wink_clicks_before_calibration(self, controller, sink, frame_factory):
        controller.start()
        controller.process(frame_factory(), 0.0)

        result = controller.process(frame_factory(left_ear=CLOSED_EAR), FRAME)

        assert [e.kind for e in result.events] == [GestureKind.LEFT_CLICK]
        assert sink.commands("click") == [("click", "left")]
        assert controller.click_count == 1

    def test_drag_needs_calibration(self, controller, sink, frame_factory):
        controller.start()

        controller.process(frame_factory(mouth=40.0), 0.0)

        assert not controller.is_dragging
        assert sink.commands("mouse_down") == []

    def test_head_motion_moves_cursor(self, controller, sink, frame_factory):
        controller.start()
        t = calibrate(controller, frame_factory)

        for i in range(1, 400):
            result = controller.process(frame_factory(nose=(0.4, 0.5)), t + i * FRAME)

        x, y = result.cursor_pos
        assert x == pytest.approx(1457, abs=1)
        assert y == pytest.approx(540, abs=1)
        assert sink.moves[-1][0] == pytest.approx(1457, abs=5)

    def test_click_dispatched_after_move(self, controller, sink, frame_factory):
        controller.start()
        t = calibrate(controller, frame_factory)
        controller.process(frame_factory(nose=(0.45, 0.5)), t + 0.2)
        sink.calls.clear()

        controller.process(frame_factory(nose=(0.4, 0.5), right_ear=CLOSED_EAR), t + 0.4)

        assert sink.calls[0][0] == "move_to"
        assert sink.calls[-1] == ("click", "right")

    def test_fps(self, controller, frame_factory):
        controller.start()
        for i in range(31):
            controller.process(frame_factory(), i * FRAME)

        assert controller.fps == pytest.approx(30.0)


class TestSinkFailures:
    """The pipeline keeps running when the mouse sink does not."""

    def test_unavailable_sink(self, config, frame_factory):
        sink = RecordingSink(available=False)
        controller = Controller(config, 1920, 1080, sink)
        controller.start()

        calibrate(controller, frame_factory)
        controller.process(frame_factory(nose=(0.4, 0.5)), 3.5)

        assert sink.calls == []
        assert controller.cursor_position is not None
        assert controller.dispatch_statistics["dropped_commands"] > 0

    def test_failing_sink(self, config, failing_sink, frame_factory):
        controller = Controller(config, 1920, 1080, failing_sink)
        controller.start()

        calibrate(controller, frame_factory)
        controller.process(frame_factory(nose=(0.4, 0.5), left_ear=CLOSED_EAR), 3.5)

        assert controller.is_calibrated
        assert controller.click_count == 1
        assert controller.dispatch_statistics["total_moves"] == 0

    def test_default_sink(self, config, frame_factory):
        controller = Controller(config)
        controller.start()

        calibrate(controller, frame_factory)

        assert controller.screen_size == (1920, 1080)
        assert controller.cursor_position == (960, 540)

    def test_set_sink(self, config, sink, frame_factory):
        controller = Controller(config)
        controller.start()
        controller.set_sink(sink)

        calibrate(controller, frame_factory)

        assert sink.moves == [(960, 540)]


class TestRuntimeSettings:
    """Tests for sensitivity, smoothness and overlay setters."""

    def test_update_sensitivity(self, controller, config):
        controller.update_sensitivity(2.0)
        assert config.mapping.sensitivity == 2.0

    @pytest.mark.parametrize("value", [0.0, 0.05, 5.5])
    def test_invalid_sensitivity(self, controller, config, value):
        with pytest.raises(ValueError):
            controller.update_sensitivity(value)
        assert config.mapping.sensitivity == 1.5

    def test_sensitivity_applies_next_frame(self, controller, frame_factory):
        controller.start()
        t = calibrate(controller, frame_factory)

        controller.update_sensitivity(0.1)
        for i in range(1, 400):
            result = controller.process(frame_factory(nose=(0.4, 0.5)), t + i * FRAME)

        # 0.092 * 1080 * 0.1 * 2.5 * 4/3
        assert result.cursor_pos[0] == pytest.approx(993, abs=1)

    def test_update_smoothness(self, controller, config):
        controller.update_smoothness(1.0)
        assert config.smoothing.base_smooth_factor == pytest.approx(0.035)

        controller.update_smoothness(0.0)
        assert config.smoothing.base_smooth_factor == pytest.approx(0.02)

        with pytest.raises(ValueError):
            controller.update_smoothness(1.5)

    def test_show_mesh(self, controller):
        assert controller.show_mesh
        controller.set_show_mesh(False)
        assert not controller.show_mesh
