"""
Tests for the pynput mouse sink.

pynput is replaced by a recording fake so no pointer moves; the module
is skipped where pynput has no usable backend.
"""

import pytest

cursor_controller = pytest.importorskip("facecontrol.os_control.cursor_controller")

from pynput.mouse import Button  # noqa: E402


class FakeMouse:
    """Stand-in for pynput.mouse.Controller."""

    def __init__(self):
        self.position = (0, 0)
        self.calls = []

    def click(self, button, count):
        self.calls.append(("click", button, count))

    def press(self, button):
        self.calls.append(("press", button))

    def release(self, button):
        self.calls.append(("release", button))


@pytest.fixture
def mouse_sink(monkeypatch):
    monkeypatch.setattr(cursor_controller, "MouseController", FakeMouse)
    return cursor_controller.PynputMouseSink(1920, 1080)


class TestPynputMouseSink:
    """Tests for PynputMouseSink."""

    def test_available(self, mouse_sink):
        assert mouse_sink.is_available

    def test_move(self, mouse_sink):
        mouse_sink.move_to(640, 360)
        assert mouse_sink._mouse.position == (640, 360)

    def test_move_clamped(self, mouse_sink):
        mouse_sink.move_to(5000, -20)
        assert mouse_sink._mouse.position == (1919, 0)

    def test_clicks(self, mouse_sink):
        mouse_sink.click("left")
        mouse_sink.click("right")

        assert mouse_sink._mouse.calls == [
            ("click", Button.left, 1),
            ("click", Button.right, 1),
        ]

    def test_unknown_button(self, mouse_sink):
        with pytest.raises(ValueError):
            mouse_sink.click("middle")

    def test_drag_press_release(self, mouse_sink):
        mouse_sink.mouse_down()
        mouse_sink.mouse_up()

        assert mouse_sink._mouse.calls == [("press", Button.left), ("release", Button.left)]
