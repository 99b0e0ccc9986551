"""
Mouse sink backed by pynput.

Drives the local pointer: absolute moves, single clicks and separate
press/release of the left button for dragging.
"""

from pynput.mouse import Button, Controller as MouseController

from facecontrol.utils.logger import get_logger

logger = get_logger(__name__)

_BUTTONS = {"left": Button.left, "right": Button.right}


class PynputMouseSink:
    """Local mouse control, clamped to the screen bounds."""

    is_available = True

    def __init__(self, screen_width: int, screen_height: int):
        """
        Initialize mouse sink.

        Args:
            screen_width: Screen width in pixels
            screen_height: Screen height in pixels
        """
        self._screen_width = screen_width
        self._screen_height = screen_height
        self._mouse = MouseController()

        logger.info(f"PynputMouseSink initialized: {screen_width}x{screen_height}")

    def move_to(self, x: int, y: int):
        """Move cursor to absolute screen position (clamped)."""
        x_clamped = max(0, min(int(x), self._screen_width - 1))
        y_clamped = max(0, min(int(y), self._screen_height - 1))

        if x != x_clamped or y != y_clamped:
            logger.debug(f"Cursor position clamped: ({x},{y}) -> ({x_clamped},{y_clamped})")

        self._mouse.position = (x_clamped, y_clamped)

    def click(self, button: str):
        """Single click with "left" or "right"."""
        try:
            pynput_button = _BUTTONS[button]
        except KeyError:
            raise ValueError(f"Unknown mouse button: {button}")
        self._mouse.click(pynput_button, 1)

    def mouse_down(self):
        """Press and hold the left button."""
        self._mouse.press(Button.left)

    def mouse_up(self):
        """Release the left button."""
        self._mouse.release(Button.left)
