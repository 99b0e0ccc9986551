"""
Output dispatch to the mouse-control sink.

Moves are throttled and jitter-filtered so bursty landmark arrival
becomes a steady, bounded-rate stream. Clicks and button presses are
sent immediately. Every command is fire-and-forget: an unavailable or
failing sink drops it without disturbing the pipeline.
"""

import math
from typing import Optional, Protocol, Tuple

from facecontrol.core.config import DispatchConfig
from facecontrol.vision.gestures import GestureEvent, GestureKind
from facecontrol.utils.logger import get_logger

logger = get_logger(__name__)


class MouseSink(Protocol):
    """Mouse-control collaborator."""

    @property
    def is_available(self) -> bool:
        ...

    def move_to(self, x: int, y: int):
        ...

    def click(self, button: str):
        """Click "left" or "right"."""
        ...

    def mouse_down(self):
        ...

    def mouse_up(self):
        ...


class NullMouseSink:
    """Sink that is never connected."""

    is_available = False

    def move_to(self, x: int, y: int):
        pass

    def click(self, button: str):
        pass

    def mouse_down(self):
        pass

    def mouse_up(self):
        pass


class OutputDispatcher:
    """
    Rate-limited, jitter-filtered command dispatch.

    A move is considered at most once per min_interval. A considered
    move is sent when it is at least jitter_threshold pixels from the
    last sent position, or when fallback_interval has passed since the
    last send.
    """

    def __init__(self, sink: MouseSink, config: DispatchConfig):
        """
        Initialize dispatcher.

        Args:
            sink: Mouse-control sink
            config: Throttle configuration
        """
        self._sink = sink
        self._config = config

        self._last_check_time: Optional[float] = None
        self._last_send_time: Optional[float] = None
        self._last_sent: Optional[Tuple[int, int]] = None

        # Statistics
        self._total_moves = 0
        self._skipped_moves = 0
        self._dropped_commands = 0

        logger.info(
            f"OutputDispatcher initialized: "
            f"min_interval={config.min_interval * 1000:.1f}ms, "
            f"jitter={config.jitter_threshold:.1f}px"
        )

    def submit_move(self, x: int, y: int, now: float) -> bool:
        """
        Offer a cursor position for dispatch.

        Args:
            x: Cursor x (pixels)
            y: Cursor y (pixels)
            now: Current time (seconds)

        Returns:
            True if a move command was sent
        """
        cfg = self._config

        if self._last_check_time is not None and now - self._last_check_time < cfg.min_interval:
            self._skipped_moves += 1
            return False
        self._last_check_time = now

        if self._last_sent is not None and self._last_send_time is not None:
            distance = math.hypot(x - self._last_sent[0], y - self._last_sent[1])
            stale = now - self._last_send_time > cfg.fallback_interval
            if distance < cfg.jitter_threshold and not stale:
                self._skipped_moves += 1
                return False

        return self.send_move(x, y, now)

    def send_move(self, x: int, y: int, now: float) -> bool:
        """Send a move immediately, bypassing the throttle."""
        if not self._call("move_to", x, y):
            return False

        self._last_sent = (x, y)
        self._last_send_time = now
        self._total_moves += 1
        return True

    def send_event(self, event: GestureEvent) -> bool:
        """
        Forward a gesture command.

        Returns:
            True if the sink accepted it
        """
        if event.kind == GestureKind.LEFT_CLICK:
            return self._call("click", "left")
        if event.kind == GestureKind.RIGHT_CLICK:
            return self._call("click", "right")
        if event.kind == GestureKind.DRAG_START:
            return self._call("mouse_down")
        if event.kind == GestureKind.DRAG_END:
            return self._call("mouse_up")

        raise ValueError(f"Unknown gesture kind: {event.kind}")

    def _call(self, command: str, *args) -> bool:
        if not self._sink.is_available:
            self._dropped_commands += 1
            logger.debug(f"Mouse sink unavailable, dropped {command}{args}")
            return False

        try:
            getattr(self._sink, command)(*args)
            return True
        except Exception as e:
            self._dropped_commands += 1
            logger.debug(f"Mouse sink failed on {command}: {e}")
            return False

    def reset(self, position: Optional[Tuple[int, int]] = None, now: Optional[float] = None):
        """
        Forget throttle history.

        Args:
            position: Treat this as the last sent position (e.g. screen
                center after calibration)
            now: Time to treat as the last check and send
        """
        self._last_sent = position
        self._last_check_time = now
        self._last_send_time = now if position is not None else None

    def set_sink(self, sink: MouseSink):
        """Replace the sink (e.g. after the application reconnects)."""
        self._sink = sink

    def reset_statistics(self):
        """Reset counters."""
        self._total_moves = 0
        self._skipped_moves = 0
        self._dropped_commands = 0

    @property
    def last_sent(self) -> Optional[Tuple[int, int]]:
        """Last position sent to the sink."""
        return self._last_sent

    @property
    def statistics(self) -> dict:
        """Get dispatch statistics."""
        return {
            "total_moves": self._total_moves,
            "skipped_moves": self._skipped_moves,
            "dropped_commands": self._dropped_commands,
        }
