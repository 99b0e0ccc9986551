"""
Timing utilities for status display and frame pacing.
"""

import time
from collections import deque
from typing import Optional


class FPSCounter:
    """
    Track and calculate frames per second.

    Reports the rate at which landmark frames reach the pipeline.
    """

    def __init__(self, window_size: int = 30):
        """
        Initialize FPS counter.

        Args:
            window_size: Number of frames to average over
        """
        self._frame_times: deque[float] = deque(maxlen=window_size)
        self._last_time: Optional[float] = None

    def tick(self, now: Optional[float] = None) -> float:
        """
        Register a frame and return current FPS.

        Args:
            now: Frame time in seconds (defaults to perf_counter)
        """
        current_time = time.perf_counter() if now is None else now

        if self._last_time is not None:
            self._frame_times.append(current_time - self._last_time)

        self._last_time = current_time

        return self.fps

    @property
    def fps(self) -> float:
        """
        Get current FPS.

        Returns:
            Current FPS, or 0.0 if no frames recorded
        """
        if not self._frame_times:
            return 0.0

        avg_frame_time = sum(self._frame_times) / len(self._frame_times)
        if avg_frame_time <= 0:
            return 0.0

        return 1.0 / avg_frame_time

    def reset(self):
        """Reset FPS counter."""
        self._frame_times.clear()
        self._last_time = None


class FrameRateLimiter:
    """
    Limit frame processing rate to target FPS.

    Paces replayed landmark sessions at their recorded rate.
    """

    def __init__(self, target_fps: float):
        """
        Initialize frame rate limiter.

        Args:
            target_fps: Target frames per second
        """
        self._target_fps = target_fps
        self._min_frame_time = 1.0 / target_fps if target_fps > 0 else 0.0
        self._last_frame_time: Optional[float] = None

    def wait(self):
        """
        Wait to maintain target frame rate.

        Call this at the end of each frame processing cycle.
        """
        current_time = time.perf_counter()

        if self._last_frame_time is not None:
            sleep_time = self._min_frame_time - (current_time - self._last_frame_time)

            if sleep_time > 0:
                time.sleep(sleep_time)
                current_time = time.perf_counter()

        self._last_frame_time = current_time

    @property
    def target_fps(self) -> float:
        """Get target FPS."""
        return self._target_fps

    def reset(self):
        """Reset timing."""
        self._last_frame_time = None
