"""
Landmark sources.

The pipeline does not run a camera or face mesh itself; it consumes
LandmarkFrames from any object implementing LandmarkSource. The replay
source feeds a recorded session, which is how the pipeline is tuned
and demonstrated offline.
"""

import numpy as np
from pathlib import Path
from typing import Optional, Protocol

from facecontrol.core.config import CameraConfig
from facecontrol.vision.landmarks import LandmarkFrame
from facecontrol.utils.logger import get_logger

logger = get_logger(__name__)


class LandmarkSourceError(Exception):
    """Landmark source errors."""

    pass


class LandmarkSource(Protocol):
    """Producer of one LandmarkFrame per detection cycle."""

    def open(self) -> bool:
        ...

    def read_frame(self) -> Optional[LandmarkFrame]:
        ...

    def close(self):
        ...

    @property
    def is_open(self) -> bool:
        ...


class LandmarkReplay:
    """
    Replay a recorded landmark session.

    The recording is a .npy array of shape (frames, landmarks, 2) with
    normalized coordinates. Frames where no face was detected are rows
    of NaN.
    """

    def __init__(self, path: Path, config: CameraConfig, loop: bool = False):
        """
        Initialize replay source.

        Args:
            path: Recorded .npy session
            config: Camera configuration (target_fps sets frame timestamps)
            loop: Restart from the first frame when the recording ends
        """
        self._path = Path(path)
        self._config = config
        self._loop = loop
        self._frames: Optional[np.ndarray] = None
        self._index = 0

        logger.info(f"Initializing landmark replay: {self._path}")

    def open(self) -> bool:
        """
        Load the recording.

        Returns:
            True if successful

        Raises:
            LandmarkSourceError: If the file is missing or malformed
        """
        if self._frames is not None:
            logger.warning("Landmark replay already open")
            return True

        try:
            frames = np.load(self._path, allow_pickle=False)
        except (OSError, ValueError) as e:
            raise LandmarkSourceError(f"Failed to load landmark recording: {e}") from e

        if frames.ndim != 3 or frames.shape[2] != 2 or len(frames) == 0:
            raise LandmarkSourceError(
                f"Landmark recording must have shape (frames, landmarks, 2), got {frames.shape}"
            )

        self._frames = frames.astype(np.float64)
        self._index = 0

        logger.info(f"Landmark replay opened: {len(frames)} frames x {frames.shape[1]} landmarks")
        return True

    def read_frame(self) -> Optional[LandmarkFrame]:
        """
        Read the next recorded frame.

        Returns:
            LandmarkFrame, or None when closed or exhausted
        """
        if self._frames is None:
            logger.warning("Attempted to read from closed landmark replay")
            return None

        if self._index >= len(self._frames):
            if not self._loop:
                return None
            self._index = 0

        frame = LandmarkFrame(
            points=self._frames[self._index],
            timestamp=self._index / self._config.target_fps,
        )
        self._index += 1
        return frame

    def close(self):
        """
        Release the recording.

        Safe to call multiple times.
        """
        if self._frames is not None:
            self._frames = None
            logger.info("Landmark replay closed")

    @property
    def is_open(self) -> bool:
        return self._frames is not None

    @property
    def frame_count(self) -> int:
        """Number of frames in the recording (0 when closed)."""
        return 0 if self._frames is None else len(self._frames)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
