"""
Configuration management for FaceControl.

All tunables of the landmark-to-cursor pipeline with sensible defaults.
Uses dataclasses for type safety and validation.
"""

from dataclasses import dataclass, field
import os
from pathlib import Path


@dataclass
class CameraConfig:
    """Geometry of the frames the landmark source was computed from."""

    frame_width: int = 640
    frame_height: int = 480
    target_fps: int = 30  # Replay pacing

    @property
    def aspect(self) -> float:
        """Camera aspect ratio (width / height)."""
        return self.frame_width / self.frame_height


@dataclass
class ScreenConfig:
    """Fallback screen geometry when the platform cannot report one."""

    width: int = 1920
    height: int = 1080


@dataclass
class SmoothingConfig:
    """Four-layer smoothing pipeline parameters."""

    # Layer 1: median window (frames)
    buffer_size: int = 8

    # Layer 2: scalar Kalman filter
    kalman_error_estimate: float = 1.0
    kalman_error_measure: float = 0.05
    kalman_process_noise: float = 0.005

    # Kalman parameters used when state is reseeded at calibration
    reseed_error_measure: float = 0.1
    reseed_process_noise: float = 0.01

    # Layer 3: velocity-adaptive exponential smoothing
    velocity_blend: float = 0.3
    base_smooth_factor: float = 0.06  # Lower = more stable
    velocity_influence: float = 0.002
    min_smooth_factor: float = 0.02  # Very smooth when still
    max_smooth_factor: float = 0.20  # Responsiveness cap

    # Layer 4: Bezier easing
    output_lerp: float = 0.1
    bezier_factor: float = 0.3


@dataclass
class MappingConfig:
    """Head offset to screen target mapping."""

    sensitivity: float = 1.5  # Range: 0.1-5.0
    sensitivity_gain: float = 2.5

    # Soft dead zone around the calibration reference (normalized units)
    dead_zone_radius: float = 0.008


@dataclass
class GestureConfig:
    """Wink and mouth gesture thresholds."""

    # Eye aspect ratio hysteresis band
    ear_closed_threshold: float = 0.15
    ear_open_threshold: float = 0.2
    ear_wide_open_threshold: float = 0.35

    # Seconds between clicks of the same side
    wink_cooldown: float = 0.6

    # Mouth openness = (lip gap / mouth width) * scale
    mouth_open_scale: float = 150.0
    mouth_open_threshold: float = 15.0

    ratio_epsilon: float = 0.001


@dataclass
class DispatchConfig:
    """Output throttle for the mouse sink."""

    min_interval: float = 0.008  # ~125 Hz
    jitter_threshold: float = 5.0  # pixels
    fallback_interval: float = 0.1  # resend even if still


@dataclass
class CalibrationConfig:
    """Calibration countdown."""

    countdown_steps: int = 3
    step_seconds: float = 1.0


@dataclass
class StorageConfig:
    """Local file locations (logs only)."""

    data_dir: Path = field(default_factory=lambda: Path.home() / ".facecontrol")
    log_filename: str = "facecontrol.log"

    # Enable file logging (off by default)
    enable_file_logging: bool = False

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)

    @property
    def log_path(self) -> Path:
        """Get full path to log file."""
        return self.data_dir / self.log_filename


@dataclass
class UIConfig:
    """Status window configuration."""

    window_title: str = "FaceControl"
    window_width: int = 420
    window_height: int = 520

    # Draw tracked landmarks in the preview (cosmetic only)
    show_mesh: bool = True

    preview_width: int = 320
    preview_height: int = 240


@dataclass
class AppConfig:
    """Main application configuration."""

    camera: CameraConfig = field(default_factory=CameraConfig)
    screen: ScreenConfig = field(default_factory=ScreenConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)
    gestures: GestureConfig = field(default_factory=GestureConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    version: str = "0.1.0"

    # Log level from environment or default to WARNING
    log_level: str = field(
        default_factory=lambda: os.getenv("FACECONTROL_LOG_LEVEL", "WARNING")
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """Validate configuration parameters."""
        s = self.smoothing
        if s.buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")

        if not 0.0 < s.min_smooth_factor <= s.max_smooth_factor <= 1.0:
            raise ValueError("smooth factor bounds must satisfy 0 < min <= max <= 1")

        if not 0.0 <= s.base_smooth_factor <= 1.0:
            raise ValueError("base_smooth_factor must be between 0.0 and 1.0")

        if not 0.0 < s.output_lerp <= 1.0:
            raise ValueError("output_lerp must be between 0.0 and 1.0")

        if not 0.0 <= s.velocity_blend <= 1.0:
            raise ValueError("velocity_blend must be between 0.0 and 1.0")

        if s.kalman_error_measure <= 0 or s.reseed_error_measure <= 0:
            raise ValueError("Kalman measurement error must be positive")

        validate_sensitivity(self.mapping.sensitivity)

        if not 0.0 <= self.mapping.dead_zone_radius <= 0.1:
            raise ValueError("dead_zone_radius must be between 0.0 and 0.1")

        g = self.gestures
        if not g.ear_closed_threshold < g.ear_open_threshold < g.ear_wide_open_threshold:
            raise ValueError("EAR thresholds must satisfy closed < open < wide open")

        if g.wink_cooldown < 0:
            raise ValueError("wink_cooldown must be non-negative")

        d = self.dispatch
        if d.min_interval < 0 or d.fallback_interval < d.min_interval:
            raise ValueError("dispatch intervals must satisfy 0 <= min <= fallback")

        if self.camera.frame_width <= 0 or self.camera.frame_height <= 0:
            raise ValueError("Invalid camera dimensions")

        if self.screen.width <= 0 or self.screen.height <= 0:
            raise ValueError("Invalid screen dimensions")

        if self.calibration.countdown_steps < 0:
            raise ValueError("countdown_steps must be non-negative")


def validate_sensitivity(sensitivity: float):
    """Raise ValueError if sensitivity is outside 0.1-5.0."""
    if not 0.1 <= sensitivity <= 5.0:
        raise ValueError("sensitivity must be between 0.1 and 5.0")


def smoothness_to_base_factor(slider: float) -> float:
    """
    Convert the 0-1 smoothness slider to a base smoothing factor.

    Higher slider values give a more responsive cursor.

    Args:
        slider: Slider position in [0, 1]

    Returns:
        Base smoothing factor in [0.02, 0.035]
    """
    if not 0.0 <= slider <= 1.0:
        raise ValueError("smoothness slider must be between 0.0 and 1.0")
    return 0.02 + slider * 0.015


def get_default_config() -> AppConfig:
    """
    Get default application configuration.

    Returns:
        AppConfig instance with default values
    """
    return AppConfig()
