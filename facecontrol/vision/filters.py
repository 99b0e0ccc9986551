"""
Numeric filter primitives for the smoothing pipeline.

All functions are pure except push() and kalman_step(), which update
the buffer or state they are given.
"""

import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Optional

import numpy as np


@dataclass
class KalmanState:
    """
    Scalar Kalman filter state.

    There is no velocity term; velocity is tracked by a separate layer.
    """

    estimate: Optional[float] = None  # Seeded by first measurement
    error_estimate: float = 1.0
    error_measure: float = 0.05
    q: float = 0.005  # Process noise


def new_buffer(capacity: int) -> Deque[float]:
    """Fixed-capacity FIFO for raw samples."""
    return deque(maxlen=capacity)


def push(buffer: Deque[float], value: float):
    """Append a sample, evicting the oldest when the buffer is full."""
    buffer.append(value)


def median(values: Iterable[float]) -> float:
    """
    Median of the current buffer contents.

    Even-length buffers average the two middle elements.
    An empty buffer yields 0.0.
    """
    data = list(values)
    if not data:
        return 0.0
    return float(np.median(data))


def kalman_step(measurement: float, state: KalmanState) -> float:
    """
    Fuse one measurement into the running estimate.

    Args:
        measurement: New noisy value
        state: Filter state, updated in place

    Returns:
        Updated estimate
    """
    if state.estimate is None:
        state.estimate = measurement
        return measurement

    # Predict
    state.error_estimate += state.q

    gain = state.error_estimate / (state.error_estimate + state.error_measure)
    state.estimate = state.estimate + gain * (measurement - state.estimate)
    state.error_estimate = (1 - gain) * state.error_estimate

    return state.estimate


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation from a to b."""
    return a + (b - a) * t


def bezier(p0: float, p1: float, p2: float, t: float) -> float:
    """Quadratic Bezier curve at parameter t."""
    one_minus_t = 1 - t
    return one_minus_t * one_minus_t * p0 + 2 * one_minus_t * t * p1 + t * t * p2


def adaptive_factor(
    vx: float,
    vy: float,
    base: float,
    influence: float,
    minimum: float,
    maximum: float,
) -> float:
    """
    Velocity-dependent smoothing factor.

    Faster motion gives a higher (more responsive) factor, clamped to
    [minimum, maximum].
    """
    speed = math.hypot(vx, vy)
    factor = base + speed * influence
    return max(minimum, min(maximum, factor))


def round_half_up(value: float) -> int:
    """Round to the nearest pixel, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))
