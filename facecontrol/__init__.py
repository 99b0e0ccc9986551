"""
FaceControl - hands-free cursor control from facial landmarks.

Turns a stream of face-mesh landmarks into mouse input:
- Nose offset from a calibrated neutral position moves the cursor
- A four-layer smoothing pipeline (median, Kalman, velocity-adaptive
  exponential smoothing, Bezier easing) keeps it stable and responsive
- Winks click, an open mouth drags

Architecture:
- Single-threaded, frame-driven core (core.controller)
- Landmark source and mouse sink injected as collaborators
- One owned pipeline context per tracking session
"""

__version__ = "0.1.0"
__license__ = "MIT"
