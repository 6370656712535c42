"""
Visualization helpers for template tracking.

Drawing utilities for annotating frames with the tracked template's
bounding box and the search window used to find it.
"""

import math

import cv2
import numpy as np

DEFAULT_MATCH_COLOR = (0, 0, 255)
DEFAULT_WINDOW_COLOR = (0, 255, 0)
DEFAULT_THICKNESS = 2


def to_bgr(frame):
    """Return a ``uint8`` BGR copy of *frame* suitable for drawing."""
    frame = np.asarray(frame)
    if frame.dtype == np.bool_:
        frame = frame.astype(np.uint8) * 255
    elif frame.dtype != np.uint8:
        frame = cv2.normalize(frame, None, 0, 255, cv2.NORM_MINMAX, dtype=cv2.CV_8U)
    else:
        frame = frame.copy()
    if frame.ndim == 2:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    return frame


def draw_match(frame_bgr, x, y, template_shape, color=DEFAULT_MATCH_COLOR,
               thickness=DEFAULT_THICKNESS):
    """Draw the template's bounding box at top-left ``(x, y)`` (in-place).

    Returns False without drawing when the position is NaN.
    """
    if math.isnan(x) or math.isnan(y):
        return False
    th, tw = template_shape[:2]
    x1, y1 = int(x), int(y)
    cv2.rectangle(frame_bgr, (x1, y1), (x1 + tw - 1, y1 + th - 1), color, thickness)
    return True


def draw_window(frame_bgr, window, color=DEFAULT_WINDOW_COLOR, thickness=1):
    """Outline a search window (in-place)."""
    top, bottom, left, right = window
    cv2.rectangle(frame_bgr, (left, top), (right - 1, bottom - 1), color, thickness)


def draw_tracks(frames, X, Y, template_shape, color=DEFAULT_MATCH_COLOR,
                thickness=DEFAULT_THICKNESS):
    """Return BGR copies of *frames* with each frame's match drawn on it.

    Parameters
    ----------
    frames : sequence of ndarray
        Tracked frames.
    X, Y : sequence of float
        Per-frame top-left coordinates, NaN where no valid match.
    template_shape : tuple
        Shape of the tracked template.
    """
    annotated = []
    for frame, x, y in zip(frames, X, Y):
        out = to_bgr(frame)
        draw_match(out, float(x), float(y), template_shape, color, thickness)
        annotated.append(out)
    return annotated
