"""
Sequential template tracker.

Follows one fixed template through an ordered sequence of frames.  The first
frame is always searched in full; every later frame is searched either in
full or inside a window around the previous match, depending on the
:class:`~template_tracker.config.TrackingMode` chosen for the run.  In the
adaptive mode a rejected match (score above the threshold) holds the last
position and grows the window until the template is found again.

All coordinates are zero-based; windows are half-open
``[top, bottom) x [left, right)``.
"""

import logging
import math
from dataclasses import dataclass
from typing import NamedTuple, Optional

import numpy as np

from .config import (
    DEFAULT_RADIUS,
    DEFAULT_RATE,
    DEFAULT_THRESHOLD,
    TrackingMode,
    check_frames,
    resolve_config,
)
from .matching import match_template

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Search windows
# ---------------------------------------------------------------------------
class Window(NamedTuple):
    top: int
    bottom: int
    left: int
    right: int

    @property
    def shape(self):
        return (self.bottom - self.top, self.right - self.left)

    def crop(self, frame):
        """Return the part of *frame* covered by this window (a view)."""
        return frame[self.top:self.bottom, self.left:self.right]


def full_window(frame_shape):
    """Window covering a whole frame of shape ``(H, W[, C])``."""
    return Window(0, int(frame_shape[0]), 0, int(frame_shape[1]))


def clip_window(x, y, radius, template_shape, frame_shape):
    """Search window around a previous match at top-left ``(x, y)``.

    The window lets the template's top-left move from *radius* pixels up
    or left to *radius* + 1 pixels down or right, and is clipped to the
    frame.  Height and width follow the template's own height and width.
    """
    th, tw = template_shape[:2]
    h, w = frame_shape[:2]
    x, y = int(x), int(y)
    return Window(
        top=max(y - radius, 0),
        bottom=min(y + th + radius + 1, h),
        left=max(x - radius, 0),
        right=min(x + tw + radius + 1, w),
    )


def grow_radius(radius, rate):
    """Scale *radius* by *rate*, rounding halves away from zero."""
    return int(math.floor(radius * rate + 0.5))


# ---------------------------------------------------------------------------
# Per-frame state
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TrackState:
    """Position and window margin carried from one frame to the next."""

    x: int
    y: int
    radius: Optional[int]


class FrameResult(NamedTuple):
    """Outcome of matching one frame.

    ``x`` and ``y`` are full-frame coordinates before the final rejection
    pass: a rejected frame in the adaptive mode reports the held position.
    ``radius`` is the margin used to build ``window`` (None for a full-frame
    search).
    """

    index: int
    x: int
    y: int
    score: float
    window: Window
    radius: Optional[int]
    accepted: bool


def _is_accepted(score, config):
    return not config.rejects or score <= config.threshold


def _match_in_window(frame, window, template, config, matcher):
    lx, ly, d = matcher(window.crop(frame), template, config.mask)
    return int(lx) + window.left, int(ly) + window.top, float(d)


def match_first_frame(frame, template, config, matcher=match_template):
    """Match frame 0 against its full extent and build the initial state."""
    window = full_window(frame.shape)
    x, y, d = _match_in_window(frame, window, template, config, matcher)
    state = TrackState(x, y, config.radius)
    return state, FrameResult(0, x, y, d, window, None, _is_accepted(d, config))


# ---------------------------------------------------------------------------
# Step functions, one per tracking mode
# ---------------------------------------------------------------------------
def step_full_frame(state, index, frame, template, config, matcher=match_template):
    """Search the whole frame; the previous state is not used."""
    window = full_window(frame.shape)
    x, y, d = _match_in_window(frame, window, template, config, matcher)
    result = FrameResult(index, x, y, d, window, None, _is_accepted(d, config))
    return TrackState(x, y, state.radius), result


def step_windowed_fixed(state, index, frame, template, config, matcher=match_template):
    """Search a fixed-margin window around the previous match."""
    window = clip_window(state.x, state.y, state.radius, template.shape, frame.shape)
    x, y, d = _match_in_window(frame, window, template, config, matcher)
    result = FrameResult(index, x, y, d, window, state.radius, _is_accepted(d, config))
    return TrackState(x, y, state.radius), result


def step_windowed_adaptive(state, index, frame, template, config, matcher=match_template):
    """Search around the previous match, growing the window after a miss.

    A rejected match keeps the previous position and multiplies the radius
    by ``config.rate``; an accepted match resets the radius to its
    configured value.
    """
    window = clip_window(state.x, state.y, state.radius, template.shape, frame.shape)
    x, y, d = _match_in_window(frame, window, template, config, matcher)

    if d > config.threshold:
        new_state = TrackState(state.x, state.y, grow_radius(state.radius, config.rate))
        result = FrameResult(index, state.x, state.y, d, window, state.radius, False)
    else:
        new_state = TrackState(x, y, config.radius)
        result = FrameResult(index, x, y, d, window, state.radius, True)
    return new_state, result


STEP_FUNCTIONS = {
    TrackingMode.FULL_FRAME: step_full_frame,
    TrackingMode.WINDOWED_FIXED: step_windowed_fixed,
    TrackingMode.WINDOWED_ADAPTIVE: step_windowed_adaptive,
}


# ---------------------------------------------------------------------------
# High-level tracker loop
# ---------------------------------------------------------------------------
def _prepare_run(frames, template, radius, threshold, rate, mask):
    template = np.asarray(template)
    config = resolve_config(template, radius=radius, threshold=threshold,
                            rate=rate, mask=mask)
    frames = check_frames(frames, template)
    return frames, template, config


def _iter_results(frames, template, config, matcher):
    step = STEP_FUNCTIONS[config.mode]
    state = None
    for index, frame in enumerate(frames):
        frame = np.asarray(frame)
        if state is None:
            state, result = match_first_frame(frame, template, config, matcher)
        else:
            state, result = step(state, index, frame, template, config, matcher)
        logger.debug(
            "frame %d: (%d, %d) score=%.4f window=%s radius=%s accepted=%s",
            result.index, result.x, result.y, result.score,
            tuple(result.window), result.radius, result.accepted,
        )
        yield result


def iter_track(frames, template, radius=DEFAULT_RADIUS, threshold=DEFAULT_THRESHOLD,
               rate=DEFAULT_RATE, mask=None, matcher=match_template):
    """Track *template* through *frames*, yielding a :class:`FrameResult` per frame.

    Inputs are validated before the first frame is matched.  Rejected frames
    report the held position; use :func:`track_template` for the final
    NaN-substituted output.

    The frames are collected into a list during validation, so the whole
    sequence is held in memory for the duration of the run.
    """
    frames, template, config = _prepare_run(frames, template, radius, threshold,
                                            rate, mask)
    return _iter_results(frames, template, config, matcher)


def reject_matches(X, Y, D, threshold):
    """Replace positions whose score exceeds *threshold* with NaN (in place)."""
    if threshold is None:
        return X, Y
    rejected = D > threshold
    X[rejected] = np.nan
    Y[rejected] = np.nan
    return X, Y


def track_template(frames, template, radius=DEFAULT_RADIUS, threshold=DEFAULT_THRESHOLD,
                   rate=DEFAULT_RATE, mask=None, matcher=match_template):
    """Track the location of *template* in every frame of *frames*.

    Parameters
    ----------
    frames : sequence of ndarray
        Non-empty, ordered frames of identical height and width.
    template : ndarray
        Fixed image patch to locate.
    radius : int or None
        Margin in pixels around the previous match within which the next
        frame is searched.  None (or a negative value) searches every frame
        in full.
    threshold : float or None
        Matches scoring above this are rejected and reported as NaN.  None
        (or a negative value) disables rejection.
    rate : float
        Growth factor applied to *radius* after each rejected match when both
        *radius* and *threshold* are set.
    mask : ndarray or None
        Boolean array the size of the template; True pixels are matched.
    matcher : callable
        ``matcher(image, template, mask) -> (x, y, d)``.

    Returns
    -------
    X, Y : ndarray
        Top-left match coordinates per frame (float, NaN where rejected).
    D : ndarray
        Matcher score per frame, never NaN.

    Raises
    ------
    TrackingConfigError
        If the frames, template or options are invalid.
    """
    frames, template, config = _prepare_run(frames, template, radius, threshold,
                                            rate, mask)

    n = len(frames)
    X = np.empty(n, dtype=np.float64)
    Y = np.empty(n, dtype=np.float64)
    D = np.empty(n, dtype=np.float64)
    for result in _iter_results(frames, template, config, matcher):
        X[result.index] = result.x
        Y[result.index] = result.y
        D[result.index] = result.score

    if config.rejects:
        reject_matches(X, Y, D, config.threshold)
    logger.info(
        "tracked %d frames (%s), %d rejected",
        n, config.mode.value, int(np.count_nonzero(np.isnan(X))),
    )
    return X, Y, D
