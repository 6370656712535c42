"""
Configuration resolution for the template tracker.

Validates the user-facing options (radius, threshold, rate, mask) and the
input images, and normalizes them into a :class:`TrackingConfig` whose
:class:`TrackingMode` is fixed for the whole run.
"""

import enum
import math
import numbers
import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np

# ---------------------------------------------------------------------------
# Default parameters
# ---------------------------------------------------------------------------
DEFAULT_RADIUS = None
DEFAULT_THRESHOLD = None
DEFAULT_RATE = 1.1


class TrackingConfigError(ValueError):
    """Raised when the inputs or options of a tracking run are invalid."""


class TrackingMode(enum.Enum):
    FULL_FRAME = "full_frame"
    WINDOWED_FIXED = "windowed_fixed"
    WINDOWED_ADAPTIVE = "windowed_adaptive"


@dataclass(frozen=True)
class TrackingConfig:
    """Canonical parameters of one tracking run.

    Attributes
    ----------
    mode : TrackingMode
        Search policy selected from *radius* and *threshold*.
    radius : int or None
        Initial window margin in pixels; None in full-frame mode.
    threshold : float or None
        Rejection cutoff on the matcher's score; None when disabled.
    rate : float
        Growth factor applied to the radius after a rejected match.
    mask : ndarray or None
        Boolean template mask.
    """

    mode: TrackingMode
    radius: Optional[int]
    threshold: Optional[float]
    rate: float
    mask: Optional[np.ndarray] = None

    @property
    def rejects(self) -> bool:
        return self.threshold is not None


def _is_real(value):
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _channels(arr):
    return 1 if arr.ndim == 2 else arr.shape[2]


def _check_image(arr, name):
    arr = np.asarray(arr)
    if arr.ndim not in (2, 3):
        raise TrackingConfigError(f"{name} must be a 2D or 3D array, got ndim={arr.ndim}")
    if arr.size == 0:
        raise TrackingConfigError(f"{name} must not be empty")
    if not (arr.dtype == np.bool_ or np.issubdtype(arr.dtype, np.number)):
        raise TrackingConfigError(f"{name} has unsupported dtype {arr.dtype}")
    return arr


def _resolve_radius(radius):
    if radius is None:
        return None
    if not _is_real(radius) or math.isnan(radius):
        raise TrackingConfigError(f"radius must be a number, got {radius!r}")
    if radius < 0:
        return None
    if radius != int(radius):
        raise TrackingConfigError(f"radius must be an integer, got {radius!r}")
    return int(radius)


def _resolve_threshold(threshold):
    if threshold is None:
        return None
    if not _is_real(threshold) or math.isnan(threshold):
        raise TrackingConfigError(f"threshold must be a number, got {threshold!r}")
    if threshold < 0:
        return None
    return float(threshold)


def _resolve_mask(mask, template):
    if mask is None:
        return None
    mask = np.asarray(mask)
    if mask.dtype != np.bool_:
        raise TrackingConfigError(f"mask must be boolean, got dtype {mask.dtype}")
    if mask.shape != template.shape[:2]:
        raise TrackingConfigError(
            f"mask shape {mask.shape} does not match template shape {template.shape[:2]}"
        )
    if not mask.any():
        raise TrackingConfigError("mask excludes every template pixel")
    return mask


def resolve_config(template, radius=DEFAULT_RADIUS, threshold=DEFAULT_THRESHOLD,
                   rate=DEFAULT_RATE, mask=None):
    """Validate the tracking options and pick the run's :class:`TrackingMode`.

    A negative *radius* or *threshold* is treated like None (disabled).

    Raises
    ------
    TrackingConfigError
        If the template or any option is malformed.
    """
    template = _check_image(template, "template")
    radius = _resolve_radius(radius)
    threshold = _resolve_threshold(threshold)
    if not _is_real(rate) or not math.isfinite(rate) or rate <= 0:
        raise TrackingConfigError(f"rate must be a positive finite number, got {rate!r}")
    mask = _resolve_mask(mask, template)

    if radius is None:
        mode = TrackingMode.FULL_FRAME
    elif threshold is None:
        mode = TrackingMode.WINDOWED_FIXED
    else:
        mode = TrackingMode.WINDOWED_ADAPTIVE
        if radius == 0:
            warnings.warn(
                "radius=0 cannot grow after a rejected match (round(0 * rate) == 0); "
                "use radius >= 1 for adaptive window growth.",
                UserWarning,
                stacklevel=2,
            )

    return TrackingConfig(mode=mode, radius=radius, threshold=threshold,
                          rate=float(rate), mask=mask)


def check_frames(frames, template):
    """Validate a frame sequence against *template*.

    Every frame must share frame 0's height, width, dtype and channel
    count, and the channel count must match the template's.

    Returns the frames as a list of arrays.
    """
    try:
        frames = list(frames)
    except TypeError:
        raise TrackingConfigError("frames must be an ordered sequence of images") from None
    if not frames:
        raise TrackingConfigError("frames must contain at least one image")

    template = np.asarray(template)
    frames = [_check_image(f, f"frame {k}") for k, f in enumerate(frames)]
    frame_hw = frames[0].shape[:2]
    frame_dtype = frames[0].dtype
    frame_ch = _channels(frames[0])
    th, tw = template.shape[:2]
    if th > frame_hw[0] or tw > frame_hw[1]:
        raise TrackingConfigError(
            f"template {(th, tw)} is larger than the frames {frame_hw}"
        )
    if _channels(template) != frame_ch:
        raise TrackingConfigError(
            f"template has {_channels(template)} channels, frames have {frame_ch}"
        )
    for k, frame in enumerate(frames):
        if frame.shape[:2] != frame_hw:
            raise TrackingConfigError(
                f"frame {k} has size {frame.shape[:2]}, expected {frame_hw}"
            )
        if frame.dtype != frame_dtype:
            raise TrackingConfigError(
                f"frame {k} has dtype {frame.dtype}, expected {frame_dtype}"
            )
        if _channels(frame) != frame_ch:
            raise TrackingConfigError(
                f"frame {k} has {_channels(frame)} channels, expected {frame_ch}"
            )
    return frames
