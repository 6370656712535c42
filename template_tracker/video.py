"""
Video driver for the template tracker.

Reads frames from a video file with ``cv2.VideoCapture``, tracks a template
through them and writes an annotated copy with ``cv2.VideoWriter``.
"""

import logging

import cv2
import numpy as np

from .config import DEFAULT_RADIUS, DEFAULT_RATE, DEFAULT_THRESHOLD
from .tracker import track_template
from .visualization import draw_tracks

logger = logging.getLogger(__name__)

DEFAULT_FPS = 15.0
DEFAULT_FOURCC = "XVID"


def read_frames(video_path):
    """Yield every frame of *video_path* as a BGR array.

    Raises
    ------
    IOError
        If the video cannot be opened.
    """
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise IOError(f"Cannot open video {video_path!r}")
    try:
        while True:
            ok, frame = cap.read()
            if not ok:
                break
            yield frame
    finally:
        cap.release()


def write_frames(frames, output_path, fps=DEFAULT_FPS, fourcc=DEFAULT_FOURCC):
    """Write BGR *frames* to *output_path*."""
    frames = list(frames)
    if not frames:
        raise ValueError("No frames to write")
    h, w = frames[0].shape[:2]
    out = cv2.VideoWriter(output_path, cv2.VideoWriter_fourcc(*fourcc), fps, (w, h))
    if not out.isOpened():
        raise IOError(f"Cannot open video writer for {output_path!r}")
    try:
        for frame in frames:
            out.write(frame)
    finally:
        out.release()


def run_tracker(
    video_path,
    template,
    output_path="template_tracking.avi",
    radius=DEFAULT_RADIUS,
    threshold=DEFAULT_THRESHOLD,
    rate=DEFAULT_RATE,
    mask=None,
    fps=DEFAULT_FPS,
    show_preview=False,
):
    """Track *template* through a video file and write an annotated copy.

    Parameters
    ----------
    video_path : str
        Path to the input video.
    template : ndarray
        BGR patch to track; its channel count must match the video's.
    output_path : str or None
        Path for the annotated output video; None skips writing.
    radius, threshold, rate, mask
        Tracking options, see :func:`~template_tracker.tracker.track_template`.
    fps : float
        Frames per second for the output video.
    show_preview : bool
        If True, display the annotated frames in an OpenCV window.

    Returns
    -------
    X, Y, D : ndarray
        Output of :func:`~template_tracker.tracker.track_template`.
    """
    template = np.asarray(template)
    frames = list(read_frames(video_path))
    logger.info("read %d frames from %s", len(frames), video_path)

    X, Y, D = track_template(frames, template, radius=radius, threshold=threshold,
                             rate=rate, mask=mask)
    annotated = draw_tracks(frames, X, Y, template.shape)

    if output_path is not None:
        write_frames(annotated, output_path, fps=fps)
        logger.info("wrote annotated video to %s", output_path)

    if show_preview:
        for frame in annotated:
            cv2.imshow("Template tracking", frame)
            if cv2.waitKey(40) & 0xFF == 27:
                break
        cv2.destroyAllWindows()
    return X, Y, D
