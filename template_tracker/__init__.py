"""
Template Tracking.

Follows a fixed template through a sequence of frames using OpenCV template
matching, searching a window around the previous match that grows while the
template cannot be found.
"""

from .config import (
    DEFAULT_RATE,
    TrackingConfig,
    TrackingConfigError,
    TrackingMode,
    check_frames,
    resolve_config,
)
from .matching import match_template
from .tracker import (
    FrameResult,
    TrackState,
    Window,
    clip_window,
    grow_radius,
    iter_track,
    reject_matches,
    track_template,
)
from .simulation import make_plus_image, moving_template_sequence, shuffle_blocks_sequence
from .video import read_frames, run_tracker
from .visualization import draw_match, draw_tracks, draw_window
