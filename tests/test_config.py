#!/usr/bin/env python3
"""Tests for tracking configuration resolution and input validation."""

import warnings

import numpy as np
import pytest

from template_tracker.config import (
    DEFAULT_RATE,
    TrackingConfigError,
    TrackingMode,
    check_frames,
    resolve_config,
)


@pytest.fixture
def template():
    return np.zeros((6, 8), dtype=np.uint8)


class TestModeSelection:

    @pytest.mark.parametrize("radius, threshold, mode", [
        (None, None, TrackingMode.FULL_FRAME),
        (-1, None, TrackingMode.FULL_FRAME),
        (-1, 0.5, TrackingMode.FULL_FRAME),
        (3, None, TrackingMode.WINDOWED_FIXED),
        (3, -1, TrackingMode.WINDOWED_FIXED),
        (3, 0.5, TrackingMode.WINDOWED_ADAPTIVE),
        (3, 0, TrackingMode.WINDOWED_ADAPTIVE),
    ])
    def test_mode_table(self, template, radius, threshold, mode):
        config = resolve_config(template, radius=radius, threshold=threshold)
        assert config.mode is mode

    def test_defaults(self, template):
        config = resolve_config(template)
        assert config.mode is TrackingMode.FULL_FRAME
        assert config.radius is None
        assert config.threshold is None
        assert config.rate == DEFAULT_RATE == 1.1
        assert config.mask is None
        assert not config.rejects

    def test_negative_threshold_disables_rejection(self, template):
        config = resolve_config(template, threshold=-1)
        assert config.threshold is None

    def test_full_frame_keeps_threshold(self, template):
        config = resolve_config(template, threshold=0.25)
        assert config.rejects and config.threshold == 0.25

    def test_integral_float_radius_accepted(self, template):
        config = resolve_config(template, radius=4.0)
        assert config.radius == 4 and isinstance(config.radius, int)

    def test_numpy_scalars_accepted(self, template):
        config = resolve_config(template, radius=np.int64(2), threshold=np.float32(0.5))
        assert config.radius == 2
        assert config.threshold == pytest.approx(0.5)

    def test_zero_radius_adaptive_warns(self, template):
        with pytest.warns(UserWarning, match="radius=0"):
            resolve_config(template, radius=0, threshold=0.1)

    def test_zero_radius_fixed_does_not_warn(self, template):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            resolve_config(template, radius=0)

    def test_config_is_frozen(self, template):
        config = resolve_config(template)
        with pytest.raises(AttributeError):
            config.radius = 3


class TestInvalidOptions:

    @pytest.mark.parametrize("radius", [2.5, "3", float("nan"), True])
    def test_bad_radius(self, template, radius):
        with pytest.raises(TrackingConfigError):
            resolve_config(template, radius=radius)

    @pytest.mark.parametrize("threshold", ["0.1", float("nan"), [0.1]])
    def test_bad_threshold(self, template, threshold):
        with pytest.raises(TrackingConfigError):
            resolve_config(template, threshold=threshold)

    @pytest.mark.parametrize("rate", [0, -1.1, float("inf"), None, "1.1"])
    def test_bad_rate(self, template, rate):
        with pytest.raises(TrackingConfigError):
            resolve_config(template, rate=rate)

    def test_mask_shape_mismatch(self, template):
        with pytest.raises(TrackingConfigError, match="mask shape"):
            resolve_config(template, mask=np.ones((6, 7), dtype=bool))

    def test_mask_must_be_boolean(self, template):
        with pytest.raises(TrackingConfigError, match="boolean"):
            resolve_config(template, mask=np.ones((6, 8), dtype=np.uint8))

    def test_empty_mask(self, template):
        with pytest.raises(TrackingConfigError):
            resolve_config(template, mask=np.zeros((6, 8), dtype=bool))

    def test_mask_for_color_template(self):
        template = np.zeros((6, 8, 3), dtype=np.uint8)
        config = resolve_config(template, mask=np.ones((6, 8), dtype=bool))
        assert config.mask.shape == (6, 8)

    @pytest.mark.parametrize("bad", [
        np.zeros((0, 4)),
        np.zeros(5),
        np.zeros((2, 2, 2, 2)),
        np.array([["a", "b"]]),
    ])
    def test_bad_template(self, bad):
        with pytest.raises(TrackingConfigError):
            resolve_config(bad)

    def test_error_is_value_error(self, template):
        with pytest.raises(ValueError):
            resolve_config(template, rate=0)


class TestCheckFrames:

    def test_returns_list(self, template):
        frames = check_frames((np.zeros((20, 20)) for _ in range(3)), template)
        assert isinstance(frames, list) and len(frames) == 3

    def test_stacked_array_split_into_frames(self, template):
        frames = check_frames(np.zeros((4, 20, 30, 3)), np.zeros((6, 8, 3)))
        assert len(frames) == 4 and frames[0].shape == (20, 30, 3)

    def test_empty_sequence(self, template):
        with pytest.raises(TrackingConfigError, match="at least one"):
            check_frames([], template)

    def test_not_a_sequence(self, template):
        with pytest.raises(TrackingConfigError):
            check_frames(5, template)

    def test_mismatched_frame_sizes(self, template):
        with pytest.raises(TrackingConfigError, match="frame 1"):
            check_frames([np.zeros((20, 20)), np.zeros((20, 21))], template)

    def test_template_larger_than_frames(self, template):
        with pytest.raises(TrackingConfigError, match="larger"):
            check_frames([np.zeros((5, 20))], template)

    def test_bad_frame(self, template):
        with pytest.raises(TrackingConfigError, match="frame 0"):
            check_frames([np.zeros(20)], template)

    def test_mixed_channel_counts(self, template):
        frames = [np.zeros((40, 50), np.uint8), np.zeros((40, 50, 3), np.uint8)]
        with pytest.raises(TrackingConfigError, match="frame 1 has 3 channels"):
            check_frames(frames, template)

    def test_mixed_dtypes(self, template):
        frames = [np.zeros((40, 50), np.uint8), np.zeros((40, 50), np.uint16)]
        with pytest.raises(TrackingConfigError, match="dtype"):
            check_frames(frames, template)

    def test_template_channels_must_match_frames(self, template):
        frames = [np.zeros((40, 50, 3), np.uint8)] * 2
        with pytest.raises(TrackingConfigError, match="template has 1 channels"):
            check_frames(frames, template)

    def test_color_frames_with_color_template(self):
        frames = [np.zeros((40, 50, 3), np.uint8)] * 2
        assert len(check_frames(frames, np.zeros((6, 8, 3), np.uint8))) == 2
