"""Pytest configuration and shared fixtures for template_tracker tests."""

import numpy as np
import pytest

from template_tracker.simulation import make_plus_image


class ScriptedMatcher:
    """Fake matcher returning pre-set ``(x, y, d)`` results in call order.

    Records the shape of every image it is given so tests can inspect the
    search windows.
    """

    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    def __call__(self, image, template, mask=None):
        self.calls.append(image.shape)
        return self.results[len(self.calls) - 1]


@pytest.fixture
def scripted_matcher():
    return ScriptedMatcher


@pytest.fixture
def blank_frames():
    """Ten blank 40x50 grayscale frames."""
    return [np.zeros((40, 50), dtype=np.uint8) for _ in range(10)]


@pytest.fixture
def small_template():
    return np.zeros((6, 8), dtype=np.uint8)


@pytest.fixture
def plus_scene():
    """(image, template, mask) with a plus sign in the top-left block."""
    return make_plus_image(seed=7)
