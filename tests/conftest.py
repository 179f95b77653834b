"""Pytest fixtures: small synthetic frames."""

import cv2
import numpy as np
import pytest


@pytest.fixture
def source():
    """4x4 frame with a 2x2 bright block in the centre."""
    return np.array([
        [0,   0,   0, 0],
        [0, 255, 255, 0],
        [0, 255, 255, 0],
        [0,   0,   0, 0],
    ], dtype=np.uint8)


@pytest.fixture
def black():
    return np.zeros((4, 4), dtype=np.uint8)


@pytest.fixture
def source_contours():
    """480x640 mask with one filled circle of radius 10 (area ~314, a bee)."""
    mask = np.zeros((480, 640), dtype=np.uint8)
    cv2.circle(mask, (200, 200), 10, 255, -1)
    return mask


@pytest.fixture
def empty_frame():
    return np.empty((0, 0), dtype=np.uint8)


@pytest.fixture
def entrance_frame():
    """Static 120x160 hive entrance background."""
    return np.full((120, 160), 40, dtype=np.uint8)
