"""
Per-frame processors for bee counting.

Each processor takes one frame (or mask) and returns a new one, or None
when there is nothing to process. ContoursFinder is the last stage and
keeps the bee count for the latest mask.

Dependencies: opencv, numpy, pyyaml
"""

import json
import logging
import os

import cv2
import numpy as np
import yaml
from dataclasses import dataclass, field
from typing import List, Tuple, Dict, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class Blob:
    """Connected foreground region found in a mask."""
    area: float
    centroid: Tuple[float, float]  # x, y
    bbox: Tuple[int, int, int, int]  # x1, y1, x2, y2
    contour: np.ndarray = field(repr=False)


# =============================================================================
# DEFAULT CONFIGURATION
# =============================================================================

DEFAULT_COUNTER_CONFIG = {
    # Blur
    "blur_ksize": 5,
    "blur_sigma": 1.0875,

    # Background subtractor
    "bg_history": 50,
    "bg_threshold": 0.7,

    # Morphological filtering
    "morph_kernel_size": 3,

    # Bee size (contour area, px)
    "min_area": 16,
    "max_area": 600,
}


def get_default_config() -> Dict:
    """Return a copy of the default counter configuration."""
    return DEFAULT_COUNTER_CONFIG.copy()


def build_counter_params(**kwargs) -> Dict:
    """Build counter parameters from defaults + overrides."""
    params = get_default_config()
    for key, value in kwargs.items():
        if key in params:
            params[key] = value
        else:
            raise ValueError(f"Unknown counter parameter: {key}")
    return params


def load_config(path: str) -> Dict:
    """Load a YAML or JSON config file and merge with defaults."""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path) as f:
        if path.endswith((".yaml", ".yml")):
            overrides = yaml.safe_load(f) or {}
        else:
            overrides = json.load(f)
    if not isinstance(overrides, dict):
        raise ValueError(f"Config must be a mapping: {path}")
    logger.info(f"Loaded config from {path} ({len(overrides)} overrides)")
    return build_counter_params(**overrides)


def is_empty(frame: Optional[np.ndarray]) -> bool:
    """True for a missing or zero-size frame."""
    return frame is None or frame.size == 0


# =============================================================================
# BLUR
# =============================================================================

class Blur:
    """
    Gaussian smoothing of a single frame.

    The kernel is applied in double precision with a reflect-101 border,
    then rounded back to 8 bits.
    """

    def __init__(self, ksize: int = 5, sigma: float = 1.0875):
        if ksize <= 0 or ksize % 2 == 0:
            raise ValueError(f"Blur kernel size must be positive and odd: {ksize}")
        self.ksize = ksize
        self.sigma = sigma

    def process(self, frame: Optional[np.ndarray]) -> Optional[np.ndarray]:
        """Return a blurred copy of frame, or None if frame is empty."""
        if is_empty(frame):
            return None
        blurred = cv2.GaussianBlur(
            frame.astype(np.float64),
            (self.ksize, self.ksize),
            self.sigma,
            borderType=cv2.BORDER_REFLECT_101,
        )
        return np.clip(np.rint(blurred), 0, 255).astype(np.uint8)


# =============================================================================
# BACKGROUND SUBTRACTOR
# =============================================================================

class BackgroundSubtractor:
    """
    Foreground detection against a running background estimate (MOG2).

    Args:
        history: Number of frames the estimate learns from
        threshold: Squared distance to the estimate above which a pixel
            is foreground. Lower is more sensitive.
    """

    def __init__(self, history: int = 50, threshold: float = 0.7):
        if history <= 0:
            raise ValueError(f"Background history must be positive: {history}")
        self.history = history
        self.threshold = threshold
        self.frames_seen = 0
        self._back_sub = cv2.createBackgroundSubtractorMOG2(
            history=history,
            varThreshold=threshold,
            detectShadows=False,
        )

    def process(self, frame: Optional[np.ndarray]) -> Optional[np.ndarray]:
        """Update the estimate with frame and return its foreground mask."""
        if is_empty(frame):
            return None
        fg_mask = self._back_sub.apply(frame)
        self.frames_seen += 1
        return fg_mask

    def get_background(self) -> Optional[np.ndarray]:
        """Current background estimate, None before the first frame."""
        if self.frames_seen == 0:
            return None
        return self._back_sub.getBackgroundImage()


# =============================================================================
# MORPHOLOGY
# =============================================================================

class Morphology:
    """Opening then closing with an elliptical kernel to drop small noise."""

    def __init__(self, kernel_size: int = 3):
        self.kernel_size = kernel_size
        self.morph_kernel = cv2.getStructuringElement(
            cv2.MORPH_ELLIPSE, (kernel_size, kernel_size)
        )

    def process(self, mask: Optional[np.ndarray]) -> Optional[np.ndarray]:
        if is_empty(mask):
            return None
        cleaned = cv2.morphologyEx(mask, cv2.MORPH_OPEN, self.morph_kernel)
        return cv2.morphologyEx(cleaned, cv2.MORPH_CLOSE, self.morph_kernel)


# =============================================================================
# CONTOURS FINDER
# =============================================================================

class ContoursFinder:
    """
    Counts bee-sized blobs in a foreground mask.

    A blob counts when min_area <= area <= max_area. Every call to
    process() replaces the previous result.
    """

    def __init__(self, min_area: float = 16, max_area: float = 600):
        if min_area > max_area:
            raise ValueError(f"min_area ({min_area}) is greater than max_area ({max_area})")
        self.min_area = min_area
        self.max_area = max_area
        self.blobs: List[Blob] = []

    @property
    def num_bees(self) -> int:
        return len(self.blobs)

    def get_num_bees(self) -> int:
        """Number of bees found by the latest process() call."""
        return self.num_bees

    def process(self, mask: Optional[np.ndarray]) -> None:
        """Find the bees in mask."""
        if is_empty(mask):
            self.blobs = []
            return

        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        blobs = []
        for contour in contours:
            area = cv2.contourArea(contour)
            if not passes_area_filter(area, self.min_area, self.max_area):
                continue
            blobs.append(contour_to_blob(contour, area))
        self.blobs = blobs


def passes_area_filter(area: float, min_area: float, max_area: float) -> bool:
    """Check if a contour area is within the bee size range."""
    return min_area <= area <= max_area


def contour_to_blob(contour: np.ndarray, area: float) -> Blob:
    """Build a Blob from an OpenCV contour."""
    x, y, w, h = cv2.boundingRect(contour)
    moments = cv2.moments(contour)
    if moments["m00"] > 0:
        centroid = (moments["m10"] / moments["m00"], moments["m01"] / moments["m00"])
    else:
        # Degenerate contour (line or point), fall back to the box centre
        centroid = (x + w / 2, y + h / 2)
    return Blob(area=area, centroid=centroid, bbox=(x, y, x + w, y + h), contour=contour)
