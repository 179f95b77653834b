"""
Counting pipeline: frame → blur → background mask → cleaned mask → bee count.

Frames must be fed in capture order; the background model learns from
every frame it sees. Frame acquisition is the caller's job.

Dependencies: opencv, numpy
"""

import logging

import cv2
import numpy as np
from dataclasses import dataclass, field
from typing import Iterable, List, Dict, Optional, Tuple

from .processors import (
    Blob,
    Blur,
    BackgroundSubtractor,
    Morphology,
    ContoursFinder,
    build_counter_params,
    is_empty,
)

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT DATA CLASSES
# =============================================================================

@dataclass
class FrameResult:
    """Count for a single frame."""
    frame_number: int
    num_bees: int
    blobs: List[Blob] = field(default_factory=list, repr=False)


@dataclass
class CountResult:
    """Counts for a sequence of frames."""
    counts: List[int]
    frames_processed: int
    frames_skipped: int

    @property
    def max_bees(self) -> int:
        return max(self.counts) if self.counts else 0

    @property
    def mean_bees(self) -> float:
        return sum(self.counts) / len(self.counts) if self.counts else 0.0


# =============================================================================
# BEES COUNTER
# =============================================================================

class BeesCounter:
    """
    Stateful bee counting pipeline.

    Processes frames through:
        1. Blur (noise smoothing)
        2. Background subtraction (moving objects)
        3. Morphology (drop small noise, close holes)
        4. Contours finder (bee-sized blobs)

    A missing or empty frame stops the chain and counts as zero bees.

    Usage:
        counter = BeesCounter(config)
        for frame in frames:
            num_bees = counter.process(frame)
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Args:
            config: Counter parameters dict, merged over the defaults.
                None = use defaults.
        """
        self.config = build_counter_params(**(config or {}))
        self._build_stages()
        logger.info(
            f"BeesCounter initialized (history={self.config['bg_history']}, "
            f"threshold={self.config['bg_threshold']}, "
            f"area=[{self.config['min_area']}, {self.config['max_area']}])"
        )

    def _build_stages(self) -> None:
        self._blur = Blur(self.config["blur_ksize"], self.config["blur_sigma"])
        self._bs = BackgroundSubtractor(self.config["bg_history"], self.config["bg_threshold"])
        self._morph = Morphology(self.config["morph_kernel_size"])
        self._finder = ContoursFinder(self.config["min_area"], self.config["max_area"])

        self.frame_number = 0
        self.frame_size: Optional[Tuple[int, int]] = None

    @property
    def num_bees(self) -> int:
        """Bee count for the most recent frame."""
        return self._finder.num_bees

    @property
    def background_subtractor(self) -> BackgroundSubtractor:
        return self._bs

    def process(self, frame: Optional[np.ndarray]) -> int:
        """Count the bees in one frame."""
        return self.process_frame(frame).num_bees

    def process_frame(self, frame: Optional[np.ndarray]) -> FrameResult:
        """Run one frame through every stage and return its result."""
        frame_number = self.frame_number
        self.frame_number += 1

        if not is_empty(frame):
            frame = self._to_gray(frame)
            self._check_size(frame)

        result = frame
        for stage in (self._blur, self._bs, self._morph):
            result = stage.process(result)
            if result is None:
                logger.debug(f"Frame {frame_number}: nothing to process")
                self._finder.process(None)
                return FrameResult(frame_number=frame_number, num_bees=0)

        self._finder.process(result)
        logger.debug(f"Frame {frame_number}: {self._finder.num_bees} bees")
        return FrameResult(
            frame_number=frame_number,
            num_bees=self._finder.num_bees,
            blobs=list(self._finder.blobs),
        )

    def process_frames(self, frames: Iterable[Optional[np.ndarray]]) -> CountResult:
        """Count bees over a sequence of frames, in order."""
        counts = []
        skipped = 0
        for frame in frames:
            if is_empty(frame):
                skipped += 1
            counts.append(self.process(frame))

        if counts and skipped == len(counts):
            logger.warning(f"No processable frames in sequence ({skipped} skipped)")

        return CountResult(
            counts=counts,
            frames_processed=len(counts) - skipped,
            frames_skipped=skipped,
        )

    # =========================================================================
    # INTERNAL METHODS
    # =========================================================================

    @staticmethod
    def _to_gray(frame: np.ndarray) -> np.ndarray:
        if frame.ndim == 3 and frame.shape[2] == 3:
            return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        if frame.ndim == 3 and frame.shape[2] == 1:
            return frame[:, :, 0]
        return frame

    def _check_size(self, frame: np.ndarray) -> None:
        size = frame.shape[:2]
        if self.frame_size is None:
            self.frame_size = size
        elif size != self.frame_size:
            raise ValueError(
                f"Frame size changed from {self.frame_size} to {size}; "
                f"use reset() to start a new session"
            )

    # =========================================================================
    # STATE MANAGEMENT
    # =========================================================================

    def reset(self) -> None:
        """Full reset: new background model and cleared counts."""
        self._build_stages()
        logger.info("BeesCounter reset")
