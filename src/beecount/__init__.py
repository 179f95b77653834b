"""
BeeCount: bee counting at the hive entrance.

Provides a per-frame pipeline of blur, background subtraction,
morphology and contour counting. No ML framework dependencies.

Dependencies: opencv, numpy, pyyaml
"""

from .processors import (
    Blob,
    Blur,
    BackgroundSubtractor,
    Morphology,
    ContoursFinder,
    DEFAULT_COUNTER_CONFIG,
    get_default_config,
    build_counter_params,
    load_config,
    is_empty,
    passes_area_filter,
)
from .pipeline import (
    FrameResult,
    CountResult,
    BeesCounter,
)

__all__ = [
    # Processors
    "Blob",
    "Blur",
    "BackgroundSubtractor",
    "Morphology",
    "ContoursFinder",
    "DEFAULT_COUNTER_CONFIG",
    "get_default_config",
    "build_counter_params",
    "load_config",
    "is_empty",
    "passes_area_filter",
    # Pipeline
    "FrameResult",
    "CountResult",
    "BeesCounter",
]
