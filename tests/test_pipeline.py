"""Tests for the BeesCounter pipeline."""

import cv2
import numpy as np
import pytest

from beecount import BeesCounter, CountResult, FrameResult


def _learn_background(counter, frame, n=30):
    for _ in range(n):
        counter.process(frame)


def _with_bees(background, centres, radius=10, value=200):
    frame = background.copy()
    for centre in centres:
        cv2.circle(frame, centre, radius, value, -1)
    return frame


def test_static_background_has_no_bees(entrance_frame):
    counter = BeesCounter()
    _learn_background(counter, entrance_frame)
    assert counter.process(entrance_frame) == 0
    assert counter.num_bees == 0


def test_counts_bees_on_learned_background(entrance_frame):
    counter = BeesCounter()
    _learn_background(counter, entrance_frame)

    assert counter.process(_with_bees(entrance_frame, [(50, 60)])) == 1
    assert counter.num_bees == 1


def test_counts_two_bees(entrance_frame):
    counter = BeesCounter()
    _learn_background(counter, entrance_frame)

    result = counter.process_frame(_with_bees(entrance_frame, [(40, 40), (110, 80)]))
    assert isinstance(result, FrameResult)
    assert result.num_bees == 2
    assert len(result.blobs) == 2
    assert result.frame_number == 30


def test_large_object_is_not_a_bee(entrance_frame):
    counter = BeesCounter()
    _learn_background(counter, entrance_frame)
    assert counter.process(_with_bees(entrance_frame, [(80, 60)], radius=25)) == 0


def test_color_frames(entrance_frame):
    counter = BeesCounter()
    background = cv2.cvtColor(entrance_frame, cv2.COLOR_GRAY2BGR)
    _learn_background(counter, background)

    frame = background.copy()
    cv2.circle(frame, (50, 60), 10, (200, 200, 200), -1)
    assert counter.process(frame) == 1


def test_null_and_empty_frames_count_zero(entrance_frame, empty_frame):
    counter = BeesCounter()
    _learn_background(counter, entrance_frame)
    counter.process(_with_bees(entrance_frame, [(50, 60)]))
    assert counter.num_bees == 1

    seen = counter.background_subtractor.frames_seen
    assert counter.process(None) == 0
    assert counter.num_bees == 0
    assert counter.process(empty_frame) == 0
    # Skipped frames never reach the background model
    assert counter.background_subtractor.frames_seen == seen


def test_frame_size_change_raises(entrance_frame):
    counter = BeesCounter()
    counter.process(entrance_frame)
    with pytest.raises(ValueError):
        counter.process(np.zeros((60, 80), dtype=np.uint8))


def test_reset_starts_new_session(entrance_frame):
    counter = BeesCounter()
    _learn_background(counter, entrance_frame, n=5)
    counter.reset()
    assert counter.frame_number == 0
    assert counter.background_subtractor.frames_seen == 0
    # A different frame size is fine after a reset
    assert counter.process(np.zeros((60, 80), dtype=np.uint8)) == 0


def test_process_frames(entrance_frame):
    counter = BeesCounter()
    frames = [entrance_frame] * 30 + [
        None,
        _with_bees(entrance_frame, [(50, 60)]),
        _with_bees(entrance_frame, [(40, 40), (110, 80)]),
    ]
    result = counter.process_frames(frames)
    assert isinstance(result, CountResult)
    assert result.counts[-2:] == [1, 2]
    assert result.counts[30] == 0
    assert result.frames_processed == 32
    assert result.frames_skipped == 1
    assert result.max_bees == 2
    assert result.mean_bees == pytest.approx(3 / 33)


def test_process_frames_all_empty():
    counter = BeesCounter()
    result = counter.process_frames([None, None])
    assert result.counts == [0, 0]
    assert result.frames_processed == 0
    assert result.max_bees == 0


def test_config_overrides(entrance_frame):
    counter = BeesCounter({"max_area": 5000})
    assert counter.config["min_area"] == 16
    _learn_background(counter, entrance_frame)
    assert counter.process(_with_bees(entrance_frame, [(80, 60)], radius=25)) == 1


def test_unknown_config_key():
    with pytest.raises(ValueError):
        BeesCounter({"bee_colour": "yellow"})
