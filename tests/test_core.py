"""
Tests for seed constraints, thresholding and the segmentation engine.
"""

import numpy as np
import pytest
from PIL import Image

from seeded_seg import (
    ConfigurationError,
    SeededSegmentation,
    ShapeError,
    assemble_constraints,
    process_image_file,
    segment_image,
    threshold_field,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def two_tone_image(H, W, split):
    """Dark columns [0, split), bright columns [split, W)."""
    img = np.zeros((H, W, 3), dtype=np.float64)
    img[:, split:] = 1.0
    return img


def empty_masks(H, W):
    return np.zeros((H, W), dtype=bool), np.zeros((H, W), dtype=bool)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("beta", [-1.0, -1e-9, float("nan")])
def test_negative_beta_rejected(beta):
    with pytest.raises(ConfigurationError):
        SeededSegmentation(np.zeros((2, 2, 3)), beta=beta, sigma=1.0)


@pytest.mark.parametrize("sigma", [0.0, -1.0, float("nan")])
def test_non_positive_sigma_rejected(sigma):
    with pytest.raises(ConfigurationError):
        SeededSegmentation(np.zeros((2, 2, 3)), beta=1.0, sigma=sigma)


def test_beta_zero_accepted():
    engine = SeededSegmentation(np.zeros((2, 2, 3)), beta=0.0, sigma=1.0)
    assert engine.beta == 0.0
    assert engine.sigma == 1.0


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        SeededSegmentation(np.zeros((2, 2, 3)), beta=-1.0, sigma=1.0)


@pytest.mark.parametrize("shape", [(0, 3, 3), (3, 0, 3), (0, 0, 3), (0, 4)])
def test_empty_image_rejected(shape):
    with pytest.raises(ShapeError):
        SeededSegmentation(np.zeros(shape), beta=1.0, sigma=1.0)


def test_bad_image_rank_rejected():
    with pytest.raises(ShapeError):
        SeededSegmentation(np.zeros((2, 2, 3, 1)), beta=1.0, sigma=1.0)
    with pytest.raises(ShapeError):
        SeededSegmentation(np.zeros(5), beta=1.0, sigma=1.0)


def test_image_is_copied_and_read_only():
    img = np.zeros((2, 3, 3))
    engine = SeededSegmentation(img, beta=1.0, sigma=1.0)
    img[0, 0] = 5.0
    assert engine.image[0, 0, 0] == 0.0
    assert not engine.image.flags.writeable
    assert engine.shape == (2, 3)


def test_grayscale_image_accepted():
    engine = SeededSegmentation(np.zeros((2, 3)), beta=1.0, sigma=1.0)
    assert engine.image.shape == (2, 3, 1)


# ---------------------------------------------------------------------------
# Seed constraints and thresholding
# ---------------------------------------------------------------------------

def test_assemble_constraints_values():
    bg = np.array([[True, False], [True, False]])
    fg = np.array([[False, True], [True, False]])
    Is, b = assemble_constraints(bg, fg)
    np.testing.assert_array_equal(Is.toarray(), np.diag([1.0, 1.0, 1.0, 0.0]))
    np.testing.assert_array_equal(b, [1.0, -1.0, 0.0, 0.0])


def test_pixel_in_both_masks_is_anchored_to_zero():
    # single pixel, no edges: A = Is = [[1]] and b = [0]
    engine = SeededSegmentation(np.zeros((1, 1, 3)), beta=1.0, sigma=1.0)
    both = np.ones((1, 1), dtype=bool)
    field = engine.potential_field(both, both)
    assert field[0, 0] == 0.0
    # a value exactly at the threshold is not background
    assert not engine.segment(both, both)[0, 0]


def test_threshold_tie_break():
    field = np.array([0.0, 1e-12, -1e-12, 1.0])
    np.testing.assert_array_equal(threshold_field(field, (2, 2)), [[False, True], [False, True]])


def test_threshold_keeps_row_major_order():
    field = np.array([1.0, -1.0, -1.0, 1.0, 1.0, -1.0])
    np.testing.assert_array_equal(threshold_field(field, (2, 3)),
                                  [[True, False, False], [True, True, False]])


# ---------------------------------------------------------------------------
# Mask validation
# ---------------------------------------------------------------------------

def test_mismatched_masks_rejected():
    engine = SeededSegmentation(np.zeros((2, 3, 3)), beta=1.0, sigma=1.0)
    good = np.zeros((2, 3), dtype=bool)
    with pytest.raises(ShapeError):
        engine.segment(np.zeros((3, 2), dtype=bool), good)
    with pytest.raises(ShapeError):
        engine.segment(good, np.zeros((2, 4), dtype=bool))
    with pytest.raises(ShapeError):
        engine.segment(good, np.zeros((2, 3, 1), dtype=bool))


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------

def test_uniform_image_all_background():
    engine = SeededSegmentation(np.full((2, 2, 3), 0.3), beta=90.0, sigma=1.0)
    bg = np.ones((2, 2), dtype=bool)
    fg = np.zeros((2, 2), dtype=bool)
    mask = engine.segment(bg, fg)
    assert mask.dtype == bool
    assert mask.all()
    np.testing.assert_allclose(engine.potential_field(bg, fg), 1.0, atol=1e-8)


def test_cut_follows_colour_boundary():
    img = np.array([[[0, 0, 0], [0, 0, 0], [255, 255, 255]]], dtype=np.float64)
    bg = np.array([[True, False, False]])
    fg = np.array([[False, False, True]])
    mask = SeededSegmentation(img, beta=1.0, sigma=1.0).segment(bg, fg)
    np.testing.assert_array_equal(mask, [[True, True, False]])


def test_cut_moves_with_boundary():
    img = np.array([[[0, 0, 0], [255, 255, 255], [255, 255, 255]]], dtype=np.float64)
    bg = np.array([[True, False, False]])
    fg = np.array([[False, False, True]])
    mask = SeededSegmentation(img, beta=1.0, sigma=1.0).segment(bg, fg)
    np.testing.assert_array_equal(mask, [[True, False, False]])


def test_rectangular_image_is_not_transposed():
    H, W = 3, 5
    engine = SeededSegmentation(two_tone_image(H, W, split=2), beta=90.0, sigma=1.0)
    bg, fg = empty_masks(H, W)
    bg[0, 0] = True
    fg[H - 1, W - 1] = True
    mask = engine.segment(bg, fg)
    assert mask.shape == (H, W)
    assert mask[:, :2].all()
    assert not mask[:, 2:].any()


def test_repeated_calls_are_deterministic():
    rng = np.random.default_rng(3)
    engine = SeededSegmentation(rng.random((6, 8, 3)), beta=10.0, sigma=1.0)
    bg, fg = empty_masks(6, 8)
    bg[:, 0] = True
    fg[:, -1] = True
    first = engine.segment(bg, fg)
    second = engine.segment(bg, fg)
    assert np.array_equal(first, second)
    assert np.array_equal(engine.potential_field(bg, fg), engine.potential_field(bg, fg))


def test_engine_reusable_with_different_seeds():
    engine = SeededSegmentation(two_tone_image(4, 4, split=2), beta=90.0, sigma=1.0)
    bg, fg = empty_masks(4, 4)
    bg[0, 0] = True
    fg[0, 3] = True
    np.testing.assert_array_equal(engine.segment(bg, fg)[0], [True, True, False, False])
    # swap roles
    np.testing.assert_array_equal(engine.segment(fg, bg)[0], [False, False, True, True])


def test_segment_image_matches_engine():
    img = two_tone_image(4, 6, split=3)
    bg, fg = empty_masks(4, 6)
    bg[:, 0] = True
    fg[:, 5] = True
    expected = SeededSegmentation(img, beta=90.0, sigma=1.0).segment(bg, fg)
    np.testing.assert_array_equal(segment_image(img, bg, fg, beta=90.0, sigma=1.0), expected)


def test_process_image_file(tmp_path):
    rgb = np.zeros((4, 6, 3), dtype=np.uint8)
    rgb[:, 3:] = 255
    path = tmp_path / "two_tone.png"
    Image.fromarray(rgb).save(path)

    bg, fg = empty_masks(4, 6)
    bg[:, 0] = True
    fg[:, 5] = True
    mask = process_image_file(str(path), bg, fg)
    assert mask[:, :3].all()
    assert not mask[:, 3:].any()
