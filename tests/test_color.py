"""Tests for perceptual color conversion helpers."""

import numpy as np
import pytest

from colorsweep.features.color import ciede2000, rgb_to_hex, to_perceptual, to_perceptual_many


def test_to_perceptual_black_and_white() -> None:
    black = to_perceptual((0, 0, 0))
    white = to_perceptual((255, 255, 255))

    assert black[0] == pytest.approx(0.0, abs=1e-6)
    assert white[0] == pytest.approx(100.0, abs=1e-3)
    assert abs(white[1]) < 0.01 and abs(white[2]) < 0.01


def test_to_perceptual_rejects_out_of_range_channels() -> None:
    with pytest.raises(ValueError):
        to_perceptual((256, 0, 0))
    with pytest.raises(ValueError):
        to_perceptual((-1, 0, 0))
    with pytest.raises(ValueError):
        to_perceptual((10.5, 0, 0))
    with pytest.raises(ValueError):
        to_perceptual((1, 2))


def test_to_perceptual_many_matches_single_conversion() -> None:
    colors = np.array([[255, 0, 0], [0, 128, 64], [12, 34, 56]], dtype=np.uint8)
    many = to_perceptual_many(colors)

    assert many.shape == (3, 3)
    for row, color in zip(many, colors):
        np.testing.assert_allclose(row, to_perceptual(color))


def test_ciede2000_zero_for_identical_colors() -> None:
    lab = to_perceptual((120, 40, 200))
    labs = np.vstack([lab, to_perceptual((0, 0, 0))])

    distances = ciede2000(lab, labs)

    assert distances.shape == (2,)
    assert distances[0] == pytest.approx(0.0, abs=1e-9)
    assert distances[1] > 10.0


def test_rgb_to_hex_is_lowercase() -> None:
    assert rgb_to_hex((224, 0, 0)) == "#e00000"
    assert rgb_to_hex((0, 160, 255)) == "#00a0ff"
